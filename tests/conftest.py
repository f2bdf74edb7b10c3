import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.pool import StaticPool

from app.dependencies import get_db
from app.extensions import Database
from app.main import app
from app.models import User
from app.security import create_access_token
from app.services import ledger

DATABASE_URL = "sqlite://"


@pytest.fixture(name="database")
def database_fixture():
    database = Database(DATABASE_URL, poolclass=StaticPool)
    database.create_all()
    yield database
    database.remove_session()
    database.drop_all()
    database.engine.dispose()


@pytest.fixture(name="session")
def session_fixture(database: Database):
    session = database.SessionLocal()
    yield session
    session.close()


@pytest.fixture(name="client")
def client_fixture(session):
    def get_session_override():
        yield session

    app.dependency_overrides[get_db] = get_session_override
    client = AsyncClient(transport=ASGITransport(app=app), base_url="http://test")
    yield client
    app.dependency_overrides.clear()


def make_user(session, name: str, email: str, role: str = "student") -> User:
    return ledger.create_user(session, name=name, email=email, password="password123", role=role)


@pytest.fixture
def student(session) -> User:
    return make_user(session, "Kai Nguyen", "kai@example.com")


@pytest.fixture
def other_student(session) -> User:
    return make_user(session, "Mia Singh", "mia@example.com")


@pytest.fixture
def faculty(session) -> User:
    return make_user(session, "Fran Faculty", "fran@example.com", role="faculty")


def auth_headers(user: User) -> dict:
    token = create_access_token(data={"sub": str(user.id), "role": user.role})
    return {"Authorization": f"Bearer {token}"}
