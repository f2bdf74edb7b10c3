from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    create_engine,
    event,
    func,
    select,
)
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, relationship, scoped_session, sessionmaker

Base = declarative_base()


def _enable_sqlite_foreign_keys(engine: Engine) -> None:
    # SQLite ignores ON DELETE CASCADE unless foreign keys are switched on per connection
    @event.listens_for(engine, "connect")
    def _set_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


@contextmanager
def unit_of_work(session: Session, *, commit: bool = True) -> Iterator[Session]:
    """Run the enclosed writes as one unit.

    With ``commit=True`` the session is committed on success and rolled back on
    failure. With ``commit=False`` the writes go into a SAVEPOINT: a failure only
    undoes this unit and leaves the caller's own pending work alone.
    """
    savepoint = None if commit else session.begin_nested()
    try:
        yield session
        if savepoint is None:
            session.commit()
        else:
            savepoint.commit()
    except Exception:
        if savepoint is None:
            session.rollback()
        else:
            savepoint.rollback()
            # core UPDATEs synced into loaded objects are not undone by the savepoint
            session.expire_all()
        raise


class Database:
    Model = Base
    Column = Column
    Integer = Integer
    String = String
    Text = Text
    Boolean = Boolean
    DateTime = DateTime
    Enum = Enum
    JSON = JSON
    ForeignKey = ForeignKey
    UniqueConstraint = UniqueConstraint
    CheckConstraint = CheckConstraint
    Index = Index
    # plain functions must not bind to the instance as methods
    relationship = staticmethod(relationship)
    func = func
    select = staticmethod(select)

    def __init__(self, database_url: str, **engine_kwargs: Any):
        if database_url.startswith("sqlite"):
            engine_kwargs.setdefault("connect_args", {"check_same_thread": False})
        self.engine = create_engine(database_url, future=True, **engine_kwargs)
        if self.engine.dialect.name == "sqlite":
            _enable_sqlite_foreign_keys(self.engine)
        self.SessionLocal = sessionmaker(
            bind=self.engine, autoflush=False, autocommit=False, expire_on_commit=False, future=True
        )
        self.session = scoped_session(self.SessionLocal)

    def remove_session(self) -> None:
        self.session.remove()

    def create_all(self) -> None:
        Base.metadata.create_all(self.engine)

    def drop_all(self) -> None:
        Base.metadata.drop_all(self.engine)

    def dispose(self) -> None:
        self.session.remove()
        self.engine.dispose()


from app.config import settings

db = Database(settings.SQLALCHEMY_DATABASE_URI, echo=settings.SQLALCHEMY_ECHO)
