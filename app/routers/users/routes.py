from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.dependencies import get_db, require_faculty, require_user
from app.errors import raise_user_not_permitted
from app.models import User
from app.schemas.submission import SubmissionResponse
from app.schemas.user import UserCreate, UserResponse
from app.services import ledger

router = APIRouter(prefix="/users", tags=["users"])


@router.post("/", response_model=UserResponse, status_code=status.HTTP_201_CREATED, name="users.create")
def create_user(
    form: UserCreate,
    current_user: User = Depends(require_faculty),
    session: Session = Depends(get_db),
):
    """Faculty register new students and colleagues."""
    return ledger.create_user(
        session,
        name=form.name,
        email=form.email,
        password=form.password,
        role=form.role,
        department=form.department,
    )


@router.get("/{user_id}", response_model=UserResponse, name="users.detail")
def get_user(
    user_id: int,
    current_user: User = Depends(require_user),
    session: Session = Depends(get_db),
):
    if not current_user.is_faculty and current_user.id != user_id:
        raise_user_not_permitted()
    return ledger.get_user(session, user_id)


@router.get("/{user_id}/submissions", response_model=list[SubmissionResponse], name="users.submissions")
def user_submissions(
    user_id: int,
    current_user: User = Depends(require_user),
    session: Session = Depends(get_db),
):
    """Drill-down from the leaderboard: every submission a user has made."""
    if not current_user.is_faculty and current_user.id != user_id:
        raise_user_not_permitted()
    ledger.get_user(session, user_id)
    return ledger.list_submissions(session, user_id=user_id)
