from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.dependencies import get_db, require_faculty, require_user
from app.errors import Conflict
from app.models import ActivityType, User
from app.schemas.activity_type import ActivityTypeForm, ActivityTypeResponse

router = APIRouter(prefix="/activity-types", tags=["activity-types"])


@router.get("/", response_model=list[ActivityTypeResponse], name="activity_types.list")
def list_activity_types(
    current_user: User = Depends(require_user),
    session: Session = Depends(get_db),
):
    return session.query(ActivityType).order_by(ActivityType.title.asc()).all()


@router.post(
    "/",
    response_model=ActivityTypeResponse,
    status_code=status.HTTP_201_CREATED,
    name="activity_types.create",
)
def create_activity_type(
    form: ActivityTypeForm,
    current_user: User = Depends(require_faculty),
    session: Session = Depends(get_db),
):
    key = form.key.strip().lower()
    if session.query(ActivityType).filter(ActivityType.key == key).first():
        raise Conflict(f"activity type {key!r} already exists")
    activity_type = ActivityType(
        key=key,
        title=form.title.strip(),
        default_points=form.default_points,
        description=form.description,
    )
    session.add(activity_type)
    session.commit()
    session.refresh(activity_type)
    return activity_type
