from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.dependencies import get_db, require_faculty
from app.models import User
from app.schemas.admin import DriftItem, ReconcileResponse
from app.services.points import reconcile_points_cache

router = APIRouter(prefix="/admin", tags=["admin"])


@router.post("/reconcile", response_model=ReconcileResponse, name="admin.reconcile")
def reconcile(
    current_user: User = Depends(require_faculty),
    session: Session = Depends(get_db),
):
    """Rebuild the points cache from verified submissions and report what was corrected."""
    report = reconcile_points_cache(session)
    return ReconcileResponse(
        users_checked=report.users_checked,
        rows_created=report.rows_created,
        consistent=report.consistent,
        drift=[
            DriftItem(user_id=d.user_id, cached_points=d.cached_points, actual_points=d.actual_points)
            for d in report.drift
        ],
    )
