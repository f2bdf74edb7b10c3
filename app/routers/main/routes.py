from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.config import settings
from app.dependencies import get_db, require_user
from app.models import User
from app.services.leaderboard import top_n

router = APIRouter(tags=["main"])


@router.get("/health", name="main.health")
def health():
    return {"status": "ok", "app": settings.APP_NAME, "version": settings.APP_VERSION}


@router.get("/leaderboard", name="main.leaderboard")
def leaderboard(
    limit: int = Query(default=settings.LEADERBOARD_DEFAULT_LIMIT, ge=1, le=settings.LEADERBOARD_MAX_LIMIT),
    source: str = Query(default="cache", pattern="^(cache|aggregate)$"),
    current_user: User = Depends(require_user),
    session: Session = Depends(get_db),
):
    """
    Student leaderboard. The fields returned depend on who is asking:
    students get names and points, faculty also get ids and drill-down links.
    """
    entries = top_n(session, limit, current_user.role, source=source)
    return [entry.model_dump() for entry in entries]
