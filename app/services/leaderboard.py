from __future__ import annotations

from typing import NamedTuple

from sqlalchemy import and_, func, select
from sqlalchemy.orm import Session

from app.errors import Unauthorized
from app.models import PointsCache, Submission, SubmissionStatus, User, UserRole
from app.schemas.leaderboard import FacultyLeaderboardEntry, LeaderboardEntry

SOURCES = ("cache", "aggregate")


class LeaderboardRow(NamedTuple):
    user_id: int
    name: str
    points: int


def _check_limit(limit: int) -> None:
    if limit < 1:
        raise ValueError("leaderboard limit must be positive")


def leaderboard_from_aggregate(session: Session, limit: int) -> list[LeaderboardRow]:
    """Rank students by summing verified submissions directly; ignores the cache."""
    _check_limit(limit)
    points = func.coalesce(func.sum(Submission.verified_points), 0).label("points")
    rows = session.execute(
        select(User.id, User.name, points)
        .outerjoin(
            Submission,
            and_(Submission.user_id == User.id, Submission.status == SubmissionStatus.VERIFIED.value),
        )
        .where(User.role == UserRole.STUDENT.value)
        .group_by(User.id, User.name)
        .order_by(points.desc(), User.id.asc())
        .limit(limit)
    ).all()
    return [LeaderboardRow(user_id, name, int(total)) for user_id, name, total in rows]


def leaderboard_from_cache(session: Session, limit: int) -> list[LeaderboardRow]:
    """Rank students by their cached totals; students without a cache row count as zero."""
    _check_limit(limit)
    points = func.coalesce(PointsCache.total_points, 0).label("points")
    rows = session.execute(
        select(User.id, User.name, points)
        .outerjoin(PointsCache, PointsCache.user_id == User.id)
        .where(User.role == UserRole.STUDENT.value)
        .order_by(points.desc(), User.id.asc())
        .limit(limit)
    ).all()
    return [LeaderboardRow(user_id, name, int(total)) for user_id, name, total in rows]


def submissions_url(user_id: int) -> str:
    return f"/users/{user_id}/submissions"


def top_n(
    session: Session,
    n: int,
    requester_role: str,
    source: str = "cache",
) -> list[LeaderboardEntry]:
    """
    Highest totals first, ties by user id. Students see only name and points;
    faculty also get the user id and a link to that student's submissions.
    """
    if requester_role not in (UserRole.STUDENT.value, UserRole.FACULTY.value):
        raise Unauthorized(f"role {requester_role!r} cannot read the leaderboard")
    if source == "cache":
        rows = leaderboard_from_cache(session, n)
    elif source == "aggregate":
        rows = leaderboard_from_aggregate(session, n)
    else:
        raise ValueError(f"unknown leaderboard source {source!r}; expected one of {SOURCES}")

    if requester_role == UserRole.FACULTY.value:
        return [
            FacultyLeaderboardEntry(
                user_id=row.user_id,
                name=row.name,
                points=row.points,
                submissions_url=submissions_url(row.user_id),
            )
            for row in rows
        ]
    return [LeaderboardEntry(name=row.name, points=row.points) for row in rows]
