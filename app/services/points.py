"""Maintenance of the per-user points cache.

``points_cache`` is a projection of the submissions table: for every user it
holds the sum of ``verified_points`` over that user's verified submissions.
It is only ever written through :func:`apply_points_delta` (inside a decision
transaction) or rebuilt wholesale by :func:`reconcile_points_cache`.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone

from sqlalchemy import func, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from app.errors import Conflict, ConsistencyDrift
from app.extensions import unit_of_work
from app.models import PointsCache, Submission, SubmissionStatus, User

log = logging.getLogger(__name__)

_UPSERT_DIALECTS = {"sqlite": sqlite.insert, "postgresql": postgresql.insert}


def apply_points_delta(session: Session, user_id: int, delta: int) -> None:
    """Atomically add ``delta`` to a user's cached total, creating the row if needed.

    The increment happens in SQL (``total_points = total_points + :delta``) so
    concurrent decisions for the same user never lose an update. Does not commit.
    A negative delta only ever updates: the verification that earned those
    points created the row.
    """
    if delta == 0:
        return
    now = datetime.now(timezone.utc)
    insert = _UPSERT_DIALECTS.get(session.get_bind().dialect.name)
    if delta > 0 and insert is not None:
        # the proposed row is CHECKed before the conflict is resolved, so it must hold delta itself
        stmt = insert(PointsCache).values(user_id=user_id, total_points=delta, updated_at=now)
        stmt = stmt.on_conflict_do_update(
            index_elements=[PointsCache.user_id],
            set_={"total_points": PointsCache.total_points + delta, "updated_at": now},
        )
        session.execute(stmt)
        _expire_cached_row(session, user_id)
        return

    result = session.execute(
        update(PointsCache)
        .where(PointsCache.user_id == user_id)
        .values(total_points=PointsCache.total_points + delta, updated_at=now)
        .execution_options(synchronize_session="evaluate")
    )
    if result.rowcount:
        return
    if delta > 0:
        session.add(PointsCache(user_id=user_id, total_points=delta, updated_at=now))
        session.flush()
    else:
        log.warning(
            "No points cache row for user %s while applying %s; left for reconciliation", user_id, delta
        )


def _expire_cached_row(session: Session, user_id: int) -> None:
    # the upsert bypasses the unit of work, so drop any stale copy held by the session
    for obj in list(session.identity_map.values()):
        if isinstance(obj, PointsCache) and obj.user_id == user_id:
            session.expire(obj)


def verified_totals(session: Session) -> dict[int, int]:
    """Authoritative per-user totals computed from verified submissions."""
    rows = session.execute(
        select(Submission.user_id, func.sum(Submission.verified_points))
        .where(Submission.status == SubmissionStatus.VERIFIED.value)
        .group_by(Submission.user_id)
    ).all()
    return {user_id: int(total or 0) for user_id, total in rows}


def verified_points_total(session: Session, user_id: int) -> int:
    total = session.execute(
        select(func.coalesce(func.sum(Submission.verified_points), 0)).where(
            Submission.user_id == user_id,
            Submission.status == SubmissionStatus.VERIFIED.value,
        )
    ).scalar_one()
    return int(total)


@dataclass
class ReconcileReport:
    users_checked: int = 0
    rows_created: int = 0
    drift: list[ConsistencyDrift] = field(default_factory=list)

    @property
    def consistent(self) -> bool:
        return not self.drift


RECONCILE_ATTEMPTS = 5


def _cached_total(session: Session, user_id: int) -> int | None:
    return session.execute(
        select(PointsCache.total_points).where(PointsCache.user_id == user_id)
    ).scalar_one_or_none()


def _store_total(session: Session, user_id: int, current: int | None, expected: int, now: datetime) -> bool:
    """Write ``expected`` only if the cached value is still ``current``.

    Returns False when a decision moved the cache since it was read.
    """
    if current is None:
        insert = _UPSERT_DIALECTS.get(session.get_bind().dialect.name)
        if insert is None:
            session.add(PointsCache(user_id=user_id, total_points=expected, updated_at=now))
            session.flush()
            return True
        stmt = insert(PointsCache).values(user_id=user_id, total_points=expected, updated_at=now)
        result = session.execute(stmt.on_conflict_do_nothing(index_elements=[PointsCache.user_id]))
        return result.rowcount == 1

    result = session.execute(
        update(PointsCache)
        .where(PointsCache.user_id == user_id, PointsCache.total_points == current)
        .values(total_points=expected, updated_at=now)
        .execution_options(synchronize_session="evaluate")
    )
    return result.rowcount == 1


def reconcile_points_cache(session: Session, *, commit: bool = True) -> ReconcileReport:
    """
    Rebuild every cached total from the submissions table.
    Users with no verified points end up with a zero row. Running it again
    straight away changes nothing. Mismatches are logged and returned, never raised.

    The cache is read before the submissions. Every decision that changes a
    total also moves the cache, so a write that finds the cache unchanged
    cannot overwrite a decision committed in between; when it finds it moved,
    the user is read again.
    """
    report = ReconcileReport()
    try:
        with unit_of_work(session, commit=commit):
            cached = dict(session.execute(select(PointsCache.user_id, PointsCache.total_points)).all())
            actual = verified_totals(session)
            user_ids = session.execute(select(User.id).order_by(User.id)).scalars().all()
            now = datetime.now(timezone.utc)

            for user_id in user_ids:
                report.users_checked += 1
                current = cached.get(user_id)
                expected = actual.get(user_id, 0)
                for _ in range(RECONCILE_ATTEMPTS):
                    if current == expected:
                        break
                    if _store_total(session, user_id, current, expected, now):
                        if current is None:
                            report.rows_created += 1
                        if current is not None or expected != 0:
                            report.drift.append(ConsistencyDrift(user_id, current, expected))
                        break
                    current = _cached_total(session, user_id)
                    expected = verified_points_total(session, user_id)
                else:
                    raise Conflict(f"points cache for user {user_id} kept changing during reconciliation")
    except Exception:
        log.exception("Points cache reconciliation rolled back")
        raise

    for item in report.drift:
        log.warning(
            "Points cache drift for user %s: cached=%s actual=%s (corrected)",
            item.user_id, item.cached_points, item.actual_points,
        )
    log.info(
        "Reconciled points cache: %d users checked, %d rows created, %d corrected",
        report.users_checked, report.rows_created, len(report.drift),
    )
    return report
