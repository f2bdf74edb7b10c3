from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from app.errors import Conflict, InvalidTransition, Unauthorized, raise_not_found, raise_user_not_permitted
from app.extensions import unit_of_work
from app.models import ActivityType, Submission, SubmissionStatus, User, UserRole, Verification
from app.services.points import apply_points_delta

log = logging.getLogger(__name__)

DECISIONS = (SubmissionStatus.VERIFIED.value, SubmissionStatus.REJECTED.value)


def _is_points(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def _normalise_decision(decision: str | SubmissionStatus, awarded_points: Optional[int]) -> str:
    value = decision.value if isinstance(decision, SubmissionStatus) else str(decision)
    if value not in DECISIONS:
        raise InvalidTransition(f"decision must be one of {', '.join(DECISIONS)}, not {value!r}")
    if value == SubmissionStatus.VERIFIED.value and not _is_points(awarded_points):
        raise InvalidTransition("a verified decision needs a non-negative integer awarded_points")
    if value == SubmissionStatus.REJECTED.value and awarded_points is not None:
        raise InvalidTransition("a rejected decision cannot award points")
    return value


def get_user(session: Session, user_id: int) -> User:
    user = session.get(User, user_id)
    if user is None:
        raise_not_found("User", user_id)
    return user


def get_faculty(session: Session, faculty_id: int) -> User:
    faculty = get_user(session, faculty_id)
    if not faculty.is_faculty:
        raise Unauthorized(f"user {faculty_id} is not faculty and cannot decide submissions")
    return faculty


def get_submission(session: Session, submission_id: int) -> Submission:
    submission = session.get(Submission, submission_id)
    if submission is None:
        raise_not_found("Submission", submission_id)
    return submission


def ensure_can_view(submission: Submission, user: User) -> None:
    """Owners and faculty may see a submission; other students may not."""
    if user.is_faculty or submission.user_id == user.id:
        return
    raise_user_not_permitted()


def submit(
    session: Session,
    user_id: int,
    title: str,
    claimed_points: Optional[int],
    file_ref: str,
    activity_type_id: Optional[int] = None,
    description: Optional[str] = None,
    metadata: Optional[dict] = None,
    *,
    commit: bool = True,
) -> Submission:
    """
    Record a student's claim as a pending submission.
    The points cache is not touched until a faculty member verifies it.
    """
    get_user(session, user_id)

    activity_type = None
    if activity_type_id is not None:
        activity_type = session.get(ActivityType, activity_type_id)
        if activity_type is None:
            raise_not_found("ActivityType", activity_type_id)

    if claimed_points is None and activity_type is not None:
        claimed_points = activity_type.default_points
    if not _is_points(claimed_points):
        raise ValueError("claimed_points must be a non-negative integer")
    if not title or not title.strip():
        raise ValueError("title is required")
    if not file_ref or not file_ref.strip():
        raise ValueError("file_ref is required")

    submission = Submission(
        user_id=user_id,
        activity_type_id=activity_type_id,
        title=title.strip(),
        description=description,
        claimed_points=claimed_points,
        file_ref=file_ref.strip(),
        status=SubmissionStatus.PENDING.value,
        verified_points=None,
        extra=dict(metadata or {}),
        revision=0,
    )
    session.add(submission)
    if commit:
        session.commit()
        session.refresh(submission)
    else:
        session.flush()
    log.info("Submission %s created by user %s (claimed %s)", submission.id, user_id, claimed_points)
    return submission


def _record_decision(
    session: Session,
    submission: Submission,
    faculty: User,
    decision: str,
    awarded_points: Optional[int],
    notes: Optional[str],
    expected_status: Optional[str],
) -> None:
    """Conditionally move the submission to ``decision`` and append the audit row.

    The UPDATE only matches while the row still carries the revision (and, for
    first decisions, the pending status) that was read; a caller that lost the
    race sees zero rows and nothing is written.
    """
    now = datetime.now(timezone.utc)
    guard = [Submission.id == submission.id, Submission.revision == submission.revision]
    if expected_status is not None:
        guard.append(Submission.status == expected_status)

    result = session.execute(
        update(Submission)
        .where(*guard)
        .values(
            status=decision,
            verified_points=awarded_points if decision == SubmissionStatus.VERIFIED.value else None,
            verified_by_id=faculty.id,
            verified_at=now,
            faculty_notes=notes,
            revision=Submission.revision + 1,
        )
        .execution_options(synchronize_session="evaluate")
    )
    if result.rowcount != 1:
        raise InvalidTransition(f"submission {submission.id} was changed by another decision")

    session.add(Verification(
        submission_id=submission.id,
        faculty_id=faculty.id,
        decision=decision,
        awarded_points=awarded_points,
        notes=notes,
        created_at=now,
    ))
    session.flush()


def decide(
    session: Session,
    submission_id: int,
    faculty_id: int,
    decision: str | SubmissionStatus,
    awarded_points: Optional[int] = None,
    notes: Optional[str] = None,
    *,
    commit: bool = True,
) -> Submission:
    """
    Verify or reject a pending submission as one atomic unit: status change,
    audit row and (when verified) cache increment all apply, or none do.
    Deciding an already decided submission raises InvalidTransition; use
    revise_decision for appeals.
    """
    with unit_of_work(session, commit=commit):
        decision = _normalise_decision(decision, awarded_points)
        faculty = get_faculty(session, faculty_id)
        submission = get_submission(session, submission_id)
        if not submission.is_pending:
            raise InvalidTransition(
                f"submission {submission_id} is already {submission.status}; only pending submissions can be decided"
            )

        _record_decision(
            session, submission, faculty, decision, awarded_points, notes,
            expected_status=SubmissionStatus.PENDING.value,
        )
        if decision == SubmissionStatus.VERIFIED.value:
            apply_points_delta(session, submission.user_id, awarded_points)

    session.refresh(submission)
    log.info(
        "Submission %s %s by faculty %s (points=%s)",
        submission.id, decision, faculty_id, awarded_points,
    )
    return submission


def revise_decision(
    session: Session,
    submission_id: int,
    faculty_id: int,
    decision: str | SubmissionStatus,
    awarded_points: Optional[int] = None,
    notes: Optional[str] = None,
    *,
    commit: bool = True,
) -> Submission:
    """
    Replace the outcome of an already decided submission (appeal flow).
    Writes exactly one more audit row and moves the cached total by the
    difference between the old and new verified points.
    """
    with unit_of_work(session, commit=commit):
        decision = _normalise_decision(decision, awarded_points)
        faculty = get_faculty(session, faculty_id)
        submission = get_submission(session, submission_id)
        if submission.is_pending:
            raise InvalidTransition(f"submission {submission_id} is still pending; decide it first")

        previous_status = submission.status
        previous_points = submission.verified_points or 0
        _record_decision(
            session, submission, faculty, decision, awarded_points, notes,
            expected_status=previous_status,
        )
        new_points = awarded_points if decision == SubmissionStatus.VERIFIED.value else 0
        apply_points_delta(session, submission.user_id, new_points - previous_points)

    session.refresh(submission)
    log.info(
        "Submission %s revised from %s to %s by faculty %s (delta=%s)",
        submission.id, previous_status, decision, faculty_id, new_points - previous_points,
    )
    return submission


def list_submissions(
    session: Session,
    user_id: Optional[int] = None,
    status: Optional[str] = None,
) -> list[Submission]:
    query = select(Submission)
    if user_id is not None:
        query = query.where(Submission.user_id == user_id)
    if status is not None:
        if status not in {s.value for s in SubmissionStatus}:
            raise ValueError(f"unknown status {status!r}")
        query = query.where(Submission.status == status)
    return list(session.execute(query.order_by(Submission.submitted_at.desc(), Submission.id.desc())).scalars())


def verification_history(session: Session, submission_id: int) -> list[Verification]:
    """Every decision ever made on a submission, oldest first."""
    get_submission(session, submission_id)
    return list(session.execute(
        select(Verification)
        .where(Verification.submission_id == submission_id)
        .order_by(Verification.created_at, Verification.id)
    ).scalars())


def create_user(
    session: Session,
    name: str,
    email: str,
    password: str,
    role: str = UserRole.STUDENT.value,
    department: Optional[str] = None,
    *,
    commit: bool = True,
) -> User:
    existing = session.execute(select(User).where(User.email == email.strip().lower())).scalar_one_or_none()
    if existing is not None:
        raise Conflict(f"a user with email {email!r} already exists")
    user = User(name=name.strip(), email=email, role=role, department=department)
    user.set_password(password)
    session.add(user)
    if commit:
        session.commit()
        session.refresh(user)
    else:
        session.flush()
    return user
