from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.dependencies import get_db, require_faculty, require_student, require_user
from app.models import User
from app.schemas.submission import (
    DecisionForm,
    DownloadResponse,
    SubmissionCreate,
    SubmissionResponse,
    VerificationResponse,
)
from app.services import ledger, storage

router = APIRouter(prefix="/submissions", tags=["submissions"])


@router.post("/", response_model=SubmissionResponse, status_code=status.HTTP_201_CREATED, name="submissions.create")
def create_submission(
    form: SubmissionCreate,
    current_user: User = Depends(require_student),
    session: Session = Depends(get_db),
):
    return ledger.submit(
        session,
        user_id=current_user.id,
        title=form.title,
        claimed_points=form.claimed_points,
        file_ref=form.file_ref,
        activity_type_id=form.activity_type_id,
        description=form.description,
        metadata=form.metadata,
    )


@router.get("/", response_model=list[SubmissionResponse], name="submissions.list")
def list_submissions(
    user_id: Optional[int] = None,
    status_filter: Optional[str] = Query(default=None, alias="status", pattern="^(pending|verified|rejected)$"),
    current_user: User = Depends(require_user),
    session: Session = Depends(get_db),
):
    """Students only ever see their own submissions; faculty can filter by owner."""
    if not current_user.is_faculty:
        user_id = current_user.id
    return ledger.list_submissions(session, user_id=user_id, status=status_filter)


@router.get("/{submission_id}", response_model=SubmissionResponse, name="submissions.detail")
def get_submission(
    submission_id: int,
    current_user: User = Depends(require_user),
    session: Session = Depends(get_db),
):
    submission = ledger.get_submission(session, submission_id)
    ledger.ensure_can_view(submission, current_user)
    return submission


@router.post("/{submission_id}/decision", response_model=SubmissionResponse, name="submissions.decide")
def decide_submission(
    submission_id: int,
    form: DecisionForm,
    current_user: User = Depends(require_faculty),
    session: Session = Depends(get_db),
):
    return ledger.decide(
        session,
        submission_id=submission_id,
        faculty_id=current_user.id,
        decision=form.decision,
        awarded_points=form.awarded_points,
        notes=form.notes,
    )


@router.post("/{submission_id}/revision", response_model=SubmissionResponse, name="submissions.revise")
def revise_submission(
    submission_id: int,
    form: DecisionForm,
    current_user: User = Depends(require_faculty),
    session: Session = Depends(get_db),
):
    return ledger.revise_decision(
        session,
        submission_id=submission_id,
        faculty_id=current_user.id,
        decision=form.decision,
        awarded_points=form.awarded_points,
        notes=form.notes,
    )


@router.get(
    "/{submission_id}/verifications",
    response_model=list[VerificationResponse],
    name="submissions.verifications",
)
def submission_verifications(
    submission_id: int,
    current_user: User = Depends(require_user),
    session: Session = Depends(get_db),
):
    submission = ledger.get_submission(session, submission_id)
    ledger.ensure_can_view(submission, current_user)
    return ledger.verification_history(session, submission_id)


@router.get("/{submission_id}/download", response_model=DownloadResponse, name="submissions.download")
def submission_download(
    submission_id: int,
    current_user: User = Depends(require_user),
    session: Session = Depends(get_db),
):
    submission = ledger.get_submission(session, submission_id)
    signed = storage.download_url(submission, current_user)
    return DownloadResponse(url=signed.url, expires_at=signed.expires_at)
