"""Signed, short-lived download links for submission evidence.

Submissions only store an opaque ``file_ref``; the bytes live in object
storage behind ``settings.STORAGE_BASE_URL``. A link is handed out only after
the requester has been checked against the submission.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from urllib.parse import quote

from app.config import settings
from app.errors import Unauthorized
from app.models import Submission, User
from app.security import decode_token, encode_token
from app.services.ledger import ensure_can_view


@dataclass(frozen=True)
class SignedDownload:
    url: str
    expires_at: datetime


def download_url(submission: Submission, requester: User, expires_in: int | None = None) -> SignedDownload:
    ensure_can_view(submission, requester)
    ttl = timedelta(seconds=expires_in or settings.DOWNLOAD_URL_EXPIRE_SECONDS)
    token = encode_token(
        {"typ": "download", "sub": str(requester.id), "sid": submission.id, "ref": submission.file_ref},
        ttl,
    )
    base = settings.STORAGE_BASE_URL.rstrip("/")
    return SignedDownload(
        url=f"{base}/{quote(submission.file_ref, safe='/')}?token={token}",
        expires_at=datetime.now(timezone.utc) + ttl,
    )


def resolve_download_token(token: str) -> str:
    """Return the file_ref a download token grants, or raise Unauthorized."""
    payload = decode_token(token)
    if not payload or payload.get("typ") != "download" or not payload.get("ref"):
        raise Unauthorized("download link is invalid or has expired")
    return payload["ref"]
