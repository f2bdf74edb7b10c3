from datetime import timedelta
from urllib.parse import parse_qs, urlparse

import pytest

from app.config import settings
from app.errors import Unauthorized
from app.security import create_access_token, encode_token
from app.services import ledger
from app.services.storage import download_url, resolve_download_token


@pytest.fixture
def submission(session, student):
    return ledger.submit(session, student.id, "Certificate", 30, "evidence/kai/ml certificate.pdf")


def _token(url: str) -> str:
    return parse_qs(urlparse(url).query)["token"][0]


def test_owner_gets_signed_url(submission, student):
    signed = download_url(submission, student)

    assert signed.url.startswith(f"{settings.STORAGE_BASE_URL}/evidence/kai/ml%20certificate.pdf?token=")
    assert resolve_download_token(_token(signed.url)) == "evidence/kai/ml certificate.pdf"


def test_faculty_can_download(submission, faculty):
    signed = download_url(submission, faculty, expires_in=60)
    assert resolve_download_token(_token(signed.url)) == submission.file_ref


def test_other_students_cannot_download(submission, other_student):
    with pytest.raises(Unauthorized):
        download_url(submission, other_student)


def test_expired_or_foreign_tokens_are_refused():
    expired = encode_token({"typ": "download", "ref": "evidence/a.pdf"}, timedelta(seconds=-1))
    with pytest.raises(Unauthorized):
        resolve_download_token(expired)

    access_token = create_access_token(data={"sub": "1"})
    with pytest.raises(Unauthorized):
        resolve_download_token(access_token)

    with pytest.raises(Unauthorized):
        resolve_download_token("not-a-token")
