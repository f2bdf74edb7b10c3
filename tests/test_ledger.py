import pytest
from sqlalchemy import func, select

from app.errors import InvalidTransition, NotFound, Unauthorized
from app.models import ActivityType, PointsCache, Submission, Verification, user_total_points
from app.services import ledger
from app.services.points import verified_points_total


def _submit(session, user, points=50, title="Hackathon finalist"):
    return ledger.submit(session, user.id, title, points, f"evidence/{user.id}/{title}.pdf")


def _verification_count(session, submission_id=None):
    query = select(func.count(Verification.id))
    if submission_id is not None:
        query = query.where(Verification.submission_id == submission_id)
    return session.execute(query).scalar_one()


def test_submit_creates_pending_claim(session, student):
    submission = _submit(session, student, points=50)

    assert submission.status == "pending"
    assert submission.verified_points is None
    assert submission.claimed_points == 50
    assert submission.revision == 0
    assert session.get(PointsCache, student.id) is None
    assert user_total_points(session, student.id) == 0


def test_submit_uses_activity_type_default_points(session, student):
    activity_type = ActivityType(key="hackathon", title="Hackathon", default_points=40)
    session.add(activity_type)
    session.commit()

    submission = ledger.submit(
        session, student.id, "Hack the Valley", None, "evidence/hack.pdf",
        activity_type_id=activity_type.id, metadata={"team": "Null Pointers"},
    )

    assert submission.claimed_points == 40
    assert submission.activity_type_id == activity_type.id
    assert submission.extra == {"team": "Null Pointers"}


def test_submit_unknown_user_or_activity_type(session, student):
    with pytest.raises(NotFound):
        ledger.submit(session, 999, "Ghost", 10, "evidence/ghost.pdf")
    with pytest.raises(NotFound):
        ledger.submit(session, student.id, "Ghost", 10, "evidence/ghost.pdf", activity_type_id=42)


def test_submit_rejects_negative_claim(session, student):
    with pytest.raises(ValueError):
        ledger.submit(session, student.id, "Negative", -5, "evidence/neg.pdf")


def test_verify_updates_submission_audit_and_cache(session, student, faculty):
    submission = _submit(session, student, points=50)

    decided = ledger.decide(session, submission.id, faculty.id, "verified", awarded_points=40, notes="Partial credit")

    assert decided.status == "verified"
    assert decided.verified_points == 40
    assert decided.verified_by_id == faculty.id
    assert decided.verified_at is not None
    assert decided.faculty_notes == "Partial credit"
    assert decided.revision == 1

    history = ledger.verification_history(session, submission.id)
    assert len(history) == 1
    assert history[0].decision == "verified"
    assert history[0].awarded_points == 40
    assert history[0].faculty_id == faculty.id
    assert user_total_points(session, student.id) == 40


def test_reject_leaves_points_untouched(session, student, faculty):
    submission = _submit(session, student)

    decided = ledger.decide(session, submission.id, faculty.id, "rejected", notes="Certificate unreadable")

    assert decided.status == "rejected"
    assert decided.verified_points is None
    history = ledger.verification_history(session, submission.id)
    assert [(v.decision, v.awarded_points) for v in history] == [("rejected", None)]
    assert user_total_points(session, student.id) == 0


def test_two_verified_submissions_accumulate(session, student, faculty):
    first = _submit(session, student, title="Hackathon")
    second = _submit(session, student, title="Certification")

    ledger.decide(session, first.id, faculty.id, "verified", awarded_points=40)
    ledger.decide(session, second.id, faculty.id, "verified", awarded_points=35)

    assert user_total_points(session, student.id) == 75
    assert verified_points_total(session, student.id) == 75


def test_second_decision_is_an_invalid_transition(session, student, faculty):
    submission = _submit(session, student)
    ledger.decide(session, submission.id, faculty.id, "verified", awarded_points=40)

    with pytest.raises(InvalidTransition):
        ledger.decide(session, submission.id, faculty.id, "verified", awarded_points=40)
    with pytest.raises(InvalidTransition):
        ledger.decide(session, submission.id, faculty.id, "rejected")

    assert _verification_count(session, submission.id) == 1
    assert user_total_points(session, student.id) == 40


@pytest.mark.parametrize(
    "decision, awarded_points",
    [
        ("verified", None),
        ("verified", -1),
        ("verified", 2.5),
        ("verified", True),
        ("rejected", 10),
        ("pending", None),
        ("approved", 10),
    ],
)
def test_decision_and_points_must_agree(session, student, faculty, decision, awarded_points):
    submission = _submit(session, student)

    with pytest.raises(InvalidTransition):
        ledger.decide(session, submission.id, faculty.id, decision, awarded_points=awarded_points)

    refreshed = session.get(Submission, submission.id)
    assert refreshed.status == "pending"
    assert refreshed.verified_points is None
    assert _verification_count(session) == 0
    assert user_total_points(session, student.id) == 0


def test_only_faculty_can_decide(session, student, other_student):
    submission = _submit(session, student)

    with pytest.raises(Unauthorized):
        ledger.decide(session, submission.id, other_student.id, "verified", awarded_points=10)
    with pytest.raises(NotFound):
        ledger.decide(session, submission.id, 999, "verified", awarded_points=10)
    assert _verification_count(session) == 0


def test_decide_unknown_submission(session, faculty):
    with pytest.raises(NotFound):
        ledger.decide(session, 12345, faculty.id, "rejected")


def test_failed_cache_write_rolls_back_whole_decision(session, student, faculty, monkeypatch):
    submission = _submit(session, student)

    def broken_increment(*args, **kwargs):
        raise RuntimeError("cache unavailable")

    monkeypatch.setattr(ledger, "apply_points_delta", broken_increment)
    with pytest.raises(RuntimeError):
        ledger.decide(session, submission.id, faculty.id, "verified", awarded_points=40)

    refreshed = session.get(Submission, submission.id)
    assert refreshed.status == "pending"
    assert refreshed.verified_points is None
    assert refreshed.revision == 0
    assert _verification_count(session) == 0
    assert user_total_points(session, student.id) == 0


def test_failed_decision_without_commit_keeps_the_callers_work(session, student, faculty, monkeypatch):
    submission = _submit(session, student)
    session.add(ActivityType(key="volunteering", title="Volunteering", default_points=20))

    def broken_increment(*args, **kwargs):
        raise RuntimeError("cache unavailable")

    monkeypatch.setattr(ledger, "apply_points_delta", broken_increment)
    with pytest.raises(RuntimeError):
        ledger.decide(session, submission.id, faculty.id, "verified", awarded_points=40, commit=False)
    session.commit()

    assert session.execute(select(ActivityType.key)).scalars().all() == ["volunteering"]
    refreshed = session.get(Submission, submission.id)
    assert refreshed.status == "pending"
    assert refreshed.revision == 0
    assert _verification_count(session) == 0


def test_decision_without_commit_joins_the_callers_transaction(session, student, faculty):
    submission = _submit(session, student)
    session.add(ActivityType(key="volunteering", title="Volunteering", default_points=20))

    ledger.decide(session, submission.id, faculty.id, "verified", awarded_points=40, commit=False)
    assert user_total_points(session, student.id) == 40
    session.rollback()

    assert session.execute(select(ActivityType.key)).scalars().all() == []
    assert session.get(Submission, submission.id).status == "pending"
    assert _verification_count(session) == 0
    assert user_total_points(session, student.id) == 0


def test_revise_applies_only_the_delta(session, student, faculty):
    submission = _submit(session, student)
    ledger.decide(session, submission.id, faculty.id, "verified", awarded_points=40)

    revised = ledger.revise_decision(session, submission.id, faculty.id, "verified", awarded_points=25)
    assert revised.verified_points == 25
    assert revised.revision == 2
    assert user_total_points(session, student.id) == 25

    rejected = ledger.revise_decision(session, submission.id, faculty.id, "rejected", notes="Forged")
    assert rejected.status == "rejected"
    assert rejected.verified_points is None
    assert user_total_points(session, student.id) == 0

    restored = ledger.revise_decision(session, submission.id, faculty.id, "verified", awarded_points=30)
    assert restored.status == "verified"
    assert user_total_points(session, student.id) == 30

    history = ledger.verification_history(session, submission.id)
    assert [(v.decision, v.awarded_points) for v in history] == [
        ("verified", 40),
        ("verified", 25),
        ("rejected", None),
        ("verified", 30),
    ]


def test_revise_requires_a_prior_decision(session, student, faculty):
    submission = _submit(session, student)

    with pytest.raises(InvalidTransition):
        ledger.revise_decision(session, submission.id, faculty.id, "verified", awarded_points=10)
    assert _verification_count(session) == 0


def test_list_submissions_filters(session, student, other_student, faculty):
    mine = _submit(session, student, title="Mine")
    theirs = _submit(session, other_student, title="Theirs")
    ledger.decide(session, theirs.id, faculty.id, "rejected")

    assert [s.id for s in ledger.list_submissions(session, user_id=student.id)] == [mine.id]
    assert [s.id for s in ledger.list_submissions(session, status="rejected")] == [theirs.id]
    assert {s.id for s in ledger.list_submissions(session)} == {mine.id, theirs.id}
    with pytest.raises(ValueError):
        ledger.list_submissions(session, status="approved")


def test_ensure_can_view(session, student, other_student, faculty):
    submission = _submit(session, student)

    ledger.ensure_can_view(submission, student)
    ledger.ensure_can_view(submission, faculty)
    with pytest.raises(Unauthorized):
        ledger.ensure_can_view(submission, other_student)
