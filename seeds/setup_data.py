from __future__ import annotations

from typing import Any, Dict, List

from app.extensions import db
from app.models import ActivityType, Submission, User
from app.security import hash_password
from app.services import ledger

from seeds.utils import get_or_create


ACTIVITY_TYPE_FIXTURES: List[Dict[str, Any]] = [
    {"key": "hackathon", "title": "Hackathon participation", "default_points": 40,
     "description": "Took part in a hackathon with a submitted project."},
    {"key": "certification", "title": "Online certification", "default_points": 30,
     "description": "Completed an accredited online course with a certificate."},
    {"key": "volunteering", "title": "Community volunteering", "default_points": 20,
     "description": "Logged volunteering hours with a signed letter."},
    {"key": "publication", "title": "Paper or article", "default_points": 60,
     "description": "Published a paper, article or conference poster."},
]


def seed_users() -> Dict[str, Any]:
    def build_user(password: str, **kwargs: Any) -> User:
        user, created = get_or_create(
            User,
            email=kwargs["email"],
            defaults={**kwargs, "password_hash": hash_password(password)},
        )
        if not created:
            user.name = kwargs["name"]
            user.department = kwargs.get("department")
        return user

    faculty = build_user(
        email="faculty@example.com",
        name="Fran Faculty",
        role="faculty",
        department="Computer Science",
        password="Faculty123!",
    )
    students = [
        build_user(email="s1@example.com", name="Kai Nguyen", role="student",
                   department="Computer Science", password="ChangeMe123!"),
        build_user(email="s2@example.com", name="Mia Singh", role="student",
                   department="Electrical Engineering", password="ChangeMe123!"),
        build_user(email="s3@example.com", name="Noah Smith", role="student",
                   department="Mathematics", password="ChangeMe123!"),
    ]

    db.session.commit()
    return {"faculty": faculty, "students": students}


def seed_activity_types() -> Dict[str, ActivityType]:
    activity_types = {}
    for fixture in ACTIVITY_TYPE_FIXTURES:
        activity_type, _ = get_or_create(ActivityType, key=fixture["key"], defaults=fixture)
        activity_types[fixture["key"]] = activity_type
    db.session.commit()
    return activity_types


def seed_submissions(
    users: Dict[str, Any], activity_types: Dict[str, ActivityType], session=None
) -> List[Submission]:
    """Demo claims in every state, decided through the ledger so the cache stays consistent.

    Does nothing once any submission exists, so re-running the seed is safe.
    """
    if session is None:
        session = db.session
    if session.query(Submission).first() is not None:
        return []
    faculty = users["faculty"]
    s1, s2, s3 = users["students"]

    hackathon = ledger.submit(session, s1.id, "Smart India Hackathon finalist", None,
                              "evidence/s1/sih-certificate.pdf", activity_type_id=activity_types["hackathon"].id)
    course = ledger.submit(session, s1.id, "Coursera: Machine Learning", 50,
                           "evidence/s1/coursera-ml.pdf", activity_type_id=activity_types["certification"].id)
    volunteer = ledger.submit(session, s2.id, "Blood donation camp", None,
                              "evidence/s2/blood-camp.jpg", activity_type_id=activity_types["volunteering"].id)
    paper = ledger.submit(session, s2.id, "IEEE student paper", 60,
                          "evidence/s2/ieee-paper.pdf", activity_type_id=activity_types["publication"].id)
    pending = ledger.submit(session, s3.id, "Chess club captain", 25, "evidence/s3/chess.pdf",
                            description="Captained the university chess team for one season.")

    ledger.decide(session, hackathon.id, faculty.id, "verified", awarded_points=40)
    ledger.decide(session, course.id, faculty.id, "verified", awarded_points=35, notes="Audit track, partial credit.")
    ledger.decide(session, volunteer.id, faculty.id, "rejected", notes="Letter is unsigned.")
    ledger.decide(session, paper.id, faculty.id, "verified", awarded_points=60)

    return [hackathon, course, volunteer, paper, pending]
