from sqlalchemy import func, select

from app.models import ActivityType, Submission
from app.services.points import reconcile_points_cache
from seeds.setup_data import ACTIVITY_TYPE_FIXTURES, seed_submissions

from conftest import make_user


def test_demo_submissions_are_seeded_once(session, faculty):
    students = [make_user(session, f"Demo Student {i}", f"demo{i}@example.com") for i in range(1, 4)]
    activity_types = {fixture["key"]: ActivityType(**fixture) for fixture in ACTIVITY_TYPE_FIXTURES}
    session.add_all(activity_types.values())
    session.commit()
    users = {"faculty": faculty, "students": students}

    first = seed_submissions(users, activity_types, session=session)
    second = seed_submissions(users, activity_types, session=session)

    assert len(first) == 5
    assert second == []
    assert session.execute(select(func.count(Submission.id))).scalar_one() == 5
    assert reconcile_points_cache(session).consistent
