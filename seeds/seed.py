from app.extensions import db
from app.services.points import reconcile_points_cache
from seeds.setup_data import seed_activity_types, seed_submissions, seed_users


def main():
    try:
        db.drop_all()
        db.create_all()

        users = seed_users()
        activity_types = seed_activity_types()
        seed_submissions(users, activity_types)
        reconcile_points_cache(db.session)

        print("Database seeded. Faculty login: faculty@example.com / Faculty123!")
    finally:
        db.remove_session()


if __name__ == '__main__':
    main()
