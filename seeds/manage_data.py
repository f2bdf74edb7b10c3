from __future__ import annotations

import argparse
import logging
import shutil
import sys
from datetime import datetime
from pathlib import Path
from typing import Dict

ROOT_PATH = Path(__file__).resolve().parents[1]
if str(ROOT_PATH) not in sys.path:
    sys.path.insert(0, str(ROOT_PATH))

from sqlalchemy.engine.url import make_url

from app.config import settings
from app.errors import LedgerError
from app.extensions import db
from app.main import configure_logging
from app.services import ledger
from app.services.leaderboard import leaderboard_from_aggregate, leaderboard_from_cache
from app.services.points import reconcile_points_cache
from seeds.setup_data import seed_activity_types, seed_submissions, seed_users

log = logging.getLogger("seeds.manage_data")


def _sqlite_database_path() -> Path | None:
    url = make_url(settings.SQLALCHEMY_DATABASE_URI)
    if not url.drivername.startswith("sqlite"):
        return None

    database = url.database
    if not database or database == ":memory:":
        return None

    db_path = Path(database)
    if not db_path.is_absolute():
        db_path = Path(settings.ROOT_PATH) / db_path
    return db_path


def reset_database(backup: bool = True) -> Dict[str, str]:
    db.dispose()

    sqlite_path = _sqlite_database_path()
    backup_path = None

    if sqlite_path and sqlite_path.exists() and backup:
        backups_dir = Path(settings.ROOT_PATH) / "backups"
        backups_dir.mkdir(parents=True, exist_ok=True)
        backup_path = backups_dir / f"{sqlite_path.stem}_{datetime.now().strftime('%Y%m%d_%H%M%S')}{sqlite_path.suffix}"
        shutil.copy2(sqlite_path, backup_path)

    if sqlite_path and sqlite_path.exists():
        sqlite_path.unlink()
    elif not sqlite_path:
        db.drop_all()

    db.create_all()

    return {
        "database": str(sqlite_path) if sqlite_path else settings.SQLALCHEMY_DATABASE_URI,
        "backup": str(backup_path) if backup_path else "",
    }


def seed_demo_data() -> None:
    users = seed_users()
    activity_types = seed_activity_types()
    seed_submissions(users, activity_types)


def print_leaderboard(limit: int, source: str) -> None:
    reader = leaderboard_from_cache if source == "cache" else leaderboard_from_aggregate
    rows = reader(db.session, limit)
    if not rows:
        print("No students yet.")
        return
    width = max(len(row.name) for row in rows)
    for rank, row in enumerate(rows, start=1):
        print(f"{rank:>3}. {row.name:<{width}}  {row.points:>6}  (user {row.user_id})")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Database lifecycle, seed data and points-cache utilities.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("init-db", help="Create any missing tables.")

    reset_db = subparsers.add_parser("reset-database", help="Backup, delete, and recreate the database.")
    reset_db.add_argument("--no-backup", action="store_true", help="Skip creating a backup before reset.")

    subparsers.add_parser("seed-demo-data", help="Seed demo faculty, students, activity types and submissions.")
    subparsers.add_parser("reset-and-seed", help="Full reset + demo seed data.")

    create_user = subparsers.add_parser("create-user", help="Create a student or faculty account.")
    create_user.add_argument("email")
    create_user.add_argument("name")
    create_user.add_argument("--role", choices=["student", "faculty"], default="student")
    create_user.add_argument("--department")
    create_user.add_argument("--password", required=True)

    subparsers.add_parser("reconcile", help="Rebuild the points cache from verified submissions.")

    board = subparsers.add_parser("leaderboard", help="Print the leaderboard.")
    board.add_argument("--limit", type=int, default=settings.LEADERBOARD_DEFAULT_LIMIT)
    board.add_argument("--source", choices=["cache", "aggregate"], default="cache")

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    configure_logging()

    try:
        if args.command == "init-db":
            db.create_all()
            print(f"Tables ready in {settings.SQLALCHEMY_DATABASE_URI}")

        elif args.command == "reset-database":
            result = reset_database(backup=not args.no_backup)
            print(f"Database recreated at: {result['database']}")
            if result["backup"]:
                print(f"Backup created at: {result['backup']}")

        elif args.command == "seed-demo-data":
            seed_demo_data()
            print("Demo data seeded. Faculty login: faculty@example.com / Faculty123!")

        elif args.command == "reset-and-seed":
            result = reset_database(backup=True)
            print(f"Database reset complete: {result['database']}")
            seed_demo_data()
            print("Demo data seeded. Faculty login: faculty@example.com / Faculty123!")

        elif args.command == "create-user":
            user = ledger.create_user(
                db.session,
                name=args.name,
                email=args.email,
                password=args.password,
                role=args.role,
                department=args.department,
            )
            print(f"Created {user.role} {user.email} (id {user.id})")

        elif args.command == "reconcile":
            report = reconcile_points_cache(db.session)
            print(
                f"Checked {report.users_checked} users, created {report.rows_created} cache rows, "
                f"corrected {len(report.drift)} totals."
            )
            for item in report.drift:
                print(f"  user {item.user_id}: {item.cached_points} -> {item.actual_points}")

        elif args.command == "leaderboard":
            print_leaderboard(args.limit, args.source)
    except LedgerError as exc:
        log.error("%s", exc.detail)
        return 1
    finally:
        db.remove_session()
    return 0


if __name__ == "__main__":
    sys.exit(main())
