import enum
from datetime import datetime, timezone

from sqlalchemy.orm import validates

from app.extensions import db
from app.security import hash_password, verify_password


class UserRole(str, enum.Enum):
    STUDENT = "student"
    FACULTY = "faculty"


class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    role = db.Column(db.String(20), nullable=False, default=UserRole.STUDENT.value)  # student|faculty
    department = db.Column(db.String(120), nullable=True)
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc), nullable=False)
    updated_at = db.Column(
        db.DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    submissions = db.relationship(
        "Submission",
        foreign_keys="Submission.user_id",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    points_cache = db.relationship(
        "PointsCache",
        back_populates="user",
        uselist=False,
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        db.CheckConstraint("role IN ('student', 'faculty')", name="ck_user_role"),
    )

    @validates("role")
    def _validate_role(self, key, value):
        value = UserRole(value).value
        # role is fixed for the lifetime of the account
        if self.role is not None and self.role != value:
            raise ValueError(f"role of user {self.id} cannot change from {self.role!r} to {value!r}")
        return value

    @validates("email")
    def _normalise_email(self, key, value):
        return value.strip().lower()

    def set_password(self, password: str):
        self.password_hash = hash_password(password)

    def check_password(self, password: str) -> bool:
        return verify_password(password, self.password_hash)

    @property
    def is_faculty(self) -> bool:
        return self.role == UserRole.FACULTY.value

    @property
    def is_student(self) -> bool:
        return self.role == UserRole.STUDENT.value

    def __repr__(self):
        return f"<User id={self.id} {self.name} role={self.role}>"
