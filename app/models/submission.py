import enum
from datetime import datetime, timezone

from app.extensions import db


class SubmissionStatus(str, enum.Enum):
    PENDING = "pending"
    VERIFIED = "verified"
    REJECTED = "rejected"


class Submission(db.Model):
    __tablename__ = "submissions"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    activity_type_id = db.Column(
        db.Integer, db.ForeignKey("activity_types.id", ondelete="SET NULL"), nullable=True
    )
    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    claimed_points = db.Column(db.Integer, nullable=False, default=0)
    file_ref = db.Column(db.String(1000), nullable=False)  # storage locator, never the bytes
    status = db.Column(db.String(20), nullable=False, default=SubmissionStatus.PENDING.value)
    verified_points = db.Column(db.Integer, nullable=True)
    submitted_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc), nullable=False)
    verified_by_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    verified_at = db.Column(db.DateTime, nullable=True)
    faculty_notes = db.Column(db.Text, nullable=True)
    extra = db.Column("metadata", db.JSON, nullable=False, default=dict)
    # bumped by every decision; conditional updates compare against it
    revision = db.Column(db.Integer, nullable=False, default=0)

    user = db.relationship("User", foreign_keys=[user_id], back_populates="submissions")
    verified_by = db.relationship("User", foreign_keys=[verified_by_id])
    activity_type = db.relationship("ActivityType")
    verifications = db.relationship(
        "Verification",
        back_populates="submission",
        order_by="Verification.id",
        passive_deletes="all",
    )

    __table_args__ = (
        db.CheckConstraint("status IN ('pending', 'verified', 'rejected')", name="ck_submission_status"),
        db.CheckConstraint("claimed_points >= 0", name="ck_submission_claimed_nonneg"),
        db.CheckConstraint(
            "(status = 'verified' AND verified_points IS NOT NULL AND verified_points >= 0)"
            " OR (status <> 'verified' AND verified_points IS NULL)",
            name="ck_submission_verified_points",
        ),
        db.Index("ix_submission_user_status", "user_id", "status"),
        db.Index("ix_submission_submitted_at", "submitted_at"),
    )

    @property
    def is_pending(self) -> bool:
        return self.status == SubmissionStatus.PENDING.value

    def __repr__(self):
        return f"<Submission id={self.id} user={self.user_id} status={self.status}>"
