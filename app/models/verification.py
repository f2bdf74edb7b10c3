from datetime import datetime, timezone

from sqlalchemy import event

from app.errors import AuditImmutableError
from app.extensions import db


class Verification(db.Model):
    """One faculty decision on one submission. Rows are append-only."""

    __tablename__ = "verifications"

    id = db.Column(db.Integer, primary_key=True)
    submission_id = db.Column(
        db.Integer, db.ForeignKey("submissions.id", ondelete="CASCADE"), nullable=False, index=True
    )
    # audit rows pin their reviewer: a faculty account with decisions cannot be deleted
    faculty_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="RESTRICT"), nullable=False)
    decision = db.Column(db.String(20), nullable=False)  # verified|rejected
    awarded_points = db.Column(db.Integer, nullable=True)
    notes = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc), nullable=False)

    submission = db.relationship("Submission", back_populates="verifications")
    faculty = db.relationship("User")

    __table_args__ = (
        db.CheckConstraint(
            "(decision = 'verified' AND awarded_points IS NOT NULL AND awarded_points >= 0)"
            " OR (decision = 'rejected' AND awarded_points IS NULL)",
            name="ck_verification_decision_points",
        ),
        db.Index("ix_verification_created_at", "created_at"),
    )

    def __repr__(self):
        return f"<Verification id={self.id} submission={self.submission_id} {self.decision}>"


@event.listens_for(Verification, "before_update")
def _refuse_update(mapper, connection, target):
    raise AuditImmutableError(f"verification {target.id} is part of the audit trail and cannot be changed")


@event.listens_for(Verification, "before_delete")
def _refuse_delete(mapper, connection, target):
    raise AuditImmutableError(f"verification {target.id} is part of the audit trail and cannot be deleted")
