from datetime import datetime, timezone

from app.extensions import db


class PointsCache(db.Model):
    __tablename__ = "points_cache"

    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    total_points = db.Column(db.Integer, nullable=False, default=0)
    updated_at = db.Column(
        db.DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    user = db.relationship("User", back_populates="points_cache")

    __table_args__ = (
        db.CheckConstraint("total_points >= 0", name="ck_points_cache_nonneg"),
        db.Index("ix_points_cache_total", "total_points"),
    )

    def __repr__(self):
        return f"<PointsCache user={self.user_id} total={self.total_points}>"


# Helper: cached total points for a user

def user_total_points(session, user_id: int) -> int:
    total = session.execute(
        db.select(PointsCache.total_points).where(PointsCache.user_id == user_id)
    ).scalar_one_or_none()
    return int(total or 0)
