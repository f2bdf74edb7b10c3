from app.extensions import db


class ActivityType(db.Model):
    __tablename__ = "activity_types"

    id = db.Column(db.Integer, primary_key=True)
    key = db.Column(db.String(64), nullable=False, unique=True, index=True)
    title = db.Column(db.String(200), nullable=False)
    default_points = db.Column(db.Integer, nullable=False, default=0)
    description = db.Column(db.Text, nullable=True)

    __table_args__ = (
        db.CheckConstraint("default_points >= 0", name="ck_activity_type_points_nonneg"),
    )

    def __repr__(self):
        return f"<ActivityType {self.key} points={self.default_points}>"
