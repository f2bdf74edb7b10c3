# Re-export models so external code can keep using: from app.models import User, Submission, ...
from .user import User, UserRole
from .activity_type import ActivityType
from .submission import Submission, SubmissionStatus
from .verification import Verification
from .points_cache import PointsCache, user_total_points

__all__ = [
    # identity
    "User", "UserRole",
    # submissions & audit trail
    "ActivityType", "Submission", "SubmissionStatus", "Verification",
    # derived totals
    "PointsCache",
    # helpers
    "user_total_points",
]
