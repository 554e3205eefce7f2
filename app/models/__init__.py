from app.models.badge import BadgeDefinition, UserBadge
from app.models.base import Base
from app.models.daily_progress import DailyProgress
from app.models.focus_session import FocusSession
from app.models.job import Job
from app.models.refresh_token import RefreshToken
from app.models.streak import Streak
from app.models.user import User
from app.models.user_profile import UserProfile

__all__ = [
    "Base",
    "BadgeDefinition",
    "DailyProgress",
    "FocusSession",
    "Job",
    "RefreshToken",
    "Streak",
    "User",
    "UserBadge",
    "UserProfile",
]
