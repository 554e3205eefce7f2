import uuid
from datetime import date, datetime

from pydantic import BaseModel

from app.schemas.session import SessionResponse


class StreakResponse(BaseModel):
    user_id: uuid.UUID
    current_streak: int
    longest_streak: int
    last_session_date: date | None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}


class BadgeDefinitionResponse(BaseModel):
    id: uuid.UUID
    name: str
    description: str | None
    icon_key: str | None
    criteria_type: str  # streak, sessions, focus_time
    criteria_value: int
    created_at: datetime

    model_config = {"from_attributes": True}


class UserBadgeResponse(BaseModel):
    badge_id: uuid.UUID
    name: str
    description: str | None
    icon_key: str | None
    earned_at: datetime


class ProgressSummary(BaseModel):
    period: str  # weekly, monthly, yearly
    total_focus_seconds: int
    total_focus_hours: float
    sessions_completed: int
    days_active: int


class HomeScreenResponse(BaseModel):
    streak: StreakResponse
    active_session: SessionResponse | None
    weekly_progress: ProgressSummary
    recent_badges: list[UserBadgeResponse]
    total_badges: int
