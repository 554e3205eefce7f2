import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base

CRITERIA_STREAK = "streak"
CRITERIA_SESSIONS = "sessions"
CRITERIA_FOCUS_TIME = "focus_time"


class BadgeDefinition(Base):
    __tablename__ = "badge_definitions"

    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    description: Mapped[str | None] = mapped_column(String(500))
    icon_key: Mapped[str | None] = mapped_column(String(100))
    criteria_type: Mapped[str] = mapped_column(String(20), nullable=False)  # streak, sessions, focus_time
    criteria_value: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )


class UserBadge(Base):
    __tablename__ = "user_badges"

    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    badge_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("badge_definitions.id", ondelete="CASCADE"), nullable=False
    )
    earned_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    # Relationships
    badge: Mapped["BadgeDefinition"] = relationship(lazy="joined")

    __table_args__ = (
        UniqueConstraint("user_id", "badge_id", name="uq_user_badges_pair"),
    )
