import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, func, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base

STATUS_ACTIVE = "active"
STATUS_PAUSED = "paused"
STATUS_COMPLETED = "completed"
STATUS_ABANDONED = "abandoned"

OPEN_STATUSES = (STATUS_ACTIVE, STATUS_PAUSED)
OPEN_STATUS_CLAUSE = "status IN ('active', 'paused')"


class FocusSession(Base):
    __tablename__ = "focus_sessions"

    user_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    duration_seconds: Mapped[int] = mapped_column(Integer, nullable=False)  # planned
    elapsed_seconds: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=STATUS_ACTIVE
    )  # active, paused, completed, abandoned
    started_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    ended_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    # Relationships
    user: Mapped["User"] = relationship(back_populates="focus_sessions")  # noqa: F821

    __table_args__ = (
        Index("ix_focus_sessions_user_status", "user_id", "status"),
        # At most one open session per user
        Index(
            "uq_focus_sessions_user_open",
            "user_id",
            unique=True,
            postgresql_where=text(OPEN_STATUS_CLAUSE),
            sqlite_where=text(OPEN_STATUS_CLAUSE),
        ),
    )
