import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import ConflictError, InvalidSessionTransitionError, NotFoundError
from app.models.focus_session import (
    OPEN_STATUSES,
    STATUS_ABANDONED,
    STATUS_ACTIVE,
    STATUS_COMPLETED,
    STATUS_PAUSED,
    FocusSession,
)
from app.services import gamification_service

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_LIMIT = 20
MAX_HISTORY_LIMIT = 100


async def get_active_session(db: AsyncSession, user_id: uuid.UUID) -> FocusSession | None:
    """The user's active or paused session, if any."""
    result = await db.execute(
        select(FocusSession)
        .where(FocusSession.user_id == user_id, FocusSession.status.in_(OPEN_STATUSES))
        .order_by(FocusSession.started_at.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def get_session_history(
    db: AsyncSession,
    user_id: uuid.UUID,
    limit: int = DEFAULT_HISTORY_LIMIT,
    offset: int = 0,
) -> list[FocusSession]:
    if limit <= 0 or limit > MAX_HISTORY_LIMIT:
        limit = DEFAULT_HISTORY_LIMIT
    offset = max(offset, 0)

    result = await db.execute(
        select(FocusSession)
        .where(FocusSession.user_id == user_id)
        .order_by(FocusSession.started_at.desc())
        .limit(limit)
        .offset(offset)
    )
    return list(result.scalars().all())


async def _get_owned_session(
    db: AsyncSession, user_id: uuid.UUID, session_id: uuid.UUID
) -> FocusSession:
    result = await db.execute(
        select(FocusSession).where(
            FocusSession.id == session_id, FocusSession.user_id == user_id
        )
    )
    session = result.scalar_one_or_none()
    if session is None:
        raise NotFoundError("focus session not found")
    return session


async def start_session(
    db: AsyncSession, user_id: uuid.UUID, duration_seconds: int
) -> FocusSession:
    if await get_active_session(db, user_id) is not None:
        raise ConflictError("a focus session is already active")

    now = datetime.now(timezone.utc)
    session = FocusSession(
        user_id=user_id,
        duration_seconds=duration_seconds,
        elapsed_seconds=0,
        status=STATUS_ACTIVE,
        started_at=now,
    )
    db.add(session)
    try:
        await db.flush()
    except IntegrityError:
        # Another open session was inserted concurrently
        await db.rollback()
        raise ConflictError("a focus session is already active")
    await db.refresh(session)

    logger.info("User %s started focus session %s", user_id, session.id)
    return session


async def pause_session(
    db: AsyncSession, user_id: uuid.UUID, session_id: uuid.UUID, elapsed_seconds: int
) -> FocusSession:
    session = await _get_owned_session(db, user_id, session_id)
    if session.status != STATUS_ACTIVE:
        raise InvalidSessionTransitionError()

    session.elapsed_seconds = elapsed_seconds
    session.status = STATUS_PAUSED
    session.updated_at = datetime.now(timezone.utc)

    await db.flush()
    await db.refresh(session)
    return session


async def resume_session(
    db: AsyncSession, user_id: uuid.UUID, session_id: uuid.UUID
) -> FocusSession:
    session = await _get_owned_session(db, user_id, session_id)
    if session.status != STATUS_PAUSED:
        raise InvalidSessionTransitionError()

    session.status = STATUS_ACTIVE
    session.updated_at = datetime.now(timezone.utc)

    await db.flush()
    await db.refresh(session)
    return session


async def end_session(
    db: AsyncSession,
    user_id: uuid.UUID,
    session_id: uuid.UUID,
    elapsed_seconds: int,
    completed: bool,
) -> FocusSession:
    """Close a session. Completion bookkeeping runs after the close is committed."""
    session = await _get_owned_session(db, user_id, session_id)
    if session.status not in OPEN_STATUSES:
        raise InvalidSessionTransitionError()

    now = datetime.now(timezone.utc)
    session.elapsed_seconds = elapsed_seconds
    session.status = STATUS_COMPLETED if completed else STATUS_ABANDONED
    session.ended_at = now
    session.updated_at = now
    await db.commit()

    if completed:
        await gamification_service.record_completion(db, user_id, elapsed_seconds, now)

    await db.refresh(session)
    logger.info("User %s ended focus session %s as %s", user_id, session.id, session.status)
    return session
