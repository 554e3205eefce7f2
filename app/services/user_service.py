import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.exceptions import BadRequestError, ConflictError, FileTooLargeError, NotFoundError
from app.models.user import User
from app.models.user_profile import UserProfile

logger = logging.getLogger(__name__)


async def get_user(db: AsyncSession, user_id: uuid.UUID) -> User:
    user = await db.get(User, user_id)
    if user is None:
        raise NotFoundError("user not found")
    return user


async def update_user(db: AsyncSession, user_id: uuid.UUID, data: dict) -> User:
    user = await get_user(db, user_id)

    for key, value in data.items():
        if value is not None:
            setattr(user, key, value)
    user.updated_at = datetime.now(timezone.utc)

    await db.flush()
    await db.refresh(user)
    return user


async def _find_profile(db: AsyncSession, user_id: uuid.UUID) -> UserProfile | None:
    result = await db.execute(select(UserProfile).where(UserProfile.user_id == user_id))
    return result.scalar_one_or_none()


async def get_profile(db: AsyncSession, user_id: uuid.UUID) -> UserProfile:
    profile = await _find_profile(db, user_id)
    if profile is None:
        raise NotFoundError("profile not found")
    return profile


async def create_profile(db: AsyncSession, user_id: uuid.UUID, data: dict) -> UserProfile:
    if await _find_profile(db, user_id) is not None:
        raise ConflictError("profile already exists")

    profile = UserProfile(user_id=user_id, **data)
    db.add(profile)
    await db.flush()
    await db.refresh(profile)
    return profile


async def update_profile(db: AsyncSession, user_id: uuid.UUID, data: dict) -> UserProfile:
    profile = await get_profile(db, user_id)

    for key, value in data.items():
        if value is not None:
            setattr(profile, key, value)
    profile.updated_at = datetime.now(timezone.utc)

    await db.flush()
    await db.refresh(profile)
    return profile


async def upload_cv(
    db: AsyncSession,
    user_id: uuid.UUID,
    filename: str | None,
    content_type: str | None,
    content: bytes,
) -> UserProfile:
    """Store the raw CV bytes on the user's profile, creating it if needed."""
    if not content:
        raise BadRequestError("cv file is empty")
    if len(content) > settings.MAX_CV_SIZE_BYTES:
        raise FileTooLargeError()

    profile = await _find_profile(db, user_id)
    if profile is None:
        profile = UserProfile(user_id=user_id)
        db.add(profile)

    profile.cv_data = content
    profile.cv_filename = filename
    profile.cv_content_type = content_type
    profile.updated_at = datetime.now(timezone.utc)

    await db.flush()
    await db.refresh(profile)
    logger.info("Stored CV (%d bytes) for user %s", len(content), user_id)
    return profile
