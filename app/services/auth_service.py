import json
import logging
import secrets
import unicodedata
import uuid
from datetime import datetime, timezone
from urllib.parse import urlencode

import bcrypt
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.exceptions import (
    BadRequestError,
    ConflictError,
    InvalidCredentialsError,
    InvalidTokenError,
    PasswordNoLowercaseError,
    PasswordNoNumberError,
    PasswordNoSpecialError,
    PasswordNoUppercaseError,
    PasswordTooLongError,
    PasswordTooShortError,
    UnauthorizedError,
)
from app.models.refresh_token import RefreshToken
from app.models.user import User
from app.services import token_service
from app.services.email_service import send_password_reset_otp

logger = logging.getLogger(__name__)

BCRYPT_COST = 12
MIN_PASSWORD_LENGTH = 8
MAX_PASSWORD_BYTES = 72  # bcrypt input limit

LINKEDIN_AUTHORIZE_URL = "https://www.linkedin.com/oauth/v2/authorization"
LINKEDIN_SCOPE = "r_liteprofile r_emailaddress"


def hash_password(password: str) -> str:
    """Hash a password using bcrypt."""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=BCRYPT_COST)).decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    """Verify a password against a bcrypt hash."""
    encoded = password.encode("utf-8")
    if len(encoded) > MAX_PASSWORD_BYTES:
        return False
    return bcrypt.checkpw(encoded, hashed.encode("utf-8"))


def validate_password(password: str) -> None:
    """Enforce the strength policy. Each character class is mandatory."""
    if len(password) < MIN_PASSWORD_LENGTH:
        raise PasswordTooShortError()
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise PasswordTooLongError()

    has_upper = has_lower = has_number = has_special = False
    for char in password:
        category = unicodedata.category(char)
        if char.isupper():
            has_upper = True
        elif char.islower():
            has_lower = True
        elif char.isnumeric():
            has_number = True
        elif category.startswith(("P", "S")):
            has_special = True

    if not has_upper:
        raise PasswordNoUppercaseError()
    if not has_lower:
        raise PasswordNoLowercaseError()
    if not has_number:
        raise PasswordNoNumberError()
    if not has_special:
        raise PasswordNoSpecialError()


async def issue_tokens(db: AsyncSession, user: User) -> dict:
    """Issue an access token and persist a fresh refresh token for the user."""
    access_token = token_service.create_access_token(user.id, user.email)
    refresh_token = token_service.generate_refresh_token()

    db.add(RefreshToken(
        user_id=user.id,
        token=refresh_token,
        expires_at=token_service.refresh_token_expiry(),
    ))
    await db.flush()

    return {
        "access_token": access_token,
        "refresh_token": refresh_token,
        "token_type": "bearer",
        "expires_in": settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        "user": user,
    }


async def register_user(
    db: AsyncSession,
    first_name: str,
    last_name: str,
    email: str,
    password: str,
    phone_number: str | None = None,
) -> dict:
    """Register a new user with email/password and sign them in."""
    validate_password(password)

    result = await db.execute(select(User.id).where(User.email == email))
    if result.scalar_one_or_none() is not None:
        raise ConflictError("email already exists")

    user = User(
        id=uuid.uuid4(),
        first_name=first_name,
        last_name=last_name,
        email=email,
        phone_number=phone_number,
        password_hash=hash_password(password),
        is_active=True,
    )
    db.add(user)
    await db.flush()
    await db.refresh(user)

    logger.info("Registered user %s", user.id)
    return await issue_tokens(db, user)


async def login(db: AsyncSession, email: str, password: str) -> dict:
    """Authenticate with email/password. Revokes every earlier refresh token."""
    result = await db.execute(select(User).where(User.email == email))
    user = result.scalar_one_or_none()

    if user is None or user.password_hash is None:
        raise InvalidCredentialsError()

    if not verify_password(password, user.password_hash):
        raise InvalidCredentialsError()

    await db.execute(delete(RefreshToken).where(RefreshToken.user_id == user.id))
    return await issue_tokens(db, user)


async def refresh(db: AsyncSession, refresh_token: str) -> dict:
    """Consume a refresh token and issue a new pair.

    The token is deleted in the same statement that checks it, so two
    requests presenting one token cannot both succeed.
    """
    result = await db.execute(
        delete(RefreshToken)
        .where(
            RefreshToken.token == refresh_token,
            RefreshToken.expires_at > datetime.now(timezone.utc),
        )
        .returning(RefreshToken.user_id)
        .execution_options(synchronize_session=False)
    )
    user_id = result.scalar_one_or_none()
    if user_id is None:
        raise InvalidTokenError()

    user = await db.get(User, user_id)
    if user is None:
        raise InvalidTokenError()

    return await issue_tokens(db, user)


async def logout(db: AsyncSession, refresh_token: str) -> None:
    await db.execute(delete(RefreshToken).where(RefreshToken.token == refresh_token))


# --- Password reset ---


def _reset_key(session_id: str) -> str:
    return f"forgotten-password-{session_id}"


def generate_otp() -> str:
    """Six-digit numeric one-time code."""
    return f"{secrets.randbelow(1_000_000):06d}"


async def start_password_reset(db: AsyncSession, redis_client, email: str) -> dict:
    """Create a short-lived OTP entry keyed by a fresh session id.

    Unknown addresses get a session id with nothing behind it so the
    response shape does not reveal which emails are registered.
    """
    session_id = str(uuid.uuid4())

    result = await db.execute(select(User).where(User.email == email))
    user = result.scalar_one_or_none()
    if user is None:
        logger.info("Password reset requested for unknown email")
        return {"session_id": session_id}

    otp = generate_otp()
    value = {
        "otp": otp,
        "email": user.email,
        "created_at": datetime.now(timezone.utc).isoformat(),
    }
    await redis_client.set(
        _reset_key(session_id),
        json.dumps(value),
        ex=settings.PASSWORD_RESET_TTL_SECONDS,
    )
    await send_password_reset_otp(user.email, otp)

    data = {"session_id": session_id}
    if settings.ENVIRONMENT != "production":
        data["otp"] = otp
    return data


async def _load_reset_entry(redis_client, session_id: str) -> dict | None:
    raw = await redis_client.get(_reset_key(session_id))
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except (TypeError, ValueError):
        logger.error("Corrupt password reset entry for session %s", session_id)
        return None


async def validate_password_reset_otp(redis_client, session_id: str, otp: str) -> dict:
    """Check the code and mark the reset session as validated."""
    value = await _load_reset_entry(redis_client, session_id)
    if value is None or not secrets.compare_digest(str(value.get("otp", "")), otp):
        raise BadRequestError("invalid OTP token")

    value["is_valid"] = True
    await redis_client.set(
        _reset_key(session_id),
        json.dumps(value),
        ex=settings.PASSWORD_RESET_TTL_SECONDS,
    )
    return {"session_id": session_id, "email": value["email"], "is_valid": True}


async def reset_password(
    db: AsyncSession, redis_client, session_id: str, new_password: str
) -> None:
    """Change the password of the user behind a validated reset session."""
    value = await _load_reset_entry(redis_client, session_id)
    if value is None:
        raise BadRequestError("invalid operation step")
    if value.get("is_valid") is not True:
        raise UnauthorizedError("unauthorized request access")

    validate_password(new_password)

    result = await db.execute(
        select(User).where(User.email == value["email"], User.is_active.is_(True))
    )
    user = result.scalar_one_or_none()
    if user is None:
        raise BadRequestError("invalid operation step")

    user.password_hash = hash_password(new_password)
    user.updated_at = datetime.now(timezone.utc)
    await db.flush()

    await redis_client.delete(_reset_key(session_id))
    logger.info("Password reset for user %s", user.id)


# --- LinkedIn OAuth ---


def linkedin_authorization_url(state: str) -> str:
    params = {
        "response_type": "code",
        "client_id": settings.LINKEDIN_CLIENT_ID,
        "redirect_uri": settings.LINKEDIN_CALLBACK_URL,
        "state": state,
        "scope": LINKEDIN_SCOPE,
    }
    return f"{LINKEDIN_AUTHORIZE_URL}?{urlencode(params)}"
