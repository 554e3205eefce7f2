import uuid
from datetime import datetime, timedelta, timezone

from jose import ExpiredSignatureError, JWTError, jwt

from app.config import settings
from app.exceptions import InvalidTokenError, TokenExpiredError
from app.schemas.auth import CurrentUser


def create_access_token(
    user_id: str | uuid.UUID,
    email: str,
    expires_delta: timedelta | None = None,
) -> str:
    """Issue a signed, time-limited access token carrying user id and email."""
    now = datetime.now(timezone.utc)
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    payload = {
        "sub": str(user_id),
        "email": email,
        "type": "access",
        "jti": str(uuid.uuid4()),
        "iat": now,
        "exp": now + expires_delta,
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str, secret: str | None = None) -> CurrentUser:
    """Verify an access token and return the identity it carries."""
    try:
        payload = jwt.decode(
            token,
            secret or settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
        )
    except ExpiredSignatureError:
        raise TokenExpiredError()
    except JWTError:
        raise InvalidTokenError()

    if payload.get("type") != "access":
        raise InvalidTokenError()

    try:
        return CurrentUser(id=uuid.UUID(payload["sub"]), email=payload["email"])
    except (KeyError, ValueError):
        raise InvalidTokenError()


def generate_refresh_token() -> str:
    """Opaque refresh token; validity lives server-side."""
    return str(uuid.uuid4())


def refresh_token_expiry() -> datetime:
    return datetime.now(timezone.utc) + timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)
