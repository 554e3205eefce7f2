from fastapi import Header, Request

from app.exceptions import UnauthorizedError
from app.schemas.auth import CurrentUser
from app.services.token_service import decode_access_token


async def get_current_user(
    request: Request,
    authorization: str | None = Header(default=None),
) -> CurrentUser:
    """Resolve the caller from an ``Authorization: Bearer <token>`` header."""
    if not authorization:
        raise UnauthorizedError("missing authorization header")

    parts = authorization.split(" ")
    if len(parts) != 2 or parts[0] != "Bearer" or not parts[1]:
        raise UnauthorizedError("invalid authorization header format")

    user = decode_access_token(parts[1])
    request.state.user_id = user.id
    request.state.user_email = user.email
    return user
