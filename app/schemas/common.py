from typing import Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class APIResponse(BaseModel, Generic[T]):
    """Uniform envelope returned by every endpoint."""

    success: bool = True
    message: str | None = None
    data: T | None = None
    error: str | None = None


def ok(message: str, data=None) -> APIResponse:
    return APIResponse(success=True, message=message, data=data)


def fail(error: str) -> dict:
    return APIResponse(success=False, error=error).model_dump()
