import logging

import sentry_sdk
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.exceptions import AppError
from app.schemas.common import fail

logger = logging.getLogger(__name__)


def _field_name(loc: tuple) -> str:
    # ("body", "email") -> "email"; ("query", "limit") -> "limit"
    parts = [str(p) for p in loc if p not in ("body", "query", "path", "header")]
    return ".".join(parts) or "request"


def format_validation_errors(errors: list[dict]) -> str:
    """Collapse pydantic errors into one readable message per field."""
    messages: list[str] = []
    seen: set[str] = set()
    for err in errors:
        field = _field_name(tuple(err.get("loc", ())))
        if field in seen:
            continue
        seen.add(field)

        err_type = err.get("type", "")
        ctx = err.get("ctx") or {}
        if err_type == "missing":
            message = f"{field} is required"
        elif err_type == "value_error" and "email" in err.get("msg", "").lower():
            message = f"{field} must be a valid email address"
        elif err_type == "string_too_short":
            message = f"{field} must be at least {ctx.get('min_length')} characters"
        elif err_type == "string_too_long":
            message = f"{field} must not exceed {ctx.get('max_length')} characters"
        elif err_type in ("greater_than_equal", "greater_than"):
            message = f"{field} must be at least {ctx.get('ge', ctx.get('gt'))}"
        elif err_type in ("less_than_equal", "less_than"):
            message = f"{field} must not exceed {ctx.get('le', ctx.get('lt'))}"
        elif err_type == "json_invalid":
            message = "invalid request body"
        else:
            message = f"{field} is invalid"
        messages.append(message)
    return "; ".join(messages)


def register_error_handlers(app: FastAPI):
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        sentry_sdk.capture_exception(exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=fail("internal server error"),
        )

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        return JSONResponse(
            status_code=exc.status_code,
            content=fail(exc.message),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content=fail(str(exc.detail)),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=fail(format_validation_errors(exc.errors())),
        )

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=fail(str(exc)),
        )
