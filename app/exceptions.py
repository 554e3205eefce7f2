from fastapi import status


class AppError(Exception):
    """Domain error carrying the HTTP status it maps to."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    message: str = "internal server error"

    def __init__(self, message: str | None = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    message = "resource not found"


class ConflictError(AppError):
    status_code = status.HTTP_409_CONFLICT
    message = "resource already exists"


class UnauthorizedError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "unauthorized"


class InvalidCredentialsError(UnauthorizedError):
    message = "invalid credentials"


class InvalidTokenError(UnauthorizedError):
    message = "invalid token"


class TokenExpiredError(InvalidTokenError):
    message = "token expired"


class BadRequestError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "invalid input"


class WeakPasswordError(BadRequestError):
    message = "password is too weak"


class PasswordTooShortError(WeakPasswordError):
    message = "password must be at least 8 characters long"


class PasswordNoUppercaseError(WeakPasswordError):
    message = "password must contain at least one uppercase letter"


class PasswordNoLowercaseError(WeakPasswordError):
    message = "password must contain at least one lowercase letter"


class PasswordNoNumberError(WeakPasswordError):
    message = "password must contain at least one number"


class PasswordNoSpecialError(WeakPasswordError):
    message = "password must contain at least one special character"


class PasswordTooLongError(WeakPasswordError):
    message = "password must be at most 72 bytes long"


class InvalidSessionTransitionError(BadRequestError):
    message = "invalid session status transition"


class FileTooLargeError(BadRequestError):
    message = "file size exceeds limit"
