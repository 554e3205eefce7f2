import secrets

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.database import get_db
from app.schemas.auth import (
    AuthResponse,
    ForgotPasswordRequest,
    LoginRequest,
    PasswordResetSession,
    PasswordResetValidated,
    RefreshRequest,
    RegisterRequest,
    ResetPasswordRequest,
    ValidateOTPRequest,
)
from app.schemas.common import APIResponse, ok
from app.services import auth_service

router = APIRouter(prefix="/auth", tags=["auth"])

OAUTH_STATE_COOKIE = "oauth_state"
OAUTH_STATE_MAX_AGE = 300


@router.post("/register", response_model=APIResponse[AuthResponse], status_code=201)
async def register(request: RegisterRequest, db: AsyncSession = Depends(get_db)):
    """Register a new account with email and password."""
    tokens = await auth_service.register_user(
        db=db,
        first_name=request.first_name,
        last_name=request.last_name,
        email=request.email,
        password=request.password,
        phone_number=request.phone_number,
    )
    return ok("user registered successfully", AuthResponse.model_validate(tokens, from_attributes=True))


@router.post("/login", response_model=APIResponse[AuthResponse])
async def login(request: LoginRequest, db: AsyncSession = Depends(get_db)):
    """Sign in with email and password."""
    tokens = await auth_service.login(db=db, email=request.email, password=request.password)
    return ok("login successful", AuthResponse.model_validate(tokens, from_attributes=True))


@router.post("/refresh", response_model=APIResponse[AuthResponse])
async def refresh(request: RefreshRequest, db: AsyncSession = Depends(get_db)):
    """Rotate refresh token and issue new access + refresh pair."""
    tokens = await auth_service.refresh(db, request.refresh_token)
    return ok("token refreshed successfully", AuthResponse.model_validate(tokens, from_attributes=True))


@router.post("/logout", response_model=APIResponse[None])
async def logout(request: RefreshRequest, db: AsyncSession = Depends(get_db)):
    await auth_service.logout(db, request.refresh_token)
    return ok("logout successful")


@router.get("/linkedin/login")
async def linkedin_login():
    """Redirect to LinkedIn's consent screen with a CSRF state cookie."""
    state = secrets.token_urlsafe(32)
    response = RedirectResponse(
        url=auth_service.linkedin_authorization_url(state),
        status_code=status.HTTP_302_FOUND,
    )
    response.set_cookie(
        OAUTH_STATE_COOKIE,
        state,
        max_age=OAUTH_STATE_MAX_AGE,
        httponly=True,
        secure=settings.ENVIRONMENT == "production",
        samesite="lax",
    )
    return response


# --- Password reset ---


@router.post("/forgot-password", response_model=APIResponse[PasswordResetSession])
async def forgot_password(
    request: ForgotPasswordRequest,
    req: Request,
    db: AsyncSession = Depends(get_db),
):
    data = await auth_service.start_password_reset(db, req.app.state.redis, request.email)
    return ok(
        "if the email is registered, a reset code has been sent",
        PasswordResetSession(**data),
    )


@router.post("/forgot-password/validate", response_model=APIResponse[PasswordResetValidated])
async def validate_otp(request: ValidateOTPRequest, req: Request):
    data = await auth_service.validate_password_reset_otp(
        req.app.state.redis, request.session_id, request.otp
    )
    return ok("OTP validated successfully", PasswordResetValidated(**data))


@router.post("/reset-password", response_model=APIResponse[None])
async def reset_password(
    request: ResetPasswordRequest,
    req: Request,
    db: AsyncSession = Depends(get_db),
):
    await auth_service.reset_password(
        db, req.app.state.redis, request.session_id, request.new_password
    )
    return ok("password reset successfully")
