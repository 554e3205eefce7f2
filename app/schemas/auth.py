import uuid
from datetime import datetime

from pydantic import BaseModel, EmailStr, Field


class CurrentUser(BaseModel):
    """Identity carried by a validated access token."""

    id: uuid.UUID
    email: str


class RegisterRequest(BaseModel):
    first_name: str = Field(min_length=2, max_length=100)
    last_name: str = Field(min_length=2, max_length=100)
    email: EmailStr
    phone_number: str | None = Field(default=None, min_length=10, max_length=20)
    password: str = Field(min_length=8, max_length=72)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)


class RefreshRequest(BaseModel):
    refresh_token: str = Field(min_length=1)


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class ValidateOTPRequest(BaseModel):
    session_id: str = Field(min_length=1)
    otp: str = Field(min_length=1)


class ResetPasswordRequest(BaseModel):
    session_id: str = Field(min_length=1)
    new_password: str = Field(min_length=8, max_length=72)


class UserResponse(BaseModel):
    id: uuid.UUID
    first_name: str
    last_name: str
    email: str
    phone_number: str | None
    linkedin_id: str | None
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class AuthResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserResponse


class PasswordResetSession(BaseModel):
    session_id: str
    otp: str | None = None  # only echoed outside production


class PasswordResetValidated(BaseModel):
    session_id: str
    email: str
    is_valid: bool
