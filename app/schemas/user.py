import uuid
from datetime import datetime

from pydantic import BaseModel, Field


class UserUpdate(BaseModel):
    first_name: str | None = Field(default=None, min_length=2, max_length=100)
    last_name: str | None = Field(default=None, min_length=2, max_length=100)
    phone_number: str | None = Field(default=None, min_length=10, max_length=20)


class ProfileCreate(BaseModel):
    full_name: str = Field(min_length=7, max_length=200)
    current_job: str = Field(min_length=5, max_length=200)
    experience_level: str = Field(min_length=5, max_length=200)


class ProfileUpdate(BaseModel):
    full_name: str | None = Field(default=None, min_length=7, max_length=200)
    current_job: str | None = Field(default=None, min_length=5, max_length=200)
    experience_level: str | None = Field(default=None, min_length=5, max_length=200)


class ProfileResponse(BaseModel):
    user_id: uuid.UUID
    full_name: str | None
    current_job: str | None
    experience_level: str | None
    cv_filename: str | None
    updated_at: datetime

    model_config = {"from_attributes": True}
