import uuid
from datetime import date, datetime

from pydantic import BaseModel, Field


class JobCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    company_name: str | None = Field(default=None, max_length=255)
    location: str | None = Field(default=None, max_length=255)
    platform: str | None = Field(default=None, max_length=100)  # linkedin, indeed, website, ...
    link: str | None = Field(default=None, max_length=1024)
    status: str = Field(default="applied", min_length=1, max_length=50)
    notes: str | None = None
    date_applied: date | None = None  # YYYY-MM-DD


class JobUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    company_name: str | None = Field(default=None, max_length=255)
    location: str | None = Field(default=None, max_length=255)
    platform: str | None = Field(default=None, max_length=100)
    link: str | None = Field(default=None, max_length=1024)
    status: str | None = Field(default=None, min_length=1, max_length=50)
    notes: str | None = None
    date_applied: date | None = None


class JobResponse(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    title: str
    company_name: str | None
    location: str | None
    platform: str | None
    link: str | None
    status: str
    notes: str | None
    date_applied: date | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
