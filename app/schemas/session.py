import uuid
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field


class SessionStart(BaseModel):
    duration_seconds: int = Field(ge=60, le=86400)


class SessionPause(BaseModel):
    elapsed_seconds: int = Field(ge=0)


class SessionEnd(BaseModel):
    elapsed_seconds: int = Field(ge=0)
    status: Literal["completed", "abandoned"]


class SessionResponse(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    duration_seconds: int
    elapsed_seconds: int
    status: str
    started_at: datetime
    ended_at: datetime | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
