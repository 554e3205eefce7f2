import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.dependencies import get_current_user
from app.models.focus_session import STATUS_COMPLETED
from app.schemas.auth import CurrentUser
from app.schemas.common import APIResponse, ok
from app.schemas.session import SessionEnd, SessionPause, SessionResponse, SessionStart
from app.services import focus_service

router = APIRouter(prefix="/sessions", tags=["sessions"])


@router.get("", response_model=APIResponse[list[SessionResponse]])
async def list_sessions(
    limit: int = Query(default=20),
    offset: int = Query(default=0, ge=0),
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    sessions = await focus_service.get_session_history(db, user.id, limit=limit, offset=offset)
    return ok(
        "session history retrieved successfully",
        [SessionResponse.model_validate(s) for s in sessions],
    )


@router.post("", response_model=APIResponse[SessionResponse], status_code=201)
async def start_session(
    data: SessionStart,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    session = await focus_service.start_session(db, user.id, data.duration_seconds)
    return ok("focus session started", SessionResponse.model_validate(session))


@router.get("/active", response_model=APIResponse[SessionResponse])
async def get_active_session(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    session = await focus_service.get_active_session(db, user.id)
    if session is None:
        return ok("no active session")
    return ok("active session retrieved", SessionResponse.model_validate(session))


@router.patch("/{session_id}/pause", response_model=APIResponse[SessionResponse])
async def pause_session(
    session_id: uuid.UUID,
    data: SessionPause,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    session = await focus_service.pause_session(db, user.id, session_id, data.elapsed_seconds)
    return ok("focus session paused", SessionResponse.model_validate(session))


@router.patch("/{session_id}/resume", response_model=APIResponse[SessionResponse])
async def resume_session(
    session_id: uuid.UUID,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    session = await focus_service.resume_session(db, user.id, session_id)
    return ok("focus session resumed", SessionResponse.model_validate(session))


@router.patch("/{session_id}/end", response_model=APIResponse[SessionResponse])
async def end_session(
    session_id: uuid.UUID,
    data: SessionEnd,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    session = await focus_service.end_session(
        db, user.id, session_id, data.elapsed_seconds,
        completed=data.status == STATUS_COMPLETED,
    )
    return ok("focus session ended", SessionResponse.model_validate(session))
