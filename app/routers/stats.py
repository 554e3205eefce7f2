from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.dependencies import get_current_user
from app.schemas.auth import CurrentUser
from app.schemas.common import APIResponse, ok
from app.schemas.stats import (
    BadgeDefinitionResponse,
    ProgressSummary,
    StreakResponse,
    UserBadgeResponse,
)
from app.services import gamification_service

router = APIRouter(tags=["stats"])


@router.get("/streaks", response_model=APIResponse[StreakResponse])
async def get_streak(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    streak = await gamification_service.get_streak(db, user.id)
    return ok("streak retrieved successfully", StreakResponse.model_validate(streak))


@router.get("/badges", response_model=APIResponse[list[BadgeDefinitionResponse]])
async def list_badges(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    badges = await gamification_service.list_badge_definitions(db)
    return ok(
        "badges retrieved successfully",
        [BadgeDefinitionResponse.model_validate(b) for b in badges],
    )


@router.get("/badges/me", response_model=APIResponse[list[UserBadgeResponse]])
async def list_my_badges(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    badges = await gamification_service.list_user_badges(db, user.id)
    return ok(
        "user badges retrieved successfully",
        [UserBadgeResponse(**b) for b in badges],
    )


@router.get("/progress", response_model=APIResponse[ProgressSummary])
async def get_progress(
    period: str = Query(default="weekly"),
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Focus totals for the current week, month or year."""
    summary = await gamification_service.get_progress_summary(db, user.id, period)
    return ok("progress retrieved successfully", ProgressSummary(**summary))
