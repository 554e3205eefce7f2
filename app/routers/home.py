from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.dependencies import get_current_user
from app.schemas.auth import CurrentUser
from app.schemas.common import APIResponse, ok
from app.schemas.stats import HomeScreenResponse
from app.services import gamification_service

router = APIRouter(prefix="/home", tags=["home"])


@router.get("", response_model=APIResponse[HomeScreenResponse])
async def get_home(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Streak, active session, weekly progress and recent badges in one call."""
    data = await gamification_service.get_home_screen(db, user.id)
    return ok(
        "home screen data retrieved successfully",
        HomeScreenResponse.model_validate(data, from_attributes=True),
    )
