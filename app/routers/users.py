from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.database import get_db
from app.dependencies import get_current_user
from app.schemas.auth import CurrentUser, UserResponse
from app.schemas.common import APIResponse, ok
from app.schemas.user import ProfileCreate, ProfileResponse, ProfileUpdate, UserUpdate
from app.services import user_service

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=APIResponse[UserResponse])
async def get_me(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Return the currently authenticated user."""
    found = await user_service.get_user(db, user.id)
    return ok("user retrieved successfully", UserResponse.model_validate(found))


@router.put("/me", response_model=APIResponse[UserResponse])
async def update_me(
    data: UserUpdate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    updated = await user_service.update_user(db, user.id, data.model_dump(exclude_unset=True))
    return ok("user updated successfully", UserResponse.model_validate(updated))


@router.get("/profile", response_model=APIResponse[ProfileResponse])
async def get_profile(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    profile = await user_service.get_profile(db, user.id)
    return ok("profile retrieved successfully", ProfileResponse.model_validate(profile))


@router.post("/profile", response_model=APIResponse[ProfileResponse], status_code=201)
async def create_profile(
    data: ProfileCreate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    profile = await user_service.create_profile(db, user.id, data.model_dump())
    return ok("profile created successfully", ProfileResponse.model_validate(profile))


@router.patch("/profile", response_model=APIResponse[ProfileResponse])
async def update_profile(
    data: ProfileUpdate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    profile = await user_service.update_profile(db, user.id, data.model_dump(exclude_unset=True))
    return ok("profile updated successfully", ProfileResponse.model_validate(profile))


@router.post("/upload/cv", response_model=APIResponse[ProfileResponse])
async def upload_cv(
    file: UploadFile = File(...),
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    # One byte past the limit is enough to know it is too large
    content = await file.read(settings.MAX_CV_SIZE_BYTES + 1)
    profile = await user_service.upload_cv(
        db, user.id, file.filename, file.content_type, content
    )
    return ok("cv uploaded successfully", ProfileResponse.model_validate(profile))
