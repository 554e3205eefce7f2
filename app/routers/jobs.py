import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.dependencies import get_current_user
from app.schemas.auth import CurrentUser
from app.schemas.common import APIResponse, ok
from app.schemas.job import JobCreate, JobResponse, JobUpdate
from app.services import job_service

router = APIRouter(prefix="/jobs", tags=["jobs"])


@router.get("", response_model=APIResponse[list[JobResponse]])
async def list_jobs(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    jobs = await job_service.list_jobs(db, user.id)
    return ok("jobs retrieved successfully", [JobResponse.model_validate(j) for j in jobs])


@router.post("", response_model=APIResponse[JobResponse], status_code=201)
async def create_job(
    data: JobCreate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    job = await job_service.create_job(db, user.id, data.model_dump())
    return ok("job created successfully", JobResponse.model_validate(job))


@router.get("/{job_id}", response_model=APIResponse[JobResponse])
async def get_job(
    job_id: uuid.UUID,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    job = await job_service.get_job(db, user.id, job_id)
    return ok("job retrieved successfully", JobResponse.model_validate(job))


@router.put("/{job_id}", response_model=APIResponse[JobResponse])
async def update_job(
    job_id: uuid.UUID,
    data: JobUpdate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    job = await job_service.update_job(
        db, user.id, job_id, data.model_dump(exclude_unset=True)
    )
    return ok("job updated successfully", JobResponse.model_validate(job))


@router.delete("/{job_id}", response_model=APIResponse[None])
async def delete_job(
    job_id: uuid.UUID,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await job_service.delete_job(db, user.id, job_id)
    return ok("job deleted successfully")
