import uuid
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import NotFoundError
from app.models.job import Job


async def list_jobs(db: AsyncSession, user_id: uuid.UUID) -> list[Job]:
    result = await db.execute(
        select(Job).where(Job.user_id == user_id).order_by(Job.created_at.desc())
    )
    return list(result.scalars().all())


async def get_job(db: AsyncSession, user_id: uuid.UUID, job_id: uuid.UUID) -> Job:
    result = await db.execute(
        select(Job).where(Job.id == job_id, Job.user_id == user_id)
    )
    job = result.scalar_one_or_none()
    if job is None:
        raise NotFoundError("job not found")
    return job


async def create_job(db: AsyncSession, user_id: uuid.UUID, data: dict) -> Job:
    job = Job(user_id=user_id, **data)
    db.add(job)
    await db.flush()
    await db.refresh(job)
    return job


async def update_job(
    db: AsyncSession, user_id: uuid.UUID, job_id: uuid.UUID, data: dict
) -> Job:
    job = await get_job(db, user_id, job_id)

    for key, value in data.items():
        if value is not None:
            setattr(job, key, value)
    job.updated_at = datetime.now(timezone.utc)

    await db.flush()
    await db.refresh(job)
    return job


async def delete_job(db: AsyncSession, user_id: uuid.UUID, job_id: uuid.UUID) -> None:
    job = await get_job(db, user_id, job_id)
    await db.delete(job)
    await db.flush()
