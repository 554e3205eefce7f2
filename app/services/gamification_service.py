import logging
import uuid
from datetime import date, datetime, timedelta, timezone

import sentry_sdk
from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.badge import (
    CRITERIA_FOCUS_TIME,
    CRITERIA_SESSIONS,
    CRITERIA_STREAK,
    BadgeDefinition,
    UserBadge,
)
from app.models.daily_progress import DailyProgress
from app.models.streak import Streak

logger = logging.getLogger(__name__)

EPOCH = date(1970, 1, 1)
HOME_RECENT_BADGES = 6


def next_streak(current: int, last_date: date | None, today: date) -> int:
    """Streak length after a completion on ``today``."""
    if last_date is None:
        return 1

    diff = (today - last_date).days
    if diff == 0:
        return current
    if diff == 1:
        return current + 1
    return 1


def resolve_period(period: str, now: datetime) -> tuple[str, datetime]:
    """Map a period name to the start of the window containing ``now``."""
    midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)

    if period == "monthly":
        return period, midnight.replace(day=1)
    if period == "yearly":
        return period, midnight.replace(month=1, day=1)

    # isoweekday: Monday=1 .. Sunday=7
    return "weekly", midnight - timedelta(days=now.isoweekday() - 1)


# --- Daily progress ---


async def add_daily_progress(
    db: AsyncSession,
    user_id: uuid.UUID,
    day: date,
    focus_seconds: int,
    sessions: int = 1,
) -> None:
    """Add to the (user, day) counters, creating the row on first use."""
    stmt = (
        update(DailyProgress)
        .where(DailyProgress.user_id == user_id, DailyProgress.date == day)
        .values(
            total_focus_seconds=DailyProgress.total_focus_seconds + focus_seconds,
            sessions_completed=DailyProgress.sessions_completed + sessions,
        )
        .execution_options(synchronize_session=False)
    )
    result = await db.execute(stmt)
    if result.rowcount:
        return

    db.add(DailyProgress(
        user_id=user_id,
        date=day,
        total_focus_seconds=focus_seconds,
        sessions_completed=sessions,
    ))
    try:
        await db.flush()
    except IntegrityError:
        # Row created concurrently; fall back to the additive update
        await db.rollback()
        await db.execute(stmt)


async def _summarize(
    db: AsyncSession, user_id: uuid.UUID, start: date, end: date
) -> dict:
    result = await db.execute(
        select(
            func.coalesce(func.sum(DailyProgress.total_focus_seconds), 0).label("focus_seconds"),
            func.coalesce(func.sum(DailyProgress.sessions_completed), 0).label("sessions"),
            func.count(func.distinct(DailyProgress.date)).label("days_active"),
        ).where(
            DailyProgress.user_id == user_id,
            DailyProgress.date >= start,
            DailyProgress.date <= end,
        )
    )
    row = result.one()
    return {
        "total_focus_seconds": int(row.focus_seconds),
        "sessions_completed": int(row.sessions),
        "days_active": int(row.days_active),
    }


async def get_progress_summary(
    db: AsyncSession,
    user_id: uuid.UUID,
    period: str = "weekly",
    now: datetime | None = None,
) -> dict:
    now = now or datetime.now(timezone.utc)
    period, start = resolve_period(period, now)

    summary = await _summarize(db, user_id, start.date(), now.date())
    summary["period"] = period
    summary["total_focus_hours"] = summary["total_focus_seconds"] / 3600
    return summary


# --- Streaks ---


async def get_streak(db: AsyncSession, user_id: uuid.UUID) -> Streak:
    result = await db.execute(select(Streak).where(Streak.user_id == user_id))
    streak = result.scalar_one_or_none()
    if streak is None:
        # Not added to the session; a zeroed placeholder for display only
        return Streak(user_id=user_id, current_streak=0, longest_streak=0, last_session_date=None)
    return streak


async def update_streak(db: AsyncSession, user_id: uuid.UUID, today: date) -> Streak:
    result = await db.execute(select(Streak).where(Streak.user_id == user_id))
    streak = result.scalar_one_or_none()
    if streak is None:
        streak = Streak(user_id=user_id, current_streak=0, longest_streak=0)
        db.add(streak)

    current = next_streak(streak.current_streak, streak.last_session_date, today)
    streak.current_streak = current
    streak.longest_streak = max(streak.longest_streak, current)
    streak.last_session_date = today

    await db.flush()
    return streak


# --- Badges ---


async def list_badge_definitions(db: AsyncSession) -> list[BadgeDefinition]:
    result = await db.execute(
        select(BadgeDefinition).order_by(
            BadgeDefinition.criteria_type, BadgeDefinition.criteria_value
        )
    )
    return list(result.scalars().all())


async def list_user_badges(
    db: AsyncSession, user_id: uuid.UUID, limit: int | None = None
) -> list[dict]:
    query = (
        select(UserBadge)
        .where(UserBadge.user_id == user_id)
        .order_by(UserBadge.earned_at.desc())
    )
    if limit is not None:
        query = query.limit(limit)
    result = await db.execute(query)

    return [
        {
            "badge_id": ub.badge_id,
            "name": ub.badge.name,
            "description": ub.badge.description,
            "icon_key": ub.badge.icon_key,
            "earned_at": ub.earned_at,
        }
        for ub in result.unique().scalars().all()
    ]


async def count_user_badges(db: AsyncSession, user_id: uuid.UUID) -> int:
    result = await db.execute(
        select(func.count(UserBadge.id)).where(UserBadge.user_id == user_id)
    )
    return result.scalar_one()


async def award_badge(db: AsyncSession, user_id: uuid.UUID, badge_id: uuid.UUID) -> bool:
    """Insert a (user, badge) pair. Returns False if it was already held."""
    db.add(UserBadge(
        user_id=user_id,
        badge_id=badge_id,
        earned_at=datetime.now(timezone.utc),
    ))
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        return False
    return True


async def evaluate_badges(
    db: AsyncSession, user_id: uuid.UUID, now: datetime
) -> list[uuid.UUID]:
    """Award every badge whose threshold the user now meets."""
    definitions = [
        (d.id, d.criteria_type, d.criteria_value)
        for d in await list_badge_definitions(db)
    ]
    earned = await db.execute(
        select(UserBadge.badge_id).where(UserBadge.user_id == user_id)
    )
    earned_ids = set(earned.scalars().all())

    streak = await get_streak(db, user_id)
    current_streak = streak.current_streak
    lifetime = await _summarize(db, user_id, EPOCH, now.date())

    awarded = []
    for badge_id, criteria_type, criteria_value in definitions:
        if badge_id in earned_ids:
            continue

        if criteria_type == CRITERIA_STREAK:
            met = current_streak >= criteria_value
        elif criteria_type == CRITERIA_SESSIONS:
            met = lifetime["sessions_completed"] >= criteria_value
        elif criteria_type == CRITERIA_FOCUS_TIME:
            met = lifetime["total_focus_seconds"] >= criteria_value
        else:
            logger.warning("Unknown badge criteria type %r", criteria_type)
            met = False

        if met and await award_badge(db, user_id, badge_id):
            awarded.append(badge_id)

    if awarded:
        logger.info("Awarded %d badge(s) to user %s", len(awarded), user_id)
    return awarded


# --- Completion bookkeeping ---


async def _run_step(db: AsyncSession, name: str, step) -> None:
    try:
        await step()
        await db.commit()
    except Exception:
        await db.rollback()
        logger.exception("Completion step %r failed", name)
        sentry_sdk.capture_exception()


async def record_completion(
    db: AsyncSession,
    user_id: uuid.UUID,
    focus_seconds: int,
    completed_at: datetime,
) -> None:
    """Update progress, streak and badges after a completed session.

    Each step commits on its own. A failing step is reported and the
    remaining steps still run.
    """
    today = completed_at.date()

    await _run_step(
        db, "daily_progress",
        lambda: add_daily_progress(db, user_id, today, focus_seconds, 1),
    )
    await _run_step(db, "streak", lambda: update_streak(db, user_id, today))
    await _run_step(db, "badges", lambda: evaluate_badges(db, user_id, completed_at))


# --- Home screen ---


async def get_home_screen(db: AsyncSession, user_id: uuid.UUID) -> dict:
    # focus_service imports this module at load time
    from app.services.focus_service import get_active_session

    return {
        "streak": await get_streak(db, user_id),
        "active_session": await get_active_session(db, user_id),
        "weekly_progress": await get_progress_summary(db, user_id, "weekly"),
        "recent_badges": await list_user_badges(db, user_id, limit=HOME_RECENT_BADGES),
        "total_badges": await count_user_badges(db, user_id),
    }
