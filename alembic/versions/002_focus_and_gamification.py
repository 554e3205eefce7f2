"""Focus sessions, streaks, daily progress and badges

Revision ID: 002
Revises: 001
Create Date: 2026-10-14
"""
import uuid
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

# (name, description, icon_key, criteria_type, criteria_value)
BADGES = [
    ("First Focus", "Complete your first focus session", "badge_first_focus", "sessions", 1),
    ("Getting Started", "Complete 10 focus sessions", "badge_sessions_10", "sessions", 10),
    ("Half Century", "Complete 50 focus sessions", "badge_sessions_50", "sessions", 50),
    ("Centurion", "Complete 100 focus sessions", "badge_sessions_100", "sessions", 100),
    ("On a Roll", "Keep a 3-day streak", "badge_streak_3", "streak", 3),
    ("Week Warrior", "Keep a 7-day streak", "badge_streak_7", "streak", 7),
    ("Fortnight Focus", "Keep a 14-day streak", "badge_streak_14", "streak", 14),
    ("Monthly Master", "Keep a 30-day streak", "badge_streak_30", "streak", 30),
    ("Deep Diver", "Focus for 1 hour in total", "badge_focus_1h", "focus_time", 3600),
    ("Ten Hour Club", "Focus for 10 hours in total", "badge_focus_10h", "focus_time", 36000),
    ("Marathoner", "Focus for 100 hours in total", "badge_focus_100h", "focus_time", 360000),
]


def upgrade() -> None:
    # Focus sessions
    op.create_table(
        "focus_sessions",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("duration_seconds", sa.Integer(), nullable=False),
        sa.Column("elapsed_seconds", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("status", sa.String(20), nullable=False, server_default="active"),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("ended_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id", name="pk_focus_sessions"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], name="fk_focus_sessions_user_id_users", ondelete="CASCADE"),
    )
    op.create_index("ix_focus_sessions_user_id", "focus_sessions", ["user_id"])
    op.create_index("ix_focus_sessions_user_status", "focus_sessions", ["user_id", "status"])
    op.create_index(
        "uq_focus_sessions_user_open",
        "focus_sessions",
        ["user_id"],
        unique=True,
        postgresql_where=sa.text("status IN ('active', 'paused')"),
    )

    # Streaks
    op.create_table(
        "streaks",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("current_streak", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("longest_streak", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_session_date", sa.Date(), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id", name="pk_streaks"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], name="fk_streaks_user_id_users", ondelete="CASCADE"),
        sa.UniqueConstraint("user_id", name="uq_streaks_user_id"),
        sa.CheckConstraint("longest_streak >= current_streak", name="ck_streaks_longest_covers_current"),
    )

    # Daily progress
    op.create_table(
        "daily_progress",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("total_focus_seconds", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("sessions_completed", sa.Integer(), nullable=False, server_default="0"),
        sa.PrimaryKeyConstraint("id", name="pk_daily_progress"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], name="fk_daily_progress_user_id_users", ondelete="CASCADE"),
        sa.UniqueConstraint("user_id", "date", name="uq_daily_progress_user_date"),
    )

    # Badge definitions
    badge_definitions = op.create_table(
        "badge_definitions",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("description", sa.String(500), nullable=True),
        sa.Column("icon_key", sa.String(100), nullable=True),
        sa.Column("criteria_type", sa.String(20), nullable=False),
        sa.Column("criteria_value", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id", name="pk_badge_definitions"),
        sa.UniqueConstraint("name", name="uq_badge_definitions_name"),
    )

    # User badges
    op.create_table(
        "user_badges",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("badge_id", sa.Uuid(), nullable=False),
        sa.Column("earned_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id", name="pk_user_badges"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], name="fk_user_badges_user_id_users", ondelete="CASCADE"),
        sa.ForeignKeyConstraint(
            ["badge_id"], ["badge_definitions.id"],
            name="fk_user_badges_badge_id_badge_definitions", ondelete="CASCADE",
        ),
        sa.UniqueConstraint("user_id", "badge_id", name="uq_user_badges_pair"),
    )
    op.create_index("ix_user_badges_user_id", "user_badges", ["user_id"])

    op.bulk_insert(
        badge_definitions,
        [
            {
                "id": uuid.uuid4(),
                "name": name,
                "description": description,
                "icon_key": icon_key,
                "criteria_type": criteria_type,
                "criteria_value": criteria_value,
            }
            for name, description, icon_key, criteria_type, criteria_value in BADGES
        ],
    )


def downgrade() -> None:
    op.drop_table("user_badges")
    op.drop_table("badge_definitions")
    op.drop_table("daily_progress")
    op.drop_table("streaks")
    op.drop_table("focus_sessions")
