"""SQLAlchemy models for the progress store.

Column types are the dialect-neutral ones (Uuid, JSON) so the same tables
work on PostgreSQL and on SQLite.
"""

from datetime import date, datetime
from typing import Any, Optional
from uuid import UUID

from sqlalchemy import (
    JSON,
    Date,
    DateTime,
    Float,
    Integer,
    String,
    Uuid,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from mastery_engine.shared.database import Base
from mastery_engine.shared.datetime_utils import utc_now


class LearnerProfileModel(Base):
    """Learner profile, one row per learner and module."""

    __tablename__ = "learner_profiles"

    learner_id: Mapped[UUID] = mapped_column(Uuid, primary_key=True)
    module_id: Mapped[str] = mapped_column(String(100), primary_key=True)
    learning_style: Mapped[str] = mapped_column(String(20), nullable=False)
    pace_preference: Mapped[str] = mapped_column(String(20), nullable=False)
    difficulty_preference: Mapped[str] = mapped_column(String(20), nullable=False)
    comfort_preference: Mapped[str] = mapped_column(String(20), nullable=False)
    engagement_level: Mapped[int] = mapped_column(Integer, nullable=False)
    mastery_level: Mapped[float] = mapped_column(Float, nullable=False)
    difficulty_tier: Mapped[str] = mapped_column(String(20), nullable=False)
    # {topic: {"correct": int, "attempts": int}}
    topic_stats: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    applied_steps: Mapped[list[int]] = mapped_column(JSON, nullable=False, default=list)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        onupdate=utc_now,
        server_default=func.now(),
    )


class LearnerStatsModel(Base):
    """Cumulative statistics, one row per learner."""

    __tablename__ = "learner_stats"

    learner_id: Mapped[UUID] = mapped_column(Uuid, primary_key=True)
    modules_completed: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    quizzes_passed: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    perfect_quizzes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    speed_quizzes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    streak_days: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    longest_streak_days: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_time_spent_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    notes_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    bookmarks_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    completed_module_ids: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    last_active_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        onupdate=utc_now,
        server_default=func.now(),
    )


class ModuleProgressModel(Base):
    """Step sequence of a module instance."""

    __tablename__ = "module_progress"

    learner_id: Mapped[UUID] = mapped_column(Uuid, primary_key=True)
    module_id: Mapped[str] = mapped_column(String(100), primary_key=True)
    difficulty_tier: Mapped[str] = mapped_column(String(20), nullable=False)
    # [{"id", "title", "type", "status", "payload"}] in step order
    steps: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        onupdate=utc_now,
        server_default=func.now(),
    )


class UnlockedAchievementModel(Base):
    """An achievement a learner has unlocked."""

    __tablename__ = "unlocked_achievements"

    learner_id: Mapped[UUID] = mapped_column(Uuid, primary_key=True)
    achievement_id: Mapped[str] = mapped_column(String(100), primary_key=True)
    unlocked_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class ActivityDayModel(Base):
    """A calendar day on which a learner was active."""

    __tablename__ = "activity_days"

    learner_id: Mapped[UUID] = mapped_column(Uuid, primary_key=True)
    activity_date: Mapped[date] = mapped_column(Date, primary_key=True)
