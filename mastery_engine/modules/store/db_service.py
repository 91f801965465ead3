"""Progress store - Database-backed implementation."""

from contextlib import AbstractAsyncContextManager
from dataclasses import replace
from datetime import date, datetime
from typing import Any, Awaitable, Callable, Mapping, TypeVar
from uuid import UUID
import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from mastery_engine.modules.metrics.interface import CumulativeStats
from mastery_engine.modules.profile.interface import LearnerProfile
from mastery_engine.modules.progression.interface import ModuleProgress
from mastery_engine.modules.store.interface import IProgressStore
from mastery_engine.modules.store.models import (
    ActivityDayModel,
    LearnerProfileModel,
    LearnerStatsModel,
    ModuleProgressModel,
)
from mastery_engine.modules.store.repository import (
    ActivityDayRepository,
    LearnerProfileRepository,
    LearnerStatsRepository,
    ModuleProgressRepository,
    UnlockedAchievementRepository,
)
from mastery_engine.shared.database import get_db_session
from mastery_engine.shared.exceptions import ConcurrencyConflictError, StoreUnavailableError

logger = logging.getLogger(__name__)

T = TypeVar("T")

SessionProvider = Callable[[], AbstractAsyncContextManager[AsyncSession]]


class DatabaseProgressStore(IProgressStore):
    """SQLAlchemy-backed implementation of IProgressStore.

    Every call runs in its own session (committed on success, rolled back
    on error). Driver and connection failures surface as
    StoreUnavailableError so callers can retry them.
    """

    def __init__(self, session_provider: SessionProvider | None = None) -> None:
        self._session_provider = session_provider or get_db_session

    async def _run(
        self,
        operation: str,
        func: Callable[[AsyncSession], Awaitable[T]],
    ) -> T:
        try:
            async with self._session_provider() as session:
                return await func(session)
        except (SQLAlchemyError, OSError) as e:
            logger.warning(f"Store operation {operation} failed: {e}")
            raise StoreUnavailableError(operation, str(e)) from e

    async def _put_versioned(
        self,
        session: AsyncSession,
        repo: Any,
        record: str,
        version: int,
        values: dict[str, Any],
        new_row: Callable[[], Any],
        **keys: Any,
    ) -> None:
        if version == 0:
            existing = await repo.get_one(**keys)
            if existing is not None:
                raise ConcurrencyConflictError(record, version, existing.version)
            try:
                await repo.create(new_row())
            except IntegrityError:
                raise ConcurrencyConflictError(record, version, None)
            return

        updated = await repo.update_versioned(version, values, **keys)
        if not updated:
            existing = await repo.get_one(**keys)
            raise ConcurrencyConflictError(
                record, version, existing.version if existing else None
            )

    # --- Profiles ---

    async def get_profile(self, learner_id: UUID, module_id: str) -> LearnerProfile | None:
        async def fetch(session: AsyncSession) -> LearnerProfile | None:
            row = await LearnerProfileRepository(session).get_one(
                learner_id=learner_id, module_id=module_id
            )
            return LearnerProfileRepository.to_domain(row) if row else None

        return await self._run("get_profile", fetch)

    async def put_profile(self, profile: LearnerProfile) -> LearnerProfile:
        values = LearnerProfileRepository.to_values(profile)

        async def write(session: AsyncSession) -> None:
            await self._put_versioned(
                session,
                LearnerProfileRepository(session),
                f"profile {profile.learner_id}/{profile.module_id}",
                profile.version,
                values,
                lambda: LearnerProfileModel(
                    learner_id=profile.learner_id,
                    module_id=profile.module_id,
                    version=1,
                    **values,
                ),
                learner_id=profile.learner_id,
                module_id=profile.module_id,
            )

        await self._run("put_profile", write)
        return replace(profile, version=profile.version + 1)

    # --- Statistics ---

    async def get_stats(self, learner_id: UUID) -> CumulativeStats | None:
        async def fetch(session: AsyncSession) -> CumulativeStats | None:
            row = await LearnerStatsRepository(session).get_one(learner_id=learner_id)
            return LearnerStatsRepository.to_domain(row) if row else None

        return await self._run("get_stats", fetch)

    async def put_stats(self, stats: CumulativeStats) -> CumulativeStats:
        values = LearnerStatsRepository.to_values(stats)

        async def write(session: AsyncSession) -> None:
            await self._put_versioned(
                session,
                LearnerStatsRepository(session),
                f"stats {stats.learner_id}",
                stats.version,
                values,
                lambda: LearnerStatsModel(learner_id=stats.learner_id, version=1, **values),
                learner_id=stats.learner_id,
            )

        await self._run("put_stats", write)
        return replace(stats, version=stats.version + 1)

    # --- Progress ---

    async def get_progress(self, learner_id: UUID, module_id: str) -> ModuleProgress | None:
        async def fetch(session: AsyncSession) -> ModuleProgress | None:
            row = await ModuleProgressRepository(session).get_one(
                learner_id=learner_id, module_id=module_id
            )
            return ModuleProgressRepository.to_domain(row) if row else None

        return await self._run("get_progress", fetch)

    async def put_progress(self, progress: ModuleProgress) -> ModuleProgress:
        values = ModuleProgressRepository.to_values(progress)

        async def write(session: AsyncSession) -> None:
            await self._put_versioned(
                session,
                ModuleProgressRepository(session),
                f"progress {progress.learner_id}/{progress.module_id}",
                progress.version,
                values,
                lambda: ModuleProgressModel(
                    learner_id=progress.learner_id,
                    module_id=progress.module_id,
                    version=1,
                    **values,
                ),
                learner_id=progress.learner_id,
                module_id=progress.module_id,
            )

        await self._run("put_progress", write)
        return replace(progress, version=progress.version + 1)

    # --- Achievements ---

    async def get_unlocked_achievement_ids(self, learner_id: UUID) -> dict[str, datetime]:
        async def fetch(session: AsyncSession) -> dict[str, datetime]:
            return await UnlockedAchievementRepository(session).get_unlocked(learner_id)

        return await self._run("get_unlocked_achievement_ids", fetch)

    async def put_unlocked_achievement_ids(
        self,
        learner_id: UUID,
        unlocked: Mapping[str, datetime],
    ) -> None:
        if not unlocked:
            return

        async def write(session: AsyncSession) -> None:
            added = await UnlockedAchievementRepository(session).add_missing(learner_id, unlocked)
            logger.debug(f"Recorded {added} unlocked achievements for {learner_id}")

        await self._run("put_unlocked_achievement_ids", write)

    # --- Activity days ---

    async def add_activity_date(self, learner_id: UUID, activity_date: date) -> None:
        async def write(session: AsyncSession) -> None:
            repo = ActivityDayRepository(session)
            if await repo.get_one(learner_id=learner_id, activity_date=activity_date) is None:
                await repo.create(ActivityDayModel(learner_id=learner_id, activity_date=activity_date))

        await self._run("add_activity_date", write)

    async def get_activity_dates(self, learner_id: UUID) -> list[date]:
        async def fetch(session: AsyncSession) -> list[date]:
            return list(await ActivityDayRepository(session).get_dates(learner_id))

        return await self._run("get_activity_dates", fetch)
