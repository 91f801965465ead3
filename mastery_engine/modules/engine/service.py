"""Mastery Engine - orchestrates metrics, profile, progression and achievements.

Flow for every mutation:
1. Read the current records from the store
2. Apply the pure rules (aggregator, profile model, state machine)
3. Write back with a version check; replay from step 1 on conflict
4. Evaluate achievements and record newly unlocked ids
5. Publish notifications, only once the state above is stored
"""

from contextlib import asynccontextmanager
from dataclasses import replace
from typing import Any, AsyncIterator, Awaitable, Callable, Iterable, Mapping, TypeVar
from uuid import UUID
import asyncio
import logging

from mastery_engine.modules.achievements.interface import EvaluationResult, IAchievementEvaluator
from mastery_engine.modules.achievements.service import get_achievement_evaluator
from mastery_engine.modules.adaptation.interface import IAdaptationSelector, Recommendation
from mastery_engine.modules.adaptation.rules import lesson_template_for, recommend
from mastery_engine.modules.adaptation.service import get_adaptation_selector
from mastery_engine.modules.catalog.interface import ICatalogProvider
from mastery_engine.modules.engine.interface import (
    EventOutcome,
    IMasteryEngine,
    NextStep,
    StepCompletionResult,
)
from mastery_engine.modules.metrics.interface import CumulativeStats, IMetricsAggregator
from mastery_engine.modules.metrics.schemas import (
    LessonCompletePayload,
    PerformanceEvent,
    QuizAttemptPayload,
    parse_event,
)
from mastery_engine.modules.metrics.service import get_metrics_aggregator
from mastery_engine.modules.metrics.streak import advance_streak, compute_streak
from mastery_engine.modules.notifications.interface import INotificationSink, Notification
from mastery_engine.modules.profile.interface import (
    IProfileModel,
    LearnerProfile,
    PerformanceSnapshot,
    StepOutcome,
)
from mastery_engine.modules.profile.service import get_profile_model
from mastery_engine.modules.progression.interface import IProgressionStateMachine, ModuleProgress
from mastery_engine.modules.progression.service import generate_steps, get_progression_state_machine
from mastery_engine.modules.store.interface import IProgressStore
from mastery_engine.shared.config import Settings, get_settings
from mastery_engine.shared.datetime_utils import activity_day, utc_now
from mastery_engine.shared.exceptions import (
    AlreadyCompletedError,
    ConcurrencyConflictError,
    EnrollmentNotFoundError,
)
from mastery_engine.shared.models import (
    ComfortPreference,
    DifficultyPreference,
    DifficultyTier,
    EventType,
    LearningStyle,
    PacePreference,
)
from mastery_engine.shared.resilience import retry_with_backoff

logger = logging.getLogger(__name__)

T = TypeVar("T")


class _LearnerLock:
    """A learner's lock plus the number of tasks holding or awaiting it."""

    __slots__ = ("lock", "users")

    def __init__(self) -> None:
        self.lock = asyncio.Lock()
        self.users = 0


class MasteryEngine(IMasteryEngine):
    """Async orchestration of the mastery pipeline.

    Collaborators default to the ones chosen by the service registry;
    the pure components default to their shared instances.
    """

    def __init__(
        self,
        store: IProgressStore | None = None,
        sink: INotificationSink | None = None,
        catalog: ICatalogProvider | None = None,
        *,
        aggregator: IMetricsAggregator | None = None,
        profile_model: IProfileModel | None = None,
        selector: IAdaptationSelector | None = None,
        state_machine: IProgressionStateMachine | None = None,
        evaluator: IAchievementEvaluator | None = None,
        settings: Settings | None = None,
    ) -> None:
        if store is None or sink is None or catalog is None:
            from mastery_engine.shared.service_registry import get_service_registry

            registry = get_service_registry()
            store = store or registry.get_progress_store()
            sink = sink or registry.get_notification_sink()
            catalog = catalog or registry.get_catalog_provider()

        self._store = store
        self._sink = sink
        self._catalog = catalog
        self._aggregator = aggregator or get_metrics_aggregator()
        self._profile_model = profile_model or get_profile_model()
        self._selector = selector or get_adaptation_selector()
        self._state_machine = state_machine or get_progression_state_machine()
        self._evaluator = evaluator or get_achievement_evaluator()
        self._settings = settings or get_settings()

        # One lock per active learner serialises that learner's events; entries
        # are dropped once nobody holds or waits for them
        self._locks: dict[UUID, _LearnerLock] = {}

    @property
    def store(self) -> IProgressStore:
        return self._store

    @property
    def catalog(self) -> ICatalogProvider:
        return self._catalog

    # ===================
    # Enrollment
    # ===================

    async def enroll(
        self,
        learner_id: UUID,
        module_id: str,
        *,
        learning_style: LearningStyle = LearningStyle.VISUAL,
        pace_preference: PacePreference = PacePreference.MEDIUM,
        difficulty_preference: DifficultyPreference = DifficultyPreference.ADAPTIVE,
        comfort_preference: ComfortPreference = ComfortPreference.BALANCED,
        difficulty_tier: DifficultyTier = DifficultyTier.BEGINNER,
    ) -> ModuleProgress:
        """Create profile, statistics and step sequence for a module.

        Existing records are kept, so enrolling twice returns the same
        progress.

        Raises:
            ModuleNotFoundInCatalogError: If the module is not in the catalog
        """
        module = self._catalog.get_module(module_id)

        async def attempt() -> ModuleProgress:
            profile = await self._store_call(
                "get_profile", lambda: self._store.get_profile(learner_id, module_id)
            )
            if profile is None:
                profile = await self._store_call("put_profile", lambda: self._store.put_profile(
                    LearnerProfile(
                        learner_id=learner_id,
                        module_id=module_id,
                        learning_style=learning_style,
                        pace_preference=pace_preference,
                        difficulty_preference=difficulty_preference,
                        comfort_preference=comfort_preference,
                        difficulty_tier=difficulty_tier,
                    )
                ))

            stats = await self._store_call("get_stats", lambda: self._store.get_stats(learner_id))
            if stats is None:
                await self._store_call(
                    "put_stats", lambda: self._store.put_stats(CumulativeStats(learner_id=learner_id))
                )

            progress = await self._store_call(
                "get_progress", lambda: self._store.get_progress(learner_id, module_id)
            )
            if progress is None:
                steps = generate_steps(module, profile, self._selector)
                progress = await self._store_call(
                    "put_progress", lambda: self._store.put_progress(steps)
                )
                logger.info(
                    f"Enrolled learner {learner_id} in {module_id}",
                    extra={"learner_id": str(learner_id), "module_id": module_id},
                )
            return progress

        async with self._learner_lock(learner_id):
            return await self._with_conflict_retry("enroll", attempt)

    # ===================
    # Event ingestion
    # ===================

    async def handle_event(self, raw: dict[str, Any]) -> EventOutcome:
        """Validate and ingest a raw interchange record.

        Raises:
            ValidationError: If the record is malformed (nothing is stored)
        """
        return await self.process_event(parse_event(raw))

    async def process_event(self, event: PerformanceEvent) -> EventOutcome:
        """Ingest a validated performance event.

        Statistics are updated, achievements re-evaluated and, for quiz
        attempts with per-topic results, the module profile's topic
        tallies are merged.

        Raises:
            StoreUnavailableError: If the store stays unavailable after retries
            ConcurrencyConflictError: If conflicts persist after replays
        """
        learner_id = event.learner_id
        async with self._learner_lock(learner_id):
            outcome = await self._ingest(event)
            # Unlocked ids are stored by now and are never announced again
            await self._publish(outcome.notifications)
            await self._update_topic_tallies(event)

        logger.info(
            f"Processed {event.type.value} for learner {learner_id}",
            extra={
                "learner_id": str(learner_id),
                "event_type": event.type.value,
                "newly_unlocked": list(outcome.newly_unlocked),
            },
        )
        return outcome

    async def _ingest(self, event: PerformanceEvent) -> EventOutcome:
        learner_id = event.learner_id
        day = activity_day(event.timestamp)

        async def attempt() -> CumulativeStats:
            stats = await self._store_call("get_stats", lambda: self._store.get_stats(learner_id))
            stats = stats or CumulativeStats(learner_id=learner_id)
            updated = advance_streak(self._aggregator.apply(stats, event), day)
            return await self._store_call("put_stats", lambda: self._store.put_stats(updated))

        saved = await self._with_conflict_retry("put_stats", attempt)
        await self._store_call(
            "add_activity_date", lambda: self._store.add_activity_date(learner_id, day)
        )

        achievements, notifications = await self._record_achievements(saved)
        return EventOutcome(
            event=event,
            stats=saved,
            achievements=achievements,
            notifications=notifications,
        )

    async def _update_topic_tallies(self, event: PerformanceEvent) -> None:
        payload = event.payload
        if (
            event.type != EventType.QUIZ_ATTEMPT
            or not isinstance(payload, QuizAttemptPayload)
            or not event.module_id
            or payload.topic is None
            or not payload.total_questions
        ):
            return

        outcome = StepOutcome(
            is_assessment=False,
            topic_results={payload.topic: (payload.correct_answers, payload.total_questions)},
        )

        async def attempt() -> None:
            profile = await self._store_call(
                "get_profile", lambda: self._store.get_profile(event.learner_id, event.module_id)
            )
            if profile is None:
                logger.debug(
                    f"No profile for {event.learner_id}/{event.module_id}; topic results not recorded"
                )
                return
            updated = self._profile_model.adapt(profile, outcome)
            await self._store_call("put_profile", lambda: self._store.put_profile(updated))

        await self._with_conflict_retry("put_profile", attempt)

    # ===================
    # Progression
    # ===================

    async def complete_step(
        self,
        learner_id: UUID,
        module_id: str,
        step_index: int,
        *,
        score: float | None = None,
        actual_minutes: float | None = None,
        topic_results: Mapping[str, tuple[int, int]] | None = None,
        performance: PerformanceSnapshot | None = None,
    ) -> StepCompletionResult:
        """Complete the current step of a module.

        Completing an already-completed step is an idempotent success
        (``already_completed=True``). Completing the final step counts the
        module as completed in the learner's statistics.

        Args:
            learner_id: Learner completing the step
            module_id: Module the step belongs to
            step_index: Index of the step being completed
            score: Assessment score in percent (assessment steps only)
            actual_minutes: Time the learner spent on the step
            topic_results: Per-topic (correct, attempts) observed in the step
            performance: Aggregate performance used to adjust the tier

        Raises:
            EnrollmentNotFoundError: If the learner is not enrolled
            InvalidStepIndexError: If the index is outside the sequence
            OutOfOrderError: If the step is still locked
        """
        async with self._learner_lock(learner_id):
            transition = await self._with_conflict_retry(
                "complete_step",
                lambda: self._apply_step(
                    learner_id,
                    module_id,
                    step_index,
                    score=score,
                    actual_minutes=actual_minutes,
                    topic_results=topic_results,
                    performance=performance,
                ),
            )
            already_completed = transition is None
            if already_completed:
                progress, profile = await self._read_enrollment(learner_id, module_id)
                logger.info(
                    f"Step {step_index} of {module_id} already completed by {learner_id}",
                    extra={"learner_id": str(learner_id), "module_id": module_id},
                )
            else:
                profile, progress = transition

            notifications: list[Notification] = []
            achievements = None
            module_completed = False
            if progress.is_complete:
                finished = await self._finish_module(learner_id, module_id)
                if finished is not None:
                    module_completed = True
                    achievements, module_notifications = finished
                    notifications.extend(module_notifications)
            elif not already_completed:
                notifications.append(
                    Notification.step_advanced(learner_id, module_id, progress.current_index)
                )

            await self._publish(notifications)

        if not already_completed:
            logger.info(
                f"Learner {learner_id} completed step {step_index} of {module_id} "
                f"({progress.percent_complete:.0f}%)",
                extra={
                    "learner_id": str(learner_id),
                    "module_id": module_id,
                    "step_index": step_index,
                    "mastery_level": profile.mastery_level,
                },
            )
        return StepCompletionResult(
            progress=progress,
            profile=profile,
            step_index=step_index,
            already_completed=already_completed,
            module_completed=module_completed,
            achievements=achievements,
            notifications=tuple(notifications),
        )

    async def _apply_step(
        self,
        learner_id: UUID,
        module_id: str,
        step_index: int,
        *,
        score: float | None,
        actual_minutes: float | None,
        topic_results: Mapping[str, tuple[int, int]] | None,
        performance: PerformanceSnapshot | None,
    ) -> tuple[LearnerProfile, ModuleProgress] | None:
        """Store the profile update, then the advanced progress.

        The profile records the step index in the same write, so a replay
        after a failed progress write does not count the outcome twice.
        """
        progress, profile = await self._read_enrollment(learner_id, module_id)
        try:
            advanced = self._state_machine.complete_step(progress, step_index)
        except AlreadyCompletedError:
            return None

        if step_index not in profile.applied_steps:
            step = progress.steps[step_index]
            expected = step.payload.get("adaptation", {}).get("estimated_minutes", 0)
            outcome = StepOutcome(
                score=score or 0.0,
                expected_duration_minutes=expected,
                actual_minutes=actual_minutes or 0.0,
                is_assessment=step.type.is_assessment,
                topic_results=topic_results or {},
            )
            updated = self._profile_model.adapt(profile, outcome)
            if performance is not None:
                updated = self._profile_model.adjust_tier(updated, performance)
            updated = replace(updated, applied_steps=profile.applied_steps | {step_index})
            profile = await self._store_call("put_profile", lambda: self._store.put_profile(updated))

        saved = await self._store_call("put_progress", lambda: self._store.put_progress(advanced))
        return profile, saved

    async def _finish_module(
        self,
        learner_id: UUID,
        module_id: str,
    ) -> tuple[EvaluationResult, list[Notification]] | None:
        """Count a completed module once; None if it was already counted."""
        stats = await self.get_stats(learner_id)
        if module_id in stats.completed_module_ids:
            return None

        event = PerformanceEvent(
            learner_id=learner_id,
            module_id=module_id,
            type=EventType.LESSON_COMPLETE,
            payload=LessonCompletePayload(module_id=module_id),
        )
        ingested = await self._ingest(event)
        notifications = [Notification.module_completed(learner_id, module_id)]
        notifications.extend(ingested.notifications)
        return ingested.achievements, notifications

    async def get_progress(self, learner_id: UUID, module_id: str) -> ModuleProgress:
        """Get the step sequence of a module instance.

        Raises:
            EnrollmentNotFoundError: If the learner is not enrolled
        """
        progress, _ = await self._read_enrollment(learner_id, module_id)
        return progress

    async def get_next_step(self, learner_id: UUID, module_id: str) -> NextStep | None:
        """The current step with an adaptation for the learner's current profile."""
        progress, profile = await self._read_enrollment(learner_id, module_id)
        index = progress.current_index
        if index is None:
            return None
        return NextStep(
            index=index,
            step=progress.steps[index],
            adaptation=self._selector.select(profile, index),
            percent_complete=progress.percent_complete,
        )

    async def get_recommendations(
        self,
        learner_id: UUID,
        module_id: str,
        performance: PerformanceSnapshot | None = None,
    ) -> list[Recommendation]:
        """Rule-based recommendations for a module.

        Without an explicit snapshot, accuracy is taken from the profile's
        topic tallies; with no tallies there is nothing to recommend.
        """
        progress, profile = await self._read_enrollment(learner_id, module_id)

        if performance is None:
            correct = sum(t.correct for t in profile.topic_stats.values())
            attempts = sum(t.attempts for t in profile.topic_stats.values())
            if attempts == 0:
                return []
            performance = PerformanceSnapshot(accuracy=correct / attempts * 100)

        module = self._catalog.get_module(module_id)
        objectives = module.learning_objectives or lesson_template_for(module.topic_key).objectives
        return recommend(
            profile,
            performance,
            objectives=objectives,
            module_complete=progress.is_complete,
        )

    # ===================
    # Statistics & achievements
    # ===================

    async def get_stats(self, learner_id: UUID) -> CumulativeStats:
        """Get a learner's statistics (defaults when nothing is recorded)."""
        stats = await self._store_call("get_stats", lambda: self._store.get_stats(learner_id))
        return stats or CumulativeStats(learner_id=learner_id)

    async def get_achievements(self, learner_id: UUID) -> EvaluationResult:
        """Current achievement state.

        Read-only: nothing is recorded and nothing is published.
        """
        stats = await self.get_stats(learner_id)
        previous = await self._store_call(
            "get_unlocked_achievement_ids",
            lambda: self._store.get_unlocked_achievement_ids(learner_id),
        )
        return self._evaluate(stats, previous)

    async def rebuild_streak(self, learner_id: UUID) -> CumulativeStats:
        """Recompute the current streak from the recorded activity days.

        Used after importing events out of order, which the incremental
        streak rule ignores.
        """
        async def attempt() -> CumulativeStats:
            days = await self._store_call(
                "get_activity_dates", lambda: self._store.get_activity_dates(learner_id)
            )
            stats = await self.get_stats(learner_id)
            streak = compute_streak(days)
            updated = replace(
                stats,
                streak_days=streak,
                longest_streak_days=max(stats.longest_streak_days, streak),
                last_active_date=max(days) if days else stats.last_active_date,
            )
            return await self._store_call("put_stats", lambda: self._store.put_stats(updated))

        async with self._learner_lock(learner_id):
            return await self._with_conflict_retry("rebuild_streak", attempt)

    async def reset_stats(self, learner_id: UUID) -> CumulativeStats:
        """Administrative reset of a learner's statistics.

        Unlocked achievements are kept.
        """
        async def attempt() -> CumulativeStats:
            current = await self._store_call("get_stats", lambda: self._store.get_stats(learner_id))
            fresh = self._aggregator.reset_stats(learner_id)
            if current is not None:
                fresh = replace(fresh, version=current.version)
            return await self._store_call("put_stats", lambda: self._store.put_stats(fresh))

        async with self._learner_lock(learner_id):
            return await self._with_conflict_retry("reset_stats", attempt)

    async def reset_mastery(self, learner_id: UUID, module_id: str) -> LearnerProfile:
        """Administrative reset of a learner's mastery in one module."""
        async def attempt() -> LearnerProfile:
            _, profile = await self._read_enrollment(learner_id, module_id, need_progress=False)
            updated = self._profile_model.reset_mastery(profile)
            return await self._store_call("put_profile", lambda: self._store.put_profile(updated))

        async with self._learner_lock(learner_id):
            return await self._with_conflict_retry("reset_mastery", attempt)

    def _evaluate(self, stats: CumulativeStats, previous: Mapping[str, Any]) -> EvaluationResult:
        return self._evaluator.evaluate(
            self._catalog.get_achievement_templates(),
            stats,
            previous.keys(),
            self._catalog.total_modules(),
            now=utc_now(),
            unlocked_at=previous,
        )

    async def _record_achievements(
        self,
        stats: CumulativeStats,
    ) -> tuple[EvaluationResult, tuple[Notification, ...]]:
        learner_id = stats.learner_id
        previous = await self._store_call(
            "get_unlocked_achievement_ids",
            lambda: self._store.get_unlocked_achievement_ids(learner_id),
        )
        result = self._evaluate(stats, previous)
        if not result.newly_unlocked:
            return result, ()

        unlocked = {
            achievement_id: result.get(achievement_id).unlocked_at
            for achievement_id in result.newly_unlocked
        }
        await self._store_call(
            "put_unlocked_achievement_ids",
            lambda: self._store.put_unlocked_achievement_ids(learner_id, unlocked),
        )

        notifications = tuple(
            Notification.achievement_unlocked(
                learner_id,
                achievement_id,
                result.get(achievement_id).template.points,
            )
            for achievement_id in result.newly_unlocked
        )
        logger.info(
            f"Learner {learner_id} unlocked {', '.join(result.newly_unlocked)}",
            extra={"learner_id": str(learner_id), "achievements": list(result.newly_unlocked)},
        )
        return result, notifications

    # ===================
    # Helpers
    # ===================

    @asynccontextmanager
    async def _learner_lock(self, learner_id: UUID) -> AsyncIterator[None]:
        entry = self._locks.get(learner_id)
        if entry is None:
            entry = self._locks[learner_id] = _LearnerLock()
        entry.users += 1
        try:
            async with entry.lock:
                yield
        finally:
            entry.users -= 1
            if entry.users == 0:
                del self._locks[learner_id]

    async def _read_enrollment(
        self,
        learner_id: UUID,
        module_id: str,
        need_progress: bool = True,
    ) -> tuple[ModuleProgress | None, LearnerProfile]:
        profile = await self._store_call(
            "get_profile", lambda: self._store.get_profile(learner_id, module_id)
        )
        progress = None
        if need_progress:
            progress = await self._store_call(
                "get_progress", lambda: self._store.get_progress(learner_id, module_id)
            )
        if profile is None or (need_progress and progress is None):
            raise EnrollmentNotFoundError(learner_id, module_id)
        return progress, profile

    async def _store_call(self, operation: str, func: Callable[[], Awaitable[T]]) -> T:
        return await retry_with_backoff(
            func,
            max_retries=self._settings.store_max_retries,
            base_delay_seconds=self._settings.store_retry_base_delay_seconds,
            operation=operation,
        )

    async def _with_conflict_retry(
        self,
        operation: str,
        attempt: Callable[[], Awaitable[T]],
    ) -> T:
        max_attempts = max(1, self._settings.max_conflict_retries)
        attempt_number = 1
        while True:
            try:
                return await attempt()
            except ConcurrencyConflictError as e:
                if attempt_number >= max_attempts:
                    logger.error(f"{operation} still conflicting after {max_attempts} attempts")
                    raise
                logger.info(f"{operation} conflict, replaying ({attempt_number}/{max_attempts}): {e}")
                attempt_number += 1

    async def _publish(self, notifications: Iterable[Notification]) -> None:
        for notification in notifications:
            try:
                await self._sink.publish(notification)
            except Exception as e:
                # State is already stored; a lost notification must not fail the call
                logger.warning(
                    f"Failed to publish {notification.type.value} for {notification.learner_id}: {e}"
                )
