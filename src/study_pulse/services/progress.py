"""Evaluation pass run whenever a user's study logs change."""

import asyncio

import structlog
from pydantic import BaseModel, Field

from study_pulse.ai.achievements import AchievementGenerator
from study_pulse.ai.base import AIServiceError
from study_pulse.events import LogsChanged
from study_pulse.models.achievement import (
    AchievementDefinition,
    Aggregates,
    AwardedAchievement,
)
from study_pulse.models.timestamps import utcnow
from study_pulse.progress.catalog import build_catalog
from study_pulse.progress.evaluator import evaluate
from study_pulse.progress.goals import matching_logs, recompute
from study_pulse.storage import study_data
from study_pulse.storage.documents import DocumentStore

logger = structlog.get_logger()


class ProgressUpdate(BaseModel):
    """State changes written by one evaluation pass."""

    user_id: str | None = None
    skipped: bool = False
    awarded: list[str] = Field(default_factory=list)
    already_awarded: list[str] = Field(default_factory=list)
    generated: list[str] = Field(default_factory=list)
    generation_error: str | None = None
    goals_updated: list[str] = Field(default_factory=list)
    goals_completed: list[str] = Field(default_factory=list)
    aggregates: Aggregates = Field(default_factory=Aggregates)
    skipped_entries: int = 0


class ProgressService:
    """Awards achievements, extends the catalog and refreshes goals.

    Args:
        store: Document store holding the user collections.
        generator: Source of new achievement definitions; None disables
            catalog growth.
        max_generated: Upper bound on definitions requested per pass.
    """

    def __init__(
        self,
        store: DocumentStore,
        generator: AchievementGenerator | None = None,
        max_generated: int = 5,
    ):
        self.store = store
        self.generator = generator
        self.max_generated = max_generated
        # user id -> (lock, passes holding or waiting on it)
        self._locks: dict[str, tuple[asyncio.Lock, int]] = {}

    async def handle_logs_changed(self, event: LogsChanged) -> ProgressUpdate:
        """Run one evaluation pass for the user named in ``event``."""
        if event.user_id is None:
            logger.debug("progress_evaluation_skipped_no_user")
            return ProgressUpdate(skipped=True)

        user_id = event.user_id
        lock, users = self._locks.get(user_id, (asyncio.Lock(), 0))
        self._locks[user_id] = (lock, users + 1)
        try:
            async with lock:
                return await self._evaluate_user(user_id)
        finally:
            lock, users = self._locks[user_id]
            if users == 1:
                del self._locks[user_id]
            else:
                self._locks[user_id] = (lock, users - 1)

    async def _evaluate_user(self, user_id: str) -> ProgressUpdate:
        raw_logs = study_data.load_raw_logs(self.store, user_id)
        awarded_ids = study_data.load_awarded_ids(self.store, user_id)
        generated = study_data.load_generated(self.store, user_id)
        catalog = build_catalog(generated)

        result = evaluate(raw_logs, catalog, awarded_ids)
        update = ProgressUpdate(
            user_id=user_id,
            aggregates=result.aggregates,
            skipped_entries=result.skipped_entries,
        )

        for achievement_id in result.to_award:
            award = AwardedAchievement(achievement_id=achievement_id)
            if study_data.award_achievement(self.store, user_id, award):
                update.awarded.append(achievement_id)
            else:
                # another pass got there first
                update.already_awarded.append(achievement_id)

        if result.all_satisfied and self.generator is not None:
            await self._extend_catalog(user_id, result.aggregates, awarded_ids, catalog, update)

        self._refresh_goals(user_id, raw_logs, update)

        logger.info(
            "progress_evaluated",
            user_id=user_id,
            awarded=update.awarded,
            generated=len(update.generated),
            goals_updated=len(update.goals_updated),
            skipped_entries=update.skipped_entries,
        )
        return update

    async def _extend_catalog(
        self,
        user_id: str,
        aggregates: Aggregates,
        awarded_ids: set[str],
        catalog: list[AchievementDefinition],
        update: ProgressUpdate,
    ) -> None:
        earned = set(awarded_ids) | set(update.awarded) | set(update.already_awarded)
        existing = earned | {definition.id for definition in catalog}
        try:
            new_definitions = await self.generator.generate(
                aggregates, existing, limit=self.max_generated
            )
        except AIServiceError as e:
            logger.warning("achievement_generation_failed", user_id=user_id, error=str(e))
            update.generation_error = str(e)
            return

        study_data.save_generated(self.store, user_id, new_definitions)
        update.generated = [definition.id for definition in new_definitions]

    def _refresh_goals(self, user_id: str, raw_logs: list[dict], update: ProgressUpdate) -> None:
        now = utcnow()
        for goal in study_data.load_goals(self.store, user_id):
            if goal.completed:
                continue
            refreshed = recompute(goal, matching_logs(goal, raw_logs), now=now)
            if refreshed == goal:
                continue
            study_data.save_goal(self.store, user_id, refreshed)
            update.goals_updated.append(refreshed.id)
            if refreshed.completed:
                update.goals_completed.append(refreshed.id)
