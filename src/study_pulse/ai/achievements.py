"""LLM-authored achievements for users who have unlocked the whole catalog."""

from collections.abc import Collection

import structlog
from pydantic import ValidationError

from study_pulse.ai.base import AIServiceError, JSONCompletionClient
from study_pulse.models.achievement import (
    AchievementCriteria,
    Aggregates,
    GeneratedAchievement,
    GenerationMetadata,
)

logger = structlog.get_logger()

GENERATION_SYSTEM_PROMPT = """\
You design motivating achievements for a study-tracking application. Based on \
the user's study statistics, create new, personalized and challenging \
achievements that are the next logical step up in difficulty.

Each achievement is unlocked when one metric reaches a value:
- "totalDuration": total study time in minutes
- "totalLogs": number of study sessions logged
- "uniqueSubjects": number of distinct subjects studied

The criteria value must be clearly higher than the user's current value for \
that metric. Use a unique snake_case id that is not in the earned list, a \
Lucide icon name, and a Tailwind text color class.

Respond ONLY with a JSON object:
{
    "newAchievements": [
        {
            "id": "<snake_case id>",
            "title": "<catchy title>",
            "description": "<short motivating description>",
            "icon": "<Lucide icon name>",
            "color": "<Tailwind class, e.g. text-blue-500>",
            "criteria": {"type": "<metric>", "value": <number>}
        }
    ]
}
"""


def _format_stats(aggregates: Aggregates, existing_ids: Collection[str], limit: int) -> str:
    earned = "\n".join(f"- {a}" for a in sorted(existing_ids)) or "- (none)"
    return (
        "User's current stats:\n"
        f"- Total study time: {aggregates.total_duration} minutes\n"
        f"- Total study sessions: {aggregates.total_logs}\n"
        f"- Unique subjects studied: {aggregates.unique_subjects}\n\n"
        f"Achievements already earned:\n{earned}\n\n"
        f"Generate up to {limit} new achievements."
    )


class AchievementGenerator(JSONCompletionClient):
    """Asks the model for achievement definitions beyond the current catalog."""

    async def generate(
        self,
        aggregates: Aggregates,
        existing_ids: Collection[str],
        limit: int = 5,
    ) -> list[GeneratedAchievement]:
        """Request up to ``limit`` new definitions.

        Items that do not fit the definition shape, or reuse an existing id,
        are dropped.

        Raises:
            AIServiceError: If the request fails or the reply is not JSON.
        """
        result = await self._complete_json(
            GENERATION_SYSTEM_PROMPT,
            _format_stats(aggregates, existing_ids, limit),
            temperature=0.8,
        )
        items = result.get("newAchievements")
        if not isinstance(items, list):
            raise AIServiceError("Generated achievements missing from response")

        source = GenerationMetadata(model=self.model, stats_snapshot=aggregates)
        taken = set(existing_ids)
        generated: list[GeneratedAchievement] = []
        for item in items:
            if len(generated) >= limit:
                break
            achievement = self._parse_item(item, source)
            if achievement is None or achievement.id in taken:
                continue
            taken.add(achievement.id)
            generated.append(achievement)

        logger.info("achievements_generated", requested=limit, received=len(items), kept=len(generated))
        return generated

    @staticmethod
    def _parse_item(item: object, source: GenerationMetadata) -> GeneratedAchievement | None:
        if not isinstance(item, dict):
            return None
        criteria = item.get("criteria") or {}
        try:
            return GeneratedAchievement(
                id=item.get("id", ""),
                title=item.get("title", ""),
                description=item.get("description", ""),
                icon=item.get("icon") or "Award",
                color=item.get("color") or "text-primary",
                criteria=AchievementCriteria(
                    metric=criteria.get("type") or criteria.get("metric"),
                    threshold=criteria.get("value", criteria.get("threshold")),
                ),
                source=source,
            )
        except (ValidationError, AttributeError):
            logger.warning("generated_achievement_rejected", item_id=item.get("id"))
            return None
