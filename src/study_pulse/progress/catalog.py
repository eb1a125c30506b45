"""Built-in achievement catalog and merging with generated definitions."""

from collections.abc import Iterable

from study_pulse.models.achievement import (
    AchievementCriteria,
    AchievementDefinition,
    GeneratedAchievement,
    Metric,
    StaticAchievement,
)

STANDARD_ACHIEVEMENTS: list[StaticAchievement] = [
    StaticAchievement(
        id="first_session",
        title="First Step",
        description="Log your very first study session.",
        icon="Star",
        color="text-yellow-500",
        criteria=AchievementCriteria(metric=Metric.TOTAL_LOGS, threshold=1),
    ),
    StaticAchievement(
        id="one_hour",
        title="Hour Hero",
        description="Study for a total of 1 hour.",
        icon="Clock",
        color="text-blue-500",
        criteria=AchievementCriteria(metric=Metric.TOTAL_DURATION, threshold=60),
    ),
    StaticAchievement(
        id="ten_hours",
        title="Study Champion",
        description="Accumulate 10 total hours of study time.",
        icon="Award",
        color="text-indigo-500",
        criteria=AchievementCriteria(metric=Metric.TOTAL_DURATION, threshold=600),
    ),
    StaticAchievement(
        id="fifty_hours",
        title="Dedicated Learner",
        description="Reach 50 hours of total study time.",
        icon="Target",
        color="text-purple-500",
        criteria=AchievementCriteria(metric=Metric.TOTAL_DURATION, threshold=3000),
    ),
    StaticAchievement(
        id="hundred_hours",
        title="Knowledge Master",
        description="Achieve 100 hours of focused study.",
        icon="BookOpen",
        color="text-rose-500",
        criteria=AchievementCriteria(metric=Metric.TOTAL_DURATION, threshold=6000),
    ),
    StaticAchievement(
        id="five_subjects",
        title="Polymath",
        description="Study 5 different subjects.",
        icon="Zap",
        color="text-green-500",
        criteria=AchievementCriteria(metric=Metric.UNIQUE_SUBJECTS, threshold=5),
    ),
]


def build_catalog(
    generated: Iterable[GeneratedAchievement] = (),
    standard: Iterable[StaticAchievement] = STANDARD_ACHIEVEMENTS,
) -> list[AchievementDefinition]:
    """Static definitions followed by generated ones, deduplicated by id.

    The first definition with a given id wins, so a generated definition can
    never shadow a built-in one.
    """
    catalog: list[AchievementDefinition] = []
    seen: set[str] = set()
    for definition in [*standard, *generated]:
        if definition.id in seen:
            continue
        seen.add(definition.id)
        catalog.append(definition)
    return catalog
