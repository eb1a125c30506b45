"""Achievement data models."""

from datetime import datetime
from enum import StrEnum
from typing import Annotated, Literal

from pydantic import BaseModel, Field, TypeAdapter

from study_pulse.models.timestamps import utcnow


class Metric(StrEnum):
    """Aggregate metrics an achievement can be measured against."""

    TOTAL_DURATION = "totalDuration"
    TOTAL_LOGS = "totalLogs"
    UNIQUE_SUBJECTS = "uniqueSubjects"


class AchievementCriteria(BaseModel):
    metric: Metric
    threshold: float = Field(ge=0)


class Aggregates(BaseModel):
    """Scalar totals derived from a user's full log set."""

    total_duration: int = 0
    total_logs: int = 0
    unique_subjects: int = 0

    def value_for(self, metric: Metric) -> int:
        if metric is Metric.TOTAL_DURATION:
            return self.total_duration
        if metric is Metric.TOTAL_LOGS:
            return self.total_logs
        return self.unique_subjects


class GenerationMetadata(BaseModel):
    """Where a generated achievement came from."""

    model: str
    generated_at: datetime = Field(default_factory=utcnow)
    stats_snapshot: Aggregates = Field(default_factory=Aggregates)


class _AchievementBase(BaseModel):
    id: str = Field(min_length=1, max_length=64, pattern=r"^[A-Za-z0-9_-]+$")
    title: str = Field(min_length=1)
    description: str
    icon: str = "Award"
    color: str = "text-primary"
    criteria: AchievementCriteria


class StaticAchievement(_AchievementBase):
    """Built-in achievement shipped with the application."""

    kind: Literal["static"] = "static"


class GeneratedAchievement(_AchievementBase):
    """Achievement authored by the language model for one user."""

    kind: Literal["generated"] = "generated"
    source: GenerationMetadata


AchievementDefinition = Annotated[
    StaticAchievement | GeneratedAchievement,
    Field(discriminator="kind"),
]

achievement_adapter: TypeAdapter[AchievementDefinition] = TypeAdapter(AchievementDefinition)


class AwardedAchievement(BaseModel):
    achievement_id: str
    awarded_at: datetime = Field(default_factory=utcnow)


class AchievementStatus(BaseModel):
    """A catalog entry annotated with the user's earned state."""

    definition: AchievementDefinition
    earned: bool = False
    awarded_at: datetime | None = None
