"""Achievement unlock evaluation over a user's study logs.

Everything here is side-effect free: callers pass in the log snapshot, the
catalog and the ids already awarded, and get back the ids to award. Writing
awards is the caller's job.
"""

from collections.abc import Collection, Iterable, Mapping
from typing import Any

import structlog
from pydantic import BaseModel, Field, ValidationError

from study_pulse.models.achievement import AchievementDefinition, Aggregates
from study_pulse.models.study_log import StudyLogEntry

logger = structlog.get_logger()

RawLog = StudyLogEntry | Mapping[str, Any]


class EvaluationResult(BaseModel):
    """Outcome of one evaluation pass."""

    to_award: list[str] = Field(default_factory=list)
    all_satisfied: bool = False
    aggregates: Aggregates = Field(default_factory=Aggregates)
    skipped_entries: int = 0


def coerce_logs(logs: Iterable[RawLog]) -> tuple[list[StudyLogEntry], int]:
    """Validate raw log documents, dropping malformed ones.

    Returns:
        (valid entries, number of entries skipped)
    """
    valid: list[StudyLogEntry] = []
    skipped = 0
    for raw in logs:
        if isinstance(raw, StudyLogEntry):
            valid.append(raw)
            continue
        try:
            valid.append(StudyLogEntry.model_validate(raw))
        except ValidationError as e:
            skipped += 1
            logger.debug("log_entry_skipped", log_id=_raw_id(raw), errors=e.error_count())
    return valid, skipped


def _raw_id(raw: Any) -> str | None:
    if isinstance(raw, Mapping):
        return raw.get("id")
    return None


def compute_aggregates(logs: Iterable[RawLog]) -> tuple[Aggregates, int]:
    """Sum durations, count entries and distinct subjects in one pass.

    Args:
        logs: Log entries or raw log documents.

    Returns:
        (aggregates, number of malformed entries skipped)
    """
    entries, skipped = coerce_logs(logs)
    total_duration = 0
    subjects: set[str] = set()
    for entry in entries:
        total_duration += entry.duration_minutes
        subjects.add(entry.subject)

    aggregates = Aggregates(
        total_duration=total_duration,
        total_logs=len(entries),
        unique_subjects=len(subjects),
    )
    if skipped:
        logger.warning("malformed_logs_skipped", skipped=skipped, counted=len(entries))
    return aggregates, skipped


def evaluate(
    logs: Iterable[RawLog],
    catalog: Iterable[AchievementDefinition],
    already_awarded: Collection[str],
) -> EvaluationResult:
    """Work out which achievements the log set newly unlocks.

    Each definition is checked on its own against the same aggregates with
    ``>=``, so catalog order only affects the order of ``to_award``.

    Args:
        logs: The user's full log snapshot.
        catalog: Static and generated achievement definitions.
        already_awarded: Ids the user already holds.

    Returns:
        EvaluationResult. ``all_satisfied`` is true when every catalog id is
        either already awarded or in ``to_award``.
    """
    aggregates, skipped = compute_aggregates(logs)
    awarded = set(already_awarded)

    to_award: list[str] = []
    all_satisfied = True
    for definition in catalog:
        if definition.id in awarded or definition.id in to_award:
            continue
        criteria = definition.criteria
        if aggregates.value_for(criteria.metric) >= criteria.threshold:
            to_award.append(definition.id)
        else:
            all_satisfied = False

    logger.debug(
        "achievements_evaluated",
        to_award=to_award,
        all_satisfied=all_satisfied,
        total_duration=aggregates.total_duration,
        total_logs=aggregates.total_logs,
        unique_subjects=aggregates.unique_subjects,
    )
    return EvaluationResult(
        to_award=to_award,
        all_satisfied=all_satisfied,
        aggregates=aggregates,
        skipped_entries=skipped,
    )
