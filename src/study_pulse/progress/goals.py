"""Goal progress recomputation."""

from collections.abc import Iterable
from datetime import datetime

from study_pulse.models.goal import Goal
from study_pulse.models.study_log import StudyLogEntry
from study_pulse.models.timestamps import utcnow
from study_pulse.progress.evaluator import RawLog, coerce_logs


def matching_logs(goal: Goal, logs: Iterable[RawLog]) -> list[StudyLogEntry]:
    """Logs for the goal's subject recorded on or after the goal was created."""
    entries, _ = coerce_logs(logs)
    return [
        entry for entry in entries
        if entry.subject == goal.subject and entry.occurred_at >= goal.created_at
    ]


def recompute(
    goal: Goal,
    matching: Iterable[StudyLogEntry],
    now: datetime | None = None,
) -> Goal:
    """Derive current minutes and completion from the matching logs.

    Progress is re-summed rather than incremented and clamped to the target.
    A completed goal stays completed and keeps its original completed_at.

    Args:
        goal: Goal to recompute.
        matching: Logs already filtered with matching_logs.
        now: Timestamp to stamp on a fresh completion.

    Returns:
        A new Goal; the input is not modified.
    """
    total = sum(entry.duration_minutes for entry in matching)
    current = min(goal.target_minutes, total)
    reached = current >= goal.target_minutes

    update: dict = {"current_minutes": current}
    if reached and not goal.completed:
        update["completed"] = True
        update["completed_at"] = now or utcnow()
    return goal.model_copy(update=update)
