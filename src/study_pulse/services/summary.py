"""Dashboard totals and the cross-user leaderboard."""

from collections import defaultdict

import structlog
from pydantic import BaseModel, Field

from study_pulse.models.achievement import Aggregates
from study_pulse.models.study_log import StudyLogEntry
from study_pulse.models.user import LeaderboardEntry
from study_pulse.progress.evaluator import compute_aggregates, coerce_logs
from study_pulse.storage import study_data
from study_pulse.storage.documents import DocumentStore

logger = structlog.get_logger()

RECENT_LOG_COUNT = 10


class SubjectMinutes(BaseModel):
    subject: str
    minutes: int


class DashboardSummary(BaseModel):
    aggregates: Aggregates = Field(default_factory=Aggregates)
    minutes_by_subject: list[SubjectMinutes] = Field(default_factory=list)
    recent_logs: list[StudyLogEntry] = Field(default_factory=list)


def dashboard_summary(raw_logs: list[dict]) -> DashboardSummary:
    """Totals, minutes per subject (largest first) and the latest sessions."""
    entries, _ = coerce_logs(raw_logs)
    aggregates, _ = compute_aggregates(entries)

    per_subject: dict[str, int] = defaultdict(int)
    for entry in entries:
        per_subject[entry.subject] += entry.duration_minutes
    minutes_by_subject = [
        SubjectMinutes(subject=subject, minutes=minutes)
        for subject, minutes in sorted(per_subject.items(), key=lambda kv: (-kv[1], kv[0]))
    ]

    recent = sorted(entries, key=lambda e: e.occurred_at, reverse=True)[:RECENT_LOG_COUNT]
    return DashboardSummary(
        aggregates=aggregates,
        minutes_by_subject=minutes_by_subject,
        recent_logs=recent,
    )


def build_leaderboard(store: DocumentStore, limit: int = 50) -> list[LeaderboardEntry]:
    """Rank every known user by total minutes studied."""
    entries = []
    for user_id in store.list_users():
        aggregates, _ = compute_aggregates(study_data.load_raw_logs(store, user_id))
        profile = study_data.load_profile(store, user_id)
        entries.append(LeaderboardEntry(
            uid=user_id,
            display_name=profile.display_name,
            email=profile.email,
            photo_url=profile.photo_url,
            total_minutes=aggregates.total_duration,
        ))

    entries.sort(key=lambda e: (-e.total_minutes, e.uid))
    logger.debug("leaderboard_built", users=len(entries), limit=limit)
    return entries[:limit]
