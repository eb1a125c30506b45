"""Tests for achievement evaluation over study logs."""

from datetime import UTC, datetime

import pytest

from study_pulse.models.achievement import AchievementCriteria, Metric, StaticAchievement
from study_pulse.models.study_log import StudyLogEntry
from study_pulse.progress.catalog import STANDARD_ACHIEVEMENTS
from study_pulse.progress.evaluator import compute_aggregates, evaluate


def _log(subject: str = "Physics", minutes: int = 30) -> StudyLogEntry:
    return StudyLogEntry(
        subject=subject,
        duration_minutes=minutes,
        occurred_at=datetime(2026, 3, 1, 9, 0, tzinfo=UTC),
    )


def _achievement(achievement_id: str, metric: Metric, threshold: float) -> StaticAchievement:
    return StaticAchievement(
        id=achievement_id,
        title=achievement_id.replace("_", " ").title(),
        description="test",
        criteria=AchievementCriteria(metric=metric, threshold=threshold),
    )


@pytest.fixture
def small_catalog():
    return [
        _achievement("first_session", Metric.TOTAL_LOGS, 1),
        _achievement("one_hour", Metric.TOTAL_DURATION, 60),
    ]


class TestComputeAggregates:
    def test_empty_logs(self):
        aggregates, skipped = compute_aggregates([])
        assert aggregates.total_duration == 0
        assert aggregates.total_logs == 0
        assert aggregates.unique_subjects == 0
        assert skipped == 0

    def test_sums_counts_and_distinct_subjects(self):
        logs = [_log("Physics", 30), _log("Physics", 45), _log("Chemistry", 20)]
        aggregates, _ = compute_aggregates(logs)
        assert aggregates.total_duration == 95
        assert aggregates.total_logs == 3
        assert aggregates.unique_subjects == 2

    def test_malformed_raw_entries_are_skipped(self):
        logs = [
            {"id": "a", "subject": "Art", "duration_minutes": 15,
             "occurred_at": "2026-03-01T09:00:00Z"},
            {"id": "e", "subject": "Art", "duration_minutes": 45},
            {"id": "b", "subject": "Art"},
            {"id": "c", "subject": "Music", "duration_minutes": "lots"},
            {"id": "d", "duration_minutes": 10},
        ]
        aggregates, skipped = compute_aggregates(logs)
        assert skipped == 4
        assert aggregates.total_logs == 1
        assert aggregates.total_duration == 15


class TestEvaluate:
    def test_two_log_scenario(self, small_catalog):
        result = evaluate([_log(minutes=30), _log(minutes=45)], small_catalog, set())
        assert result.to_award == ["first_session", "one_hour"]
        assert result.all_satisfied is True
        assert result.aggregates.total_duration == 75

    def test_empty_logs_award_nothing(self):
        result = evaluate([], STANDARD_ACHIEVEMENTS, set())
        assert result.to_award == []
        assert result.all_satisfied is False

    def test_threshold_is_inclusive(self):
        catalog = [_achievement("one_hour", Metric.TOTAL_DURATION, 60)]
        assert evaluate([_log(minutes=60)], catalog, set()).to_award == ["one_hour"]
        assert evaluate([_log(minutes=59)], catalog, set()).to_award == []

    def test_already_awarded_not_repeated(self, small_catalog):
        logs = [_log(minutes=30), _log(minutes=45)]
        first = evaluate(logs, small_catalog, set())
        second = evaluate(logs, small_catalog, set(first.to_award))
        assert second.to_award == []
        assert second.all_satisfied is True

    def test_deterministic(self, small_catalog):
        logs = [_log("Art", 10), _log("Music", 70)]
        results = {tuple(evaluate(logs, small_catalog, set()).to_award) for _ in range(5)}
        assert len(results) == 1

    def test_more_logs_never_remove_awards(self):
        logs = [_log("Physics", 30)]
        before = set(evaluate(logs, STANDARD_ACHIEVEMENTS, set()).to_award)
        logs += [_log(subject, 200) for subject in ["Art", "Music", "History", "Biology"]]
        after = set(evaluate(logs, STANDARD_ACHIEVEMENTS, set()).to_award)
        assert before <= after
        assert {"first_session", "one_hour", "five_subjects"} <= after

    def test_partial_progress_not_all_satisfied(self):
        result = evaluate([_log(minutes=90)], STANDARD_ACHIEVEMENTS, set())
        assert result.to_award == ["first_session", "one_hour"]
        assert result.all_satisfied is False

    def test_empty_catalog_is_trivially_satisfied(self):
        result = evaluate([_log()], [], set())
        assert result.to_award == []
        assert result.all_satisfied is True

    def test_duplicate_ids_awarded_once(self):
        catalog = [
            _achievement("first_session", Metric.TOTAL_LOGS, 1),
            _achievement("first_session", Metric.TOTAL_LOGS, 1),
        ]
        assert evaluate([_log()], catalog, set()).to_award == ["first_session"]

    def test_skipped_entries_reported(self, small_catalog):
        logs = [
            {"subject": "Art", "duration_minutes": 61, "occurred_at": "2026-03-01T09:00:00Z"},
            {"subject": "Art"},
        ]
        result = evaluate(logs, small_catalog, set())
        assert result.skipped_entries == 1
        assert result.to_award == ["first_session", "one_hour"]
