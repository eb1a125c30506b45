"""Tests for goal progress recomputation."""

from datetime import UTC, datetime, timedelta

from study_pulse.models.goal import Goal
from study_pulse.models.study_log import StudyLogEntry
from study_pulse.progress.goals import matching_logs, recompute

CREATED = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)
NOW = datetime(2026, 3, 5, 18, 30, tzinfo=UTC)


def _goal(target: int = 100, **kwargs) -> Goal:
    return Goal(id="g1", subject="Mathematics", target_minutes=target, created_at=CREATED, **kwargs)


def _log(minutes: int, subject: str = "Mathematics", offset_hours: int = 1) -> StudyLogEntry:
    return StudyLogEntry(
        subject=subject,
        duration_minutes=minutes,
        occurred_at=CREATED + timedelta(hours=offset_hours),
    )


class TestMatchingLogs:
    def test_filters_subject_and_window(self):
        logs = [
            _log(10),
            _log(20, subject="Physics"),
            _log(30, offset_hours=-1),
            _log(40, offset_hours=0),
        ]
        matched = matching_logs(_goal(), logs)
        assert sorted(e.duration_minutes for e in matched) == [10, 40]

    def test_skips_malformed_documents(self):
        logs = [
            {"subject": "Mathematics", "occurred_at": "2026-03-02T00:00:00Z"},
            {"subject": "Mathematics", "duration_minutes": 25, "occurred_at": "2026-03-02T00:00:00Z"},
        ]
        matched = matching_logs(_goal(), logs)
        assert [e.duration_minutes for e in matched] == [25]

    def test_log_without_timestamp_not_counted(self):
        goal = Goal(subject="Mathematics", target_minutes=100,
                    created_at=datetime.now(UTC) - timedelta(minutes=1))
        logs = [{"id": "old", "subject": "Mathematics", "duration_minutes": 90}]
        assert matching_logs(goal, logs) == []
        assert recompute(goal, matching_logs(goal, logs), now=NOW).current_minutes == 0


class TestRecompute:
    def test_partial_progress(self):
        goal = recompute(_goal(), [_log(40)], now=NOW)
        assert goal.current_minutes == 40
        assert goal.completed is False
        assert goal.completed_at is None

    def test_completion_clamps_and_stamps(self):
        goal = recompute(_goal(), [_log(40)], now=NOW)
        goal = recompute(goal, [_log(40), _log(70)], now=NOW)
        assert goal.current_minutes == 100
        assert goal.completed is True
        assert goal.completed_at == NOW

    def test_clamp_matches_min_of_sum_and_target(self):
        for total in (0, 1, 99, 100, 101, 500):
            logs = [_log(total)] if total else []
            goal = recompute(_goal(), logs, now=NOW)
            assert goal.current_minutes == min(total, 100)
            assert goal.completed == (total >= 100)

    def test_idempotent(self):
        logs = [_log(60), _log(60)]
        once = recompute(_goal(), logs, now=NOW)
        twice = recompute(once, logs, now=NOW)
        assert once == twice

    def test_completed_at_kept_on_later_passes(self):
        done = recompute(_goal(), [_log(120)], now=NOW)
        later = recompute(done, [_log(120), _log(30)], now=NOW + timedelta(days=1))
        assert later.completed_at == NOW

    def test_never_uncompletes(self):
        done = recompute(_goal(), [_log(120)], now=NOW)
        after_delete = recompute(done, [], now=NOW)
        assert after_delete.completed is True
        assert after_delete.completed_at == NOW

    def test_input_goal_not_modified(self):
        goal = _goal()
        recompute(goal, [_log(150)], now=NOW)
        assert goal.current_minutes == 0
        assert goal.completed is False
