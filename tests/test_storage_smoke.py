"""Smoke tests for the JSON document store and typed study-data access."""

import pytest

from study_pulse.models.achievement import AwardedAchievement
from study_pulse.models.goal import Goal, Task
from study_pulse.models.study_log import StudyLogEntry
from study_pulse.models.user import UserProfile
from study_pulse.storage import study_data
from study_pulse.storage.documents import DocumentStore


@pytest.fixture
def store(tmp_path):
    return DocumentStore(tmp_path)


class TestDocumentStore:
    def test_empty_collection(self, store):
        assert store.list_documents("alice", "studyLogs") == []
        assert store.get_document("alice", "studyLogs", "missing") is None

    def test_create_and_list(self, store):
        doc = store.create_document("alice", "tasks", {"title": "Read"})
        assert doc["id"]
        assert store.list_documents("alice", "tasks") == [{"title": "Read", "id": doc["id"]}]

    def test_set_overwrites(self, store):
        store.set_document("alice", "goals", "g1", {"target": 10})
        store.set_document("alice", "goals", "g1", {"target": 20})
        assert store.get_document("alice", "goals", "g1") == {"target": 20, "id": "g1"}

    def test_create_if_absent_only_once(self, store):
        assert store.create_if_absent("alice", "achievements", "one_hour", {"n": 1}) is True
        assert store.create_if_absent("alice", "achievements", "one_hour", {"n": 2}) is False
        assert store.get_document("alice", "achievements", "one_hour")["n"] == 1

    def test_update_merges(self, store):
        store.set_document("alice", "tasks", "t1", {"title": "Read", "completed": False})
        updated = store.update_document("alice", "tasks", "t1", {"completed": True})
        assert updated == {"title": "Read", "completed": True, "id": "t1"}

    def test_update_missing_raises(self, store):
        with pytest.raises(KeyError):
            store.update_document("alice", "tasks", "nope", {"completed": True})

    def test_delete(self, store):
        store.set_document("alice", "tasks", "t1", {"title": "Read"})
        store.delete_document("alice", "tasks", "t1")
        assert store.list_documents("alice", "tasks") == []
        with pytest.raises(KeyError):
            store.delete_document("alice", "tasks", "t1")

    def test_users_are_isolated(self, store):
        store.create_document("alice", "studyLogs", {"subject": "Art"})
        assert store.list_documents("bob", "studyLogs") == []
        assert store.list_users() == ["alice", "bob"]

    def test_rejects_path_traversal(self, store):
        with pytest.raises(ValueError):
            store.list_documents("../etc", "studyLogs")
        with pytest.raises(ValueError):
            store.list_documents("alice", "../../passwd")

    def test_shared_collection_is_not_a_user(self, store):
        doc = store.add_shared_document("feedback", {"subject": "Hi", "id": "ignored"})
        assert doc["id"] != "ignored"
        assert store.list_shared_documents("feedback") == [{"subject": "Hi", "id": doc["id"]}]
        assert store.list_users() == []
        with pytest.raises(ValueError):
            store.add_shared_document("../feedback", {})


class TestStudyData:
    def test_log_roundtrip_sorted_newest_first(self, store):
        study_data.add_log(store, "alice", StudyLogEntry(
            subject="Art", duration_minutes=10, occurred_at="2026-03-01T10:00:00Z"))
        study_data.add_log(store, "alice", StudyLogEntry(
            subject="Music", duration_minutes=20, occurred_at="2026-03-02T10:00:00Z"))
        logs = study_data.load_logs(store, "alice")
        assert [log.subject for log in logs] == ["Music", "Art"]
        assert all(log.id for log in logs)

    def test_invalid_log_documents_kept_raw(self, store):
        store.create_document("alice", "studyLogs", {"subject": "Art"})
        assert len(study_data.load_raw_logs(store, "alice")) == 1
        assert study_data.load_logs(store, "alice") == []

    def test_award_is_keyed_on_achievement_id(self, store):
        award = AwardedAchievement(achievement_id="first_session")
        assert study_data.award_achievement(store, "alice", award) is True
        assert study_data.award_achievement(store, "alice", award) is False
        assert study_data.load_awarded_ids(store, "alice") == {"first_session"}
        loaded = study_data.load_awards(store, "alice")
        assert loaded[0].achievement_id == "first_session"

    def test_goal_save_and_reload(self, store):
        goal = study_data.add_goal(store, "alice", Goal(subject="Physics", target_minutes=90))
        goal = goal.model_copy(update={"current_minutes": 45})
        study_data.save_goal(store, "alice", goal)
        assert study_data.get_goal(store, "alice", goal.id).current_minutes == 45
        with pytest.raises(KeyError):
            study_data.get_goal(store, "alice", "missing")

    def test_task_toggle(self, store):
        task = study_data.add_task(store, "alice", Task(title="Flashcards"))
        toggled = study_data.update_task(store, "alice", task.id, {"completed": True})
        assert toggled.completed is True

    def test_profile_defaults_and_save(self, store):
        assert study_data.load_profile(store, "alice") == UserProfile(user_id="alice")
        study_data.save_profile(store, UserProfile(user_id="alice", display_name="Alice"))
        assert study_data.load_profile(store, "alice").display_name == "Alice"
