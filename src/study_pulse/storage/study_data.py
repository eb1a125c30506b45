"""Typed access to a user's study collections in the document store."""

from typing import Any

import structlog
from pydantic import ValidationError

from study_pulse.models.achievement import AwardedAchievement, GeneratedAchievement
from study_pulse.models.feedback import Feedback
from study_pulse.models.goal import Goal, Task
from study_pulse.models.study_log import StudyLogEntry
from study_pulse.models.user import UserProfile
from study_pulse.storage.documents import DocumentStore

logger = structlog.get_logger()

LOGS = "studyLogs"
AWARDS = "achievements"
GENERATED = "customAchievements"
GOALS = "goals"
TASKS = "tasks"
PROFILE = "profile"
PROFILE_DOC = "main"
FEEDBACK = "feedback"


def _dump(model) -> dict[str, Any]:
    return model.model_dump(mode="json", exclude={"id"})


# Study logs


def load_raw_logs(store: DocumentStore, user_id: str) -> list[dict[str, Any]]:
    """Log documents as stored; malformed ones are left for the caller to skip."""
    return store.list_documents(user_id, LOGS)


def load_logs(store: DocumentStore, user_id: str) -> list[StudyLogEntry]:
    logs = []
    for doc in load_raw_logs(store, user_id):
        try:
            logs.append(StudyLogEntry.model_validate(doc))
        except ValidationError:
            logger.warning("log_document_invalid", user_id=user_id, log_id=doc.get("id"))
    logs.sort(key=lambda entry: entry.occurred_at, reverse=True)
    return logs


def add_log(store: DocumentStore, user_id: str, entry: StudyLogEntry) -> StudyLogEntry:
    doc = store.create_document(user_id, LOGS, _dump(entry))
    return StudyLogEntry.model_validate(doc)


def update_log(store: DocumentStore, user_id: str, log_id: str, changes: dict[str, Any]) -> StudyLogEntry:
    doc = store.update_document(user_id, LOGS, log_id, changes)
    return StudyLogEntry.model_validate(doc)


def delete_log(store: DocumentStore, user_id: str, log_id: str) -> None:
    store.delete_document(user_id, LOGS, log_id)


# Achievements


def load_awards(store: DocumentStore, user_id: str) -> list[AwardedAchievement]:
    return [
        AwardedAchievement.model_validate({**doc, "achievement_id": doc["id"]})
        for doc in store.list_documents(user_id, AWARDS)
    ]


def load_awarded_ids(store: DocumentStore, user_id: str) -> set[str]:
    return {doc["id"] for doc in store.list_documents(user_id, AWARDS)}


def award_achievement(store: DocumentStore, user_id: str, award: AwardedAchievement) -> bool:
    """Record an award keyed on its achievement id.

    Returns:
        False if the achievement had already been awarded.
    """
    return store.create_if_absent(
        user_id, AWARDS, award.achievement_id, award.model_dump(mode="json")
    )


def load_generated(store: DocumentStore, user_id: str) -> list[GeneratedAchievement]:
    generated = []
    for doc in store.list_documents(user_id, GENERATED):
        try:
            generated.append(GeneratedAchievement.model_validate(doc))
        except ValidationError:
            logger.warning("generated_achievement_invalid", user_id=user_id, achievement_id=doc.get("id"))
    generated.sort(key=lambda a: a.source.generated_at)
    return generated


def save_generated(
    store: DocumentStore, user_id: str, achievements: list[GeneratedAchievement]
) -> int:
    """Persist generated definitions, never replacing an existing id.

    Returns:
        Number of definitions written.
    """
    written = 0
    for achievement in achievements:
        body = achievement.model_dump(mode="json")
        if store.create_if_absent(user_id, GENERATED, achievement.id, body):
            written += 1
    return written


# Goals


def load_goals(store: DocumentStore, user_id: str) -> list[Goal]:
    goals = [Goal.model_validate(doc) for doc in store.list_documents(user_id, GOALS)]
    goals.sort(key=lambda g: g.created_at, reverse=True)
    return goals


def get_goal(store: DocumentStore, user_id: str, goal_id: str) -> Goal:
    doc = store.get_document(user_id, GOALS, goal_id)
    if doc is None:
        raise KeyError(goal_id)
    return Goal.model_validate(doc)


def add_goal(store: DocumentStore, user_id: str, goal: Goal) -> Goal:
    return Goal.model_validate(store.create_document(user_id, GOALS, _dump(goal)))


def save_goal(store: DocumentStore, user_id: str, goal: Goal) -> Goal:
    if goal.id is None:
        return add_goal(store, user_id, goal)
    return Goal.model_validate(store.set_document(user_id, GOALS, goal.id, _dump(goal)))


def delete_goal(store: DocumentStore, user_id: str, goal_id: str) -> None:
    store.delete_document(user_id, GOALS, goal_id)


# Tasks


def load_tasks(store: DocumentStore, user_id: str) -> list[Task]:
    tasks = [Task.model_validate(doc) for doc in store.list_documents(user_id, TASKS)]
    tasks.sort(key=lambda t: t.created_at, reverse=True)
    return tasks


def add_task(store: DocumentStore, user_id: str, task: Task) -> Task:
    return Task.model_validate(store.create_document(user_id, TASKS, _dump(task)))


def update_task(store: DocumentStore, user_id: str, task_id: str, changes: dict[str, Any]) -> Task:
    return Task.model_validate(store.update_document(user_id, TASKS, task_id, changes))


def delete_task(store: DocumentStore, user_id: str, task_id: str) -> None:
    store.delete_document(user_id, TASKS, task_id)


# Profile


def load_profile(store: DocumentStore, user_id: str) -> UserProfile:
    doc = store.get_document(user_id, PROFILE, PROFILE_DOC)
    if doc is None:
        return UserProfile(user_id=user_id)
    doc.pop("id", None)
    return UserProfile(**{**doc, "user_id": user_id})


def save_profile(store: DocumentStore, profile: UserProfile) -> None:
    store.set_document(profile.user_id, PROFILE, PROFILE_DOC, profile.model_dump(mode="json"))


# Feedback


def add_feedback(store: DocumentStore, feedback: Feedback) -> Feedback:
    return Feedback.model_validate(store.add_shared_document(FEEDBACK, _dump(feedback)))


def load_feedback(store: DocumentStore) -> list[Feedback]:
    """The feedback inbox, newest first."""
    inbox = [Feedback.model_validate(doc) for doc in store.list_shared_documents(FEEDBACK)]
    inbox.sort(key=lambda f: f.created_at, reverse=True)
    return inbox
