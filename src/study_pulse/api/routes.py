"""REST API routes for study logs, goals, tasks, achievements, feedback and AI helpers."""

import json

import structlog
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from study_pulse.ai.base import AIServiceError
from study_pulse.ai.tutor import ChatMessage
from study_pulse.api.deps import Services, get_identity, get_services, require_identity
from study_pulse.events import LogsChanged
from study_pulse.models.achievement import AchievementStatus
from study_pulse.models.feedback import Feedback, FeedbackCreate
from study_pulse.models.goal import Goal, GoalCreate, GoalUpdate, Task, TaskCreate, TaskUpdate
from study_pulse.models.study_log import StudyLogCreate, StudyLogEntry, StudyLogUpdate
from study_pulse.models.user import Identity, LeaderboardEntry
from study_pulse.progress.catalog import build_catalog
from study_pulse.services.progress import ProgressUpdate
from study_pulse.services.summary import DashboardSummary, build_leaderboard, dashboard_summary
from study_pulse.storage import study_data
from study_pulse.storage.documents import is_valid_user_id

logger = structlog.get_logger()
router = APIRouter(prefix="/api")


class LogResponse(BaseModel):
    log: StudyLogEntry | None = None
    progress: ProgressUpdate | None = None


class TutorRequest(BaseModel):
    history: list[ChatMessage] = Field(default_factory=list)
    message: str = Field(min_length=1)


class PlanRequest(BaseModel):
    study_goals: str = Field(min_length=10)
    available_time: str = Field(min_length=3)
    subjects: str = Field(min_length=3)


async def _logs_changed(services: Services, user_id: str) -> ProgressUpdate | None:
    results = await services.dispatcher.dispatch(LogsChanged(user_id=user_id))
    for result in results:
        if isinstance(result, ProgressUpdate):
            return result
    return None


@router.get("/health")
async def health_check() -> dict:
    """Health check endpoint."""
    return {"status": "ok"}


# Study logs


@router.get("/logs")
async def list_logs(
    identity: Identity = Depends(require_identity),
    services: Services = Depends(get_services),
) -> list[StudyLogEntry]:
    return study_data.load_logs(services.store, identity.uid)


@router.post("/logs", status_code=201)
async def create_log(
    payload: StudyLogCreate,
    identity: Identity = Depends(require_identity),
    services: Services = Depends(get_services),
) -> LogResponse:
    """Log a study session and run an evaluation pass."""
    fields = payload.model_dump(exclude_none=True)
    entry = study_data.add_log(services.store, identity.uid, StudyLogEntry(**fields))
    logger.info("study_log_created", user_id=identity.uid, subject=entry.subject,
                duration_minutes=entry.duration_minutes)
    return LogResponse(log=entry, progress=await _logs_changed(services, identity.uid))


@router.patch("/logs/{log_id}")
async def edit_log(
    log_id: str,
    payload: StudyLogUpdate,
    identity: Identity = Depends(require_identity),
    services: Services = Depends(get_services),
) -> LogResponse:
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    try:
        entry = study_data.update_log(services.store, identity.uid, log_id, changes)
    except KeyError:
        raise HTTPException(status_code=404, detail="Study log not found")
    return LogResponse(log=entry, progress=await _logs_changed(services, identity.uid))


@router.delete("/logs/{log_id}")
async def remove_log(
    log_id: str,
    identity: Identity = Depends(require_identity),
    services: Services = Depends(get_services),
) -> LogResponse:
    try:
        study_data.delete_log(services.store, identity.uid, log_id)
    except KeyError:
        raise HTTPException(status_code=404, detail="Study log not found")
    return LogResponse(progress=await _logs_changed(services, identity.uid))


# Goals


@router.get("/goals")
async def list_goals(
    identity: Identity = Depends(require_identity),
    services: Services = Depends(get_services),
) -> list[Goal]:
    return study_data.load_goals(services.store, identity.uid)


@router.post("/goals", status_code=201)
async def create_goal(
    payload: GoalCreate,
    identity: Identity = Depends(require_identity),
    services: Services = Depends(get_services),
) -> Goal:
    goal = study_data.add_goal(services.store, identity.uid, Goal(**payload.model_dump()))
    logger.info("goal_created", user_id=identity.uid, goal_id=goal.id, subject=goal.subject)
    return goal


@router.patch("/goals/{goal_id}")
async def edit_goal(
    goal_id: str,
    payload: GoalUpdate,
    identity: Identity = Depends(require_identity),
    services: Services = Depends(get_services),
) -> Goal:
    """Edit an active goal; its progress is recomputed against the new target."""
    try:
        goal = study_data.get_goal(services.store, identity.uid, goal_id)
    except KeyError:
        raise HTTPException(status_code=404, detail="Goal not found")
    if goal.completed:
        raise HTTPException(status_code=409, detail="Completed goals cannot be edited")

    goal = goal.model_copy(update=payload.model_dump(exclude_unset=True, exclude_none=True))
    study_data.save_goal(services.store, identity.uid, goal)
    await _logs_changed(services, identity.uid)
    return study_data.get_goal(services.store, identity.uid, goal_id)


@router.delete("/goals/{goal_id}", status_code=204)
async def remove_goal(
    goal_id: str,
    identity: Identity = Depends(require_identity),
    services: Services = Depends(get_services),
) -> None:
    try:
        study_data.delete_goal(services.store, identity.uid, goal_id)
    except KeyError:
        raise HTTPException(status_code=404, detail="Goal not found")


# Tasks


@router.get("/tasks")
async def list_tasks(
    identity: Identity = Depends(require_identity),
    services: Services = Depends(get_services),
) -> list[Task]:
    return study_data.load_tasks(services.store, identity.uid)


@router.post("/tasks", status_code=201)
async def create_task(
    payload: TaskCreate,
    identity: Identity = Depends(require_identity),
    services: Services = Depends(get_services),
) -> Task:
    return study_data.add_task(services.store, identity.uid, Task(**payload.model_dump()))


@router.patch("/tasks/{task_id}")
async def edit_task(
    task_id: str,
    payload: TaskUpdate,
    identity: Identity = Depends(require_identity),
    services: Services = Depends(get_services),
) -> Task:
    changes = payload.model_dump(mode="json", exclude_unset=True, exclude_none=True)
    try:
        return study_data.update_task(services.store, identity.uid, task_id, changes)
    except KeyError:
        raise HTTPException(status_code=404, detail="Task not found")


@router.delete("/tasks/{task_id}", status_code=204)
async def remove_task(
    task_id: str,
    identity: Identity = Depends(require_identity),
    services: Services = Depends(get_services),
) -> None:
    try:
        study_data.delete_task(services.store, identity.uid, task_id)
    except KeyError:
        raise HTTPException(status_code=404, detail="Task not found")


# Achievements and summaries


@router.get("/achievements")
async def list_achievements(
    identity: Identity = Depends(require_identity),
    services: Services = Depends(get_services),
) -> list[AchievementStatus]:
    """The user's catalog, each entry marked earned or locked."""
    awards = {a.achievement_id: a for a in study_data.load_awards(services.store, identity.uid)}
    catalog = build_catalog(study_data.load_generated(services.store, identity.uid))
    return [
        AchievementStatus(
            definition=definition,
            earned=definition.id in awards,
            awarded_at=awards[definition.id].awarded_at if definition.id in awards else None,
        )
        for definition in catalog
    ]


@router.post("/achievements/evaluate")
async def evaluate_achievements(
    identity: Identity | None = Depends(get_identity),
    services: Services = Depends(get_services),
) -> ProgressUpdate:
    """Run an evaluation pass now; signed-out callers get a no-op update."""
    if identity is not None and not is_valid_user_id(identity.uid):
        raise HTTPException(status_code=400, detail="Invalid user ID format")
    event = LogsChanged(user_id=identity.uid if identity else None)
    try:
        return await services.progress.handle_logs_changed(event)
    except (OSError, json.JSONDecodeError):
        logger.exception("progress_evaluation_failed", user_id=event.user_id)
        raise HTTPException(status_code=503, detail="Progress could not be updated. Please try again.")


@router.get("/dashboard")
async def get_dashboard(
    identity: Identity = Depends(require_identity),
    services: Services = Depends(get_services),
) -> DashboardSummary:
    return dashboard_summary(study_data.load_raw_logs(services.store, identity.uid))


@router.get("/leaderboard")
async def get_leaderboard(services: Services = Depends(get_services)) -> list[LeaderboardEntry]:
    try:
        return build_leaderboard(services.store, limit=services.leaderboard_limit)
    except OSError:
        logger.exception("leaderboard_failed")
        raise HTTPException(status_code=503, detail="Could not retrieve leaderboard.")


@router.post("/feedback", status_code=201)
async def submit_feedback(
    payload: FeedbackCreate,
    identity: Identity | None = Depends(get_identity),
    services: Services = Depends(get_services),
) -> Feedback:
    """Store a contact-form message in the shared feedback inbox."""
    feedback = Feedback(**payload.model_dump(), user_id=identity.uid if identity else None)
    try:
        stored = study_data.add_feedback(services.store, feedback)
    except (OSError, json.JSONDecodeError):
        logger.exception("feedback_submit_failed", user_id=feedback.user_id)
        raise HTTPException(status_code=503, detail="Could not submit feedback.")
    logger.info("feedback_submitted", feedback_id=stored.id, user_id=stored.user_id)
    return stored


# AI helpers


@router.post("/tutor/chat")
async def tutor_chat(
    payload: TutorRequest,
    identity: Identity = Depends(require_identity),
    services: Services = Depends(get_services),
) -> dict:
    try:
        response = await services.tutor.reply(payload.history, payload.message)
    except AIServiceError:
        raise HTTPException(status_code=502, detail="Failed to get response from AI tutor.")
    return {"response": response}


@router.post("/plan")
async def generate_plan(
    payload: PlanRequest,
    identity: Identity = Depends(require_identity),
    services: Services = Depends(get_services),
) -> dict:
    try:
        plan = await services.planner.generate(
            payload.study_goals, payload.available_time, payload.subjects
        )
    except AIServiceError:
        raise HTTPException(status_code=502, detail="Failed to generate study plan.")
    return {"study_plan": plan}
