"""Service wiring and request dependencies for the API routes."""

from dataclasses import dataclass

import structlog
from fastapi import Depends, HTTPException, Request

from study_pulse.ai.achievements import AchievementGenerator
from study_pulse.ai.tutor import StudyPlanner, TutorChat
from study_pulse.config import Settings
from study_pulse.events import EventDispatcher, LogsChanged
from study_pulse.models.user import Identity
from study_pulse.services.progress import ProgressService
from study_pulse.storage import study_data
from study_pulse.storage.documents import DocumentStore, is_valid_user_id

logger = structlog.get_logger()


@dataclass
class Services:
    store: DocumentStore
    progress: ProgressService
    dispatcher: EventDispatcher
    tutor: TutorChat
    planner: StudyPlanner
    leaderboard_limit: int = 50


def build_services(settings: Settings) -> Services:
    """Create the store, AI clients and progress handler from settings."""
    store = DocumentStore(settings.data_dir)
    generator = AchievementGenerator(
        api_key=settings.openai_api_key, model=settings.generation_model
    )
    progress = ProgressService(
        store, generator=generator, max_generated=settings.max_generated_achievements
    )
    dispatcher = EventDispatcher()
    dispatcher.subscribe(LogsChanged, progress.handle_logs_changed)
    return Services(
        store=store,
        progress=progress,
        dispatcher=dispatcher,
        tutor=TutorChat(api_key=settings.openai_api_key, model=settings.generation_model),
        planner=StudyPlanner(api_key=settings.openai_api_key, model=settings.generation_model),
        leaderboard_limit=settings.leaderboard_limit,
    )


def get_services(request: Request) -> Services:
    return request.app.state.services


def get_identity(request: Request) -> Identity | None:
    """Identity forwarded by the auth provider, or None when signed out."""
    uid = request.headers.get("X-User-Id", "").strip()
    if not uid:
        return None
    return Identity(
        uid=uid,
        email=request.headers.get("X-User-Email") or None,
        display_name=request.headers.get("X-User-Name") or None,
    )


def require_identity(
    identity: Identity | None = Depends(get_identity),
    services: Services = Depends(get_services),
) -> Identity:
    if identity is None:
        raise HTTPException(status_code=401, detail="Sign in required")
    if not is_valid_user_id(identity.uid):
        raise HTTPException(status_code=400, detail="Invalid user ID format")

    # headers the provider left out keep the stored value
    changes = {
        field: value
        for field, value in (("email", identity.email), ("display_name", identity.display_name))
        if value is not None
    }
    profile = study_data.load_profile(services.store, identity.uid)
    if any(getattr(profile, field) != value for field, value in changes.items()):
        study_data.save_profile(services.store, profile.model_copy(update=changes))
        logger.debug("profile_synced", user_id=identity.uid, fields=sorted(changes))
    return identity
