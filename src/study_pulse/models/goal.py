"""Goal and task data models."""

from datetime import date, datetime

from pydantic import BaseModel, Field, field_validator

from study_pulse.models.timestamps import ensure_utc, utcnow


class Goal(BaseModel):
    """Target minutes for one subject, with progress derived from logs."""

    id: str | None = None
    description: str = ""
    subject: str = Field(min_length=1)
    target_minutes: int = Field(ge=1)
    current_minutes: int = 0
    completed: bool = False
    created_at: datetime = Field(default_factory=utcnow)
    completed_at: datetime | None = None

    @field_validator("created_at", "completed_at")
    @classmethod
    def _normalize_timestamps(cls, value: datetime | None) -> datetime | None:
        return ensure_utc(value) if value is not None else None

    @property
    def progress_percent(self) -> float:
        return round(self.current_minutes / self.target_minutes * 100, 1)


class GoalCreate(BaseModel):
    description: str = ""
    subject: str = Field(min_length=1)
    target_minutes: int = Field(ge=1)


class GoalUpdate(BaseModel):
    description: str | None = None
    subject: str | None = Field(default=None, min_length=1)
    target_minutes: int | None = Field(default=None, ge=1)


class Task(BaseModel):
    id: str | None = None
    title: str = Field(min_length=1)
    description: str | None = None
    due_date: date | None = None
    completed: bool = False
    created_at: datetime = Field(default_factory=utcnow)


class TaskCreate(BaseModel):
    title: str = Field(min_length=1)
    description: str | None = None
    due_date: date | None = None


class TaskUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1)
    description: str | None = None
    due_date: date | None = None
    completed: bool | None = None
