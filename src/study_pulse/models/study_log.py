"""Study log data models."""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from study_pulse.models.timestamps import ensure_utc, utcnow


class StudyLogEntry(BaseModel):
    """One recorded study session."""

    id: str | None = None
    subject: str = Field(min_length=1)
    duration_minutes: int = Field(ge=1)
    occurred_at: datetime
    notes: str | None = None

    @field_validator("occurred_at")
    @classmethod
    def _normalize_occurred_at(cls, value: datetime) -> datetime:
        return ensure_utc(value)


class StudyLogCreate(BaseModel):
    """Payload for logging a new session."""

    subject: str = Field(min_length=1)
    duration_minutes: int = Field(ge=1)
    occurred_at: datetime = Field(default_factory=utcnow)
    notes: str | None = None


class StudyLogUpdate(BaseModel):
    """Partial edit of an existing session."""

    subject: str | None = Field(default=None, min_length=1)
    duration_minutes: int | None = Field(default=None, ge=1)
    notes: str | None = None
