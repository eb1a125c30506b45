"""Messages sent through the contact form."""

from datetime import datetime

from pydantic import BaseModel, Field

from study_pulse.models.timestamps import utcnow


class FeedbackCreate(BaseModel):
    name: str = Field(min_length=1)
    email: str = Field(pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    subject: str = Field(min_length=1)
    message: str = Field(min_length=10)


class Feedback(FeedbackCreate):
    """A stored contact-form message, tied to the sender when signed in."""

    id: str | None = None
    user_id: str | None = None
    created_at: datetime = Field(default_factory=utcnow)
