"""User identity and profile models."""

from pydantic import BaseModel


class Identity(BaseModel):
    """The signed-in user as reported by the auth provider."""

    uid: str
    email: str | None = None
    display_name: str | None = None


class UserProfile(BaseModel):
    user_id: str
    display_name: str | None = None
    email: str | None = None
    photo_url: str | None = None


class LeaderboardEntry(BaseModel):
    uid: str
    display_name: str | None = None
    email: str | None = None
    photo_url: str | None = None
    total_minutes: int = 0
