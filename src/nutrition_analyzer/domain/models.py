"""Domain models for the nutrition analyzer."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


@dataclass(frozen=True)
class Identity:
    """Authenticated caller resolved from a session."""

    user_id: UUID
    email: str | None = None


@dataclass(frozen=True)
class UserProfile:
    """Profile row stored in user_profiles."""

    id: UUID
    display_name: str | None
    dietary_preferences: list[str]
    allergens: list[str]
    updated_at: datetime | None


@dataclass(frozen=True)
class ProfileUpdate:
    """Partial profile update; None leaves a field untouched."""

    display_name: str | None = None
    dietary_preferences: list[str] | None = None
    allergens: list[str] | None = None
