"""User profile and dietary settings service."""

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol
from uuid import UUID

from nutrition_analyzer.domain.errors import BadRequest, Unauthorized
from nutrition_analyzer.domain.models import Identity, ProfileUpdate, UserProfile

MAX_DISPLAY_NAME_LENGTH = 100


class ProfileRepository(Protocol):
    """Persistence interface for user profiles."""

    def get_profile(self, user_id: UUID) -> UserProfile | None:
        """Return the profile row for a user, if present."""

    def upsert_profile(self, user_id: UUID, payload: dict[str, object]) -> UserProfile:
        """Insert or update the profile row and return it."""


@dataclass
class ProfileService:
    """Reads and updates the caller's profile."""

    repository: ProfileRepository

    def get_profile(self, identity: Identity | None) -> UserProfile:
        """Return the stored profile, or an empty one if none exists yet."""
        if identity is None:
            raise Unauthorized()
        profile = self.repository.get_profile(identity.user_id)
        if profile is None:
            return UserProfile(
                id=identity.user_id,
                display_name=None,
                dietary_preferences=[],
                allergens=[],
                updated_at=None,
            )
        return profile

    def update_profile(
        self, identity: Identity | None, update: ProfileUpdate
    ) -> UserProfile:
        """Apply the provided fields and return the stored profile."""
        if identity is None:
            raise Unauthorized()
        payload: dict[str, object] = {}
        if update.display_name is not None:
            display_name = update.display_name.strip()
            if len(display_name) > MAX_DISPLAY_NAME_LENGTH:
                raise BadRequest(
                    f"display_name must be at most {MAX_DISPLAY_NAME_LENGTH} characters"
                )
            payload["display_name"] = display_name
        if update.dietary_preferences is not None:
            payload["dietary_preferences"] = _clean_tags(update.dietary_preferences)
        if update.allergens is not None:
            payload["allergens"] = _clean_tags(update.allergens)
        if not payload:
            raise BadRequest("No profile fields provided")
        payload["updated_at"] = datetime.now(tz=UTC).isoformat()
        return self.repository.upsert_profile(identity.user_id, payload)


def serialize_profile(profile: UserProfile) -> dict[str, object]:
    """Serialize a profile for API responses."""
    return {
        "id": str(profile.id),
        "display_name": profile.display_name,
        "dietary_preferences": profile.dietary_preferences,
        "allergens": profile.allergens,
        "updated_at": profile.updated_at.isoformat() if profile.updated_at else None,
    }


def _clean_tags(values: list[str]) -> list[str]:
    """Trim entries and drop blanks and case-insensitive duplicates."""
    seen: set[str] = set()
    cleaned: list[str] = []
    for value in values:
        tag = value.strip()
        if not tag or tag.lower() in seen:
            continue
        seen.add(tag.lower())
        cleaned.append(tag)
    return cleaned
