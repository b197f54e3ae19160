"""Supabase repository for user profiles."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from supabase import Client

from nutrition_analyzer.domain.models import UserProfile
from nutrition_analyzer.services.profiles import ProfileRepository

_COLUMNS = "id, display_name, dietary_preferences, allergens, updated_at"


@dataclass
class SupabaseProfileRepository(ProfileRepository):
    """Supabase implementation for user profiles."""

    client: Client

    def get_profile(self, user_id: UUID) -> UserProfile | None:
        """Return the stored profile for a user."""
        response = (
            self.client.table("user_profiles")
            .select(_COLUMNS)
            .eq("id", str(user_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_profile(response.data[0])

    def upsert_profile(self, user_id: UUID, payload: dict[str, object]) -> UserProfile:
        """Insert or update the user's profile row."""
        response = (
            self.client.table("user_profiles")
            .upsert({"id": str(user_id), **payload})
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to save user profile")
        return _parse_profile(response.data[0])


def _parse_profile(row: dict[str, object]) -> UserProfile:
    updated_raw = row.get("updated_at")
    return UserProfile(
        id=UUID(str(row["id"])),
        display_name=row.get("display_name"),
        dietary_preferences=list(row.get("dietary_preferences") or []),
        allergens=list(row.get("allergens") or []),
        updated_at=(
            datetime.fromisoformat(updated_raw)
            if isinstance(updated_raw, str) and updated_raw
            else None
        ),
    )
