"""Pydantic models for API request payloads."""

from pydantic import BaseModel, ConfigDict, Field


class ProfileUpdateRequest(BaseModel):
    """Partial profile update payload."""

    model_config = ConfigDict(extra="forbid")

    display_name: str | None = None
    dietary_preferences: list[str] | None = Field(default=None, max_length=50)
    allergens: list[str] | None = Field(default=None, max_length=50)
