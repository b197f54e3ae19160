"""Canonical analysis result and persisted record models."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class Ingredient(BaseModel):
    """Single ingredient line of an analysis."""

    name: str
    quantity: str | None = None
    calories: float | None = None


class Macros(BaseModel):
    """Macronutrient breakdown in grams."""

    protein: float | None = None
    carbs: float | None = None
    fiber: float | None = None
    fat: float | None = None
    saturated_fat: float | None = None
    unsaturated_fat: float | None = None


class AnalysisResult(BaseModel):
    """Fully populated nutrition analysis returned to clients."""

    contains_food: bool
    dish_name: str | None = None
    cuisine: str | None = None
    serving_size: str | None = None
    cooking_method: str | None = None
    ingredients: list[Ingredient] = Field(default_factory=list)
    portion_size: str | None = None
    total_calories: float | None = None
    macros: Macros = Field(default_factory=Macros)
    portion_comparison: str | None = None
    allergens: list[str] = Field(default_factory=list)
    confidence_score: float = Field(default=0.1, ge=0.0, le=1.0)
    error: str | None = None

    def to_response(self) -> dict[str, object]:
        """Serialize for JSON responses, dropping unset numbers."""
        return self.model_dump(mode="json", exclude_none=True)


@dataclass(frozen=True)
class AnalysisRecord:
    """Persisted analysis tied to one user and one stored image."""

    user_id: UUID
    image_url: str
    result: AnalysisResult
    created_at: datetime
    id: UUID | None = None
