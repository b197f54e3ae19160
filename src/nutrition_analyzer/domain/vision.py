"""Models for vision model replies."""

from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, StrictBool


@dataclass(frozen=True)
class VisionReply:
    """Raw text reply from the vision model plus why generation stopped."""

    text: str | None
    finish_reason: str | None


class RawIngredient(BaseModel):
    """Ingredient as reported by the model."""

    model_config = ConfigDict(extra="ignore")

    name: str
    quantity: str | None = None
    calories: float | None = None


class RawMacros(BaseModel):
    """Macronutrients in grams, any of which the model may omit."""

    model_config = ConfigDict(extra="ignore")

    protein: float | None = None
    carbs: float | None = None
    fiber: float | None = None
    fat: float | None = None
    saturated_fat: float | None = None
    unsaturated_fat: float | None = None


class RawAnalysis(BaseModel):
    """Decoded model reply before normalization."""

    model_config = ConfigDict(extra="ignore")

    contains_food: StrictBool
    dish_name: str | None = None
    cuisine: str | None = None
    serving_size: str | None = None
    cooking_method: str | None = None
    ingredients: list[RawIngredient] | None = None
    portion_size: str | None = None
    total_calories: float | None = None
    macros: RawMacros | None = None
    portion_comparison: str | None = None
    allergens: list[str] | None = None
    confidence_score: float | None = None
