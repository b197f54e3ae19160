"""Analysis pipeline: fetch an uploaded image, analyze it, record the result."""

import logging
import math
import time
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol
from uuid import UUID

from nutrition_analyzer.domain.analysis import (
    AnalysisRecord,
    AnalysisResult,
    Ingredient,
    Macros,
)
from nutrition_analyzer.domain.errors import (
    BadRequest,
    Unauthorized,
    UpstreamCallFailed,
    UpstreamUnavailable,
)
from nutrition_analyzer.domain.models import Identity
from nutrition_analyzer.domain.storage import FetchedImage
from nutrition_analyzer.domain.vision import RawAnalysis
from nutrition_analyzer.services.vision import VisionService

_logger = logging.getLogger(__name__)

DEFAULT_CONFIDENCE_WITH_FOOD = 0.7
DEFAULT_CONFIDENCE_WITHOUT_FOOD = 0.1


class ImageFetchError(Exception):
    """The image URL could not be fetched or did not return an image."""


class ImageFetcher(Protocol):
    """Interface for downloading images by URL."""

    async def fetch(self, url: str) -> FetchedImage:
        """Return image bytes and MIME type, or raise ImageFetchError."""


class AnalysisRepository(Protocol):
    """Persistence interface for food analyses."""

    def create_analysis(self, record: AnalysisRecord) -> AnalysisRecord:
        """Insert an analysis row and return it with its id."""

    def list_analyses(self, user_id: UUID, limit: int) -> list[AnalysisRecord]:
        """Return a user's analyses, newest first."""

    def get_analysis(self, user_id: UUID, analysis_id: UUID) -> AnalysisRecord | None:
        """Return one analysis owned by the user."""

    def delete_analysis(self, user_id: UUID, analysis_id: UUID) -> bool:
        """Delete an analysis owned by the user; return whether a row went away."""


@dataclass(frozen=True)
class AnalysisOutcome:
    """Normalized result plus the record to persist, if any."""

    result: AnalysisResult
    record: AnalysisRecord | None


@dataclass
class AnalysisService:
    """Runs the signed URL -> vision model -> normalized result pipeline."""

    vision_service: VisionService
    image_fetcher: ImageFetcher
    repository: AnalysisRepository

    async def analyze(
        self, identity: Identity | None, image_url: object
    ) -> AnalysisOutcome:
        """Analyze the image behind a signed URL for an authenticated caller.

        The returned record is not persisted here; callers hand it to
        record_analysis once the response no longer depends on it.
        """
        started = time.monotonic()
        if identity is None:
            raise Unauthorized()
        if not isinstance(image_url, str) or not image_url.strip():
            raise BadRequest(
                "Invalid request body: imageUrl is missing or not a string."
            )
        if not self.vision_service.available:
            _logger.error("Vision client not configured; check OPENAI_API_KEY")
            raise UpstreamUnavailable(
                "Server configuration error: AI analysis service is unavailable."
            )

        try:
            image = await self.image_fetcher.fetch(image_url)
        except ImageFetchError as exc:
            _logger.warning(
                "Image fetch failed for user %s: %s", identity.user_id, exc
            )
            raise BadRequest(str(exc)) from exc

        try:
            raw = await self.vision_service.analyze(image.content, image.content_type)
        except Exception as exc:
            _logger.exception(
                "Vision analysis failed", extra={"user_id": str(identity.user_id)}
            )
            detail = str(exc) or type(exc).__name__
            raise UpstreamCallFailed(
                f"Could not process AI response: {detail}"
            ) from exc

        result = normalize_analysis(raw)
        record = None
        if result.contains_food:
            record = AnalysisRecord(
                user_id=identity.user_id,
                image_url=image_url,
                result=result,
                created_at=datetime.now(tz=UTC),
            )
        else:
            _logger.info("No food detected; analysis will not be saved")
        _logger.info(
            "Analysis finished in %.0f ms (contains_food=%s)",
            (time.monotonic() - started) * 1000,
            result.contains_food,
        )
        return AnalysisOutcome(result=result, record=record)

    def record_analysis(self, record: AnalysisRecord) -> None:
        """Persist an analysis; failures are logged and never raised."""
        try:
            self.repository.create_analysis(record)
        except Exception:
            _logger.exception(
                "Failed to save analysis", extra={"user_id": str(record.user_id)}
            )
            return
        _logger.info("Analysis saved for user %s", record.user_id)


def normalize_analysis(raw: RawAnalysis) -> AnalysisResult:
    """Fill every optional field with its default, keeping provided values."""
    contains_food = raw.contains_food
    macros = raw.macros.model_dump() if raw.macros else {}
    return AnalysisResult(
        contains_food=contains_food,
        dish_name=raw.dish_name or ("Unknown Dish" if contains_food else "N/A"),
        cuisine=raw.cuisine or "Unknown",
        serving_size=raw.serving_size or "N/A",
        cooking_method=raw.cooking_method or "Unknown",
        ingredients=[
            Ingredient(name=item.name, quantity=item.quantity, calories=item.calories)
            for item in raw.ingredients or []
        ],
        portion_size=raw.portion_size or "N/A",
        total_calories=raw.total_calories,
        macros=Macros(**macros),
        portion_comparison=raw.portion_comparison or "N/A",
        allergens=list(raw.allergens or []),
        confidence_score=_confidence(raw.confidence_score, contains_food),
    )


def _confidence(value: float | None, contains_food: bool) -> float:
    if value is None or math.isnan(value):
        if contains_food:
            return DEFAULT_CONFIDENCE_WITH_FOOD
        return DEFAULT_CONFIDENCE_WITHOUT_FOOD
    return max(0.0, min(1.0, value))
