"""Vision analysis service using LLMs."""

import base64
import json
from dataclasses import dataclass
from typing import Protocol

from pydantic import ValidationError

from nutrition_analyzer.domain.vision import RawAnalysis, VisionReply

ACCEPTED_FINISH_REASONS = frozenset({"stop", "length"})

ANALYSIS_PROMPT = (
    "Analyze the food item(s) in this image. "
    "First decide whether the image contains food at all and set contains_food. "
    "If it does, identify the dish name, cuisine style, estimated serving size, "
    "cooking method, and each visible ingredient with its quantity and "
    "approximate calories. Estimate total calories and macronutrients in grams "
    "(protein, carbs, fiber, fat, saturated_fat, unsaturated_fat), describe the "
    "portion size, compare the portion to a common reference object, and list "
    "likely allergens. Give a confidence_score between 0 and 1. "
    "Use null for anything you cannot estimate; do not guess values you cannot "
    "see. Format the response STRICTLY as a JSON object matching the schema."
)


def _nullable(schema: dict[str, object]) -> dict[str, object]:
    return {"anyOf": [schema, {"type": "null"}]}


_NUMBER: dict[str, object] = {"type": "number"}
_STRING: dict[str, object] = {"type": "string"}

_MACRO_FIELDS = (
    "protein",
    "carbs",
    "fiber",
    "fat",
    "saturated_fat",
    "unsaturated_fat",
)

_ANALYSIS_PROPERTIES: dict[str, object] = {
    "contains_food": {"type": "boolean"},
    "dish_name": _nullable(_STRING),
    "cuisine": _nullable(_STRING),
    "serving_size": _nullable(_STRING),
    "cooking_method": _nullable(_STRING),
    "ingredients": _nullable(
        {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "name": _STRING,
                    "quantity": _nullable(_STRING),
                    "calories": _nullable(_NUMBER),
                },
                "required": ["name", "quantity", "calories"],
                "additionalProperties": False,
            },
        }
    ),
    "portion_size": _nullable(_STRING),
    "total_calories": _nullable(_NUMBER),
    "macros": _nullable(
        {
            "type": "object",
            "properties": {field: _nullable(_NUMBER) for field in _MACRO_FIELDS},
            "required": list(_MACRO_FIELDS),
            "additionalProperties": False,
        }
    ),
    "portion_comparison": _nullable(_STRING),
    "allergens": _nullable({"type": "array", "items": _STRING}),
    "confidence_score": _nullable({"type": "number", "minimum": 0.0, "maximum": 1.0}),
}

# Strict structured outputs require every property to be listed; only
# contains_food is non-nullable.
ANALYSIS_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": _ANALYSIS_PROPERTIES,
    "required": list(_ANALYSIS_PROPERTIES),
    "additionalProperties": False,
}


class VisionResponseError(Exception):
    """The model reply was missing, truncated, or not a valid analysis."""


class VisionClient(Protocol):
    """Interface for LLM vision extraction."""

    available: bool

    async def extract(  # noqa: PLR0913
        self,
        *,
        model: str,
        reasoning_effort: str | None,
        store: bool,
        image_data_url: str,
        schema: dict[str, object],
        prompt: str,
    ) -> VisionReply:
        """Return the raw model reply for an image."""


@dataclass
class VisionService:
    """Service that prepares vision prompts and validates results."""

    client: VisionClient
    model: str
    reasoning_effort: str | None
    store: bool

    @property
    def available(self) -> bool:
        """Whether the underlying client was configured."""
        return self.client.available

    async def analyze(
        self, image_bytes: bytes, mime_type: str | None = None
    ) -> RawAnalysis:
        """Run food analysis on an image and decode the reply."""
        reply = await self.client.extract(
            model=self.model,
            reasoning_effort=self.reasoning_effort,
            store=self.store,
            image_data_url=_to_data_url(image_bytes, mime_type),
            schema=ANALYSIS_SCHEMA,
            prompt=ANALYSIS_PROMPT,
        )
        return decode_analysis_reply(reply)


def decode_analysis_reply(reply: VisionReply) -> RawAnalysis:
    """Validate a model reply and decode it into a RawAnalysis."""
    if reply.finish_reason and reply.finish_reason not in ACCEPTED_FINISH_REASONS:
        raise VisionResponseError(
            f"AI analysis stopped unexpectedly (finish reason: {reply.finish_reason})."
        )
    if not reply.text or not reply.text.strip():
        raise VisionResponseError(
            "AI analysis failed: Response format unexpected (missing text content)."
        )
    text = _strip_code_fence(reply.text)
    if not text.startswith("{") or not text.endswith("}"):
        raise VisionResponseError(
            "AI response format error: Expected JSON object structure."
        )
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise VisionResponseError(
            f"AI response format error: Could not parse JSON. {exc}"
        ) from exc
    if not isinstance(payload.get("contains_food"), bool):
        raise VisionResponseError(
            "AI response validation error: "
            "Required 'contains_food' field is missing or invalid."
        )
    try:
        return RawAnalysis.model_validate(payload)
    except ValidationError as exc:
        raise VisionResponseError(
            f"AI response validation error: {exc.error_count()} invalid field(s)."
        ) from exc


def _strip_code_fence(text: str) -> str:
    """Remove a surrounding markdown code fence, if any."""
    stripped = text.strip()
    if stripped.startswith("```") and stripped.endswith("```"):
        first_newline = stripped.find("\n")
        last_newline = stripped.rfind("\n")
        if first_newline == -1 or first_newline == last_newline:
            return stripped.strip("`").strip()
        return stripped[first_newline + 1 : last_newline].strip()
    return stripped


def _to_data_url(image_bytes: bytes, mime_type: str | None = None) -> str:
    """Convert bytes to a base64 data URL for image input."""
    resolved = mime_type or _detect_mime_type(image_bytes)
    encoded = base64.b64encode(image_bytes).decode("utf-8")
    return f"data:{resolved};base64,{encoded}"


def _detect_mime_type(image_bytes: bytes) -> str:
    """Infer a basic image MIME type from file signatures."""
    if image_bytes.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if image_bytes.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if image_bytes[:4] == b"RIFF" and image_bytes[8:12] == b"WEBP":
        return "image/webp"
    if image_bytes[:6] in {b"GIF87a", b"GIF89a"}:
        return "image/gif"
    return "image/jpeg"
