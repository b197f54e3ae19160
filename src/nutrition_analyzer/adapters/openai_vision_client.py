"""OpenAI Responses API client for food image analysis."""

from dataclasses import dataclass

from openai import AsyncOpenAI

from nutrition_analyzer.domain.vision import VisionReply
from nutrition_analyzer.services.vision import VisionClient

_INCOMPLETE_REASONS = {"max_output_tokens": "length"}


@dataclass
class OpenAIVisionClient(VisionClient):
    """Vision client backed by OpenAI Responses API."""

    client: AsyncOpenAI | None

    @property
    def available(self) -> bool:
        """True when an API key was configured."""
        return self.client is not None

    @classmethod
    def create(cls, api_key: str | None) -> "OpenAIVisionClient":
        """Create an OpenAI vision client; without a key it is unavailable."""
        if not api_key:
            return cls(client=None)
        return cls(client=AsyncOpenAI(api_key=api_key))

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
        """Call OpenAI Responses API with structured outputs."""
        if self.client is None:
            raise RuntimeError("OpenAI client is not configured")
        request_payload: dict[str, object] = {
            "model": model,
            "input": [
                {
                    "role": "user",
                    "content": [
                        {"type": "input_text", "text": prompt},
                        {"type": "input_image", "image_url": image_data_url},
                    ],
                }
            ],
            "text": {
                "format": {
                    "type": "json_schema",
                    "name": "food_analysis",
                    "strict": True,
                    "schema": schema,
                }
            },
            "store": store,
        }
        if reasoning_effort:
            request_payload["reasoning"] = {"effort": reasoning_effort}

        response = await self.client.responses.create(**request_payload)
        return VisionReply(
            text=response.output_text or None,
            finish_reason=_finish_reason(response),
        )

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        if self.client is not None:
            await self.client.close()


def _finish_reason(response: object) -> str | None:
    """Map a Responses API status onto a finish reason."""
    status = getattr(response, "status", None)
    if status is None or status == "completed":
        return "stop"
    if status == "incomplete":
        details = getattr(response, "incomplete_details", None)
        reason = getattr(details, "reason", None)
        return _INCOMPLETE_REASONS.get(reason, reason or "incomplete")
    return status
