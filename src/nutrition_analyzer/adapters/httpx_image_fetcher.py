"""Image download client for signed object URLs."""

import asyncio
import logging
from dataclasses import dataclass

import httpx

from nutrition_analyzer.domain.storage import FetchedImage
from nutrition_analyzer.services.analysis import ImageFetcher, ImageFetchError

_logger = logging.getLogger(__name__)


@dataclass
class HttpxImageFetcher(ImageFetcher):
    """Image fetcher using httpx."""

    http_client: httpx.AsyncClient
    timeout_seconds: float = 20.0

    @classmethod
    def create(cls, timeout_seconds: float = 20.0) -> "HttpxImageFetcher":
        """Create an image fetcher with a managed httpx session."""
        return cls(http_client=httpx.AsyncClient(), timeout_seconds=timeout_seconds)

    async def fetch(self, url: str) -> FetchedImage:
        """Download image bytes, rejecting failures and non-image content."""
        try:
            # The httpx timeout applies per read; the deadline bounds the whole fetch.
            async with asyncio.timeout(self.timeout_seconds):
                response = await self.http_client.get(
                    url, timeout=self.timeout_seconds, follow_redirects=True
                )
        except (TimeoutError, httpx.TimeoutException) as exc:
            raise ImageFetchError(
                f"Fetching image timed out after {self.timeout_seconds:g} seconds."
            ) from exc
        except httpx.HTTPError as exc:
            raise ImageFetchError(
                f"Could not fetch or process image: {type(exc).__name__}"
            ) from exc

        if response.is_error:
            _logger.warning(
                "Image fetch failed: status=%s body=%s",
                response.status_code,
                response.text[:200],
            )
            raise ImageFetchError(
                "Could not fetch or process image: "
                f"Failed to fetch image: {response.status_code} "
                f"{response.reason_phrase}"
            )

        content_type = response.headers.get("content-type", "")
        mime_type = content_type.split(";", maxsplit=1)[0].strip().lower()
        if not mime_type.startswith("image/"):
            raise ImageFetchError(
                "Could not fetch or process image: URL did not return a valid "
                f"image (Content-Type: {content_type or 'N/A'})."
            )
        return FetchedImage(content=response.content, content_type=mime_type)

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
