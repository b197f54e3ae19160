"""Upload pipeline: validate an image and store it privately."""

import logging
from dataclasses import dataclass
from typing import Protocol
from uuid import uuid4

from nutrition_analyzer.domain.errors import (
    BadRequest,
    InternalError,
    PayloadTooLarge,
    Unauthorized,
    UnsupportedMediaType,
)
from nutrition_analyzer.domain.models import Identity
from nutrition_analyzer.domain.storage import (
    ALLOWED_IMAGE_TYPES,
    MAX_UPLOAD_BYTES,
    SignedUrl,
    StoredObject,
    UploadRequest,
)

_logger = logging.getLogger(__name__)

SIGNED_URL_TTL_SECONDS = 60 * 60


class ObjectStore(Protocol):
    """Interface for durable private blob storage."""

    def put(self, key: str, data: bytes, content_type: str) -> None:
        """Write a private object under the key."""

    def sign_get(self, key: str, ttl_seconds: int) -> SignedUrl:
        """Return a time-limited GET link for the key."""


@dataclass
class UploadService:
    """Validates uploads and writes them to the object store."""

    object_store: ObjectStore
    max_bytes: int = MAX_UPLOAD_BYTES
    url_ttl_seconds: int = SIGNED_URL_TTL_SECONDS

    def upload(
        self, identity: Identity | None, upload: UploadRequest | None
    ) -> StoredObject:
        """Store an uploaded image and return its key and signed link."""
        if identity is None:
            raise Unauthorized()
        if upload is None or upload.size <= 0:
            raise BadRequest("No file provided")
        if upload.size > self.max_bytes:
            _logger.info("Rejected upload of %s bytes", upload.size)
            raise PayloadTooLarge(
                f"File too large (max {self.max_bytes // (1024 * 1024)}MB)"
            )
        extension = ALLOWED_IMAGE_TYPES.get(upload.content_type or "")
        if extension is None:
            raise UnsupportedMediaType(
                "Invalid file type. Only "
                f"{', '.join(ALLOWED_IMAGE_TYPES)} allowed."
            )

        key = f"{uuid4()}.{extension}"
        try:
            self.object_store.put(key, upload.content, upload.content_type)
        except Exception as exc:
            _logger.exception("Object store write failed", extra={"key": key})
            raise InternalError("Failed to store uploaded file.") from exc

        try:
            signed_url = self.object_store.sign_get(key, self.url_ttl_seconds)
        except Exception as exc:
            _logger.exception(
                "Signing failed; object left unreferenced", extra={"key": key}
            )
            raise InternalError("Failed to create access URL after upload.") from exc

        _logger.info("Stored upload %s for user %s", key, identity.user_id)
        return StoredObject(key=key, signed_url=signed_url)
