"""Uploaded image and stored object models."""

from dataclasses import dataclass
from datetime import datetime

MAX_UPLOAD_BYTES = 5 * 1024 * 1024

ALLOWED_IMAGE_TYPES: dict[str, str] = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
    "image/gif": "gif",
}


@dataclass(frozen=True)
class UploadRequest:
    """Image payload submitted by a client."""

    content: bytes
    content_type: str | None
    size: int
    filename: str | None = None


@dataclass(frozen=True)
class SignedUrl:
    """Time-limited GET link minted by the object store."""

    url: str
    expires_at: datetime


@dataclass(frozen=True)
class StoredObject:
    """Private object written for an upload, with its signed link."""

    key: str
    signed_url: SignedUrl


@dataclass(frozen=True)
class FetchedImage:
    """Image bytes retrieved from a signed URL."""

    content: bytes
    content_type: str
