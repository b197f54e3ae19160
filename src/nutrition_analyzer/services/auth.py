"""Session lookup for API callers."""

import base64
import binascii
import json
from collections.abc import Mapping
from typing import Protocol

from nutrition_analyzer.domain.models import Identity

DEFAULT_SESSION_COOKIE = "sb-access-token"


class SessionGuard(Protocol):
    """Interface for resolving the caller from request credentials."""

    def get_session(
        self, authorization: str | None, cookies: Mapping[str, str]
    ) -> Identity | None:
        """Return the caller's identity, or None when not authenticated."""


def extract_access_token(
    authorization: str | None,
    cookies: Mapping[str, str],
    cookie_name: str = DEFAULT_SESSION_COOKIE,
) -> str | None:
    """Pull an access token from a bearer header or the session cookie."""
    if authorization:
        scheme, _, token = authorization.partition(" ")
        if scheme.lower() == "bearer" and token.strip():
            return token.strip()
    raw = cookies.get(cookie_name)
    if not raw:
        return None
    return _token_from_cookie(raw)


def _token_from_cookie(raw: str) -> str | None:
    """Decode the cookie formats written by the Supabase auth helpers."""
    value = raw.strip()
    if value.startswith("base64-"):
        encoded = value.removeprefix("base64-")
        encoded += "=" * (-len(encoded) % 4)
        try:
            value = base64.urlsafe_b64decode(encoded).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError):
            return None
    if value.startswith(("[", "{")):
        try:
            payload = json.loads(value)
        except json.JSONDecodeError:
            return None
        if isinstance(payload, list) and payload and isinstance(payload[0], str):
            return payload[0]
        if isinstance(payload, dict) and isinstance(payload.get("access_token"), str):
            return payload["access_token"]
        return None
    return value or None
