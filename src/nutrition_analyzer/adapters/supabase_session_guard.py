"""Supabase Auth-backed session guard."""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from uuid import UUID

from supabase import Client

from nutrition_analyzer.domain.models import Identity
from nutrition_analyzer.services.auth import (
    DEFAULT_SESSION_COOKIE,
    SessionGuard,
    extract_access_token,
)

_logger = logging.getLogger(__name__)


@dataclass
class SupabaseSessionGuard(SessionGuard):
    """Validates access tokens against Supabase Auth."""

    client: Client
    cookie_name: str = DEFAULT_SESSION_COOKIE

    def get_session(
        self, authorization: str | None, cookies: Mapping[str, str]
    ) -> Identity | None:
        """Return the identity for a valid token, otherwise None."""
        token = extract_access_token(authorization, cookies, self.cookie_name)
        if token is None:
            return None
        try:
            response = self.client.auth.get_user(token)
        except Exception:
            _logger.exception("Supabase session validation failed")
            return None
        user = getattr(response, "user", None)
        if user is None:
            return None
        return Identity(user_id=UUID(str(user.id)), email=getattr(user, "email", None))
