"""Request-level session resolution."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import Request

from nutrition_analyzer.domain.models import Identity  # noqa: TC001

if TYPE_CHECKING:
    from nutrition_analyzer.containers import AppContainer


def current_identity(request: Request) -> Identity | None:
    """Resolve the caller via the session guard; None when unauthenticated."""
    container: AppContainer = request.app.state.container
    return container.session_guard.get_session(
        request.headers.get("authorization"), request.cookies
    )
