"""Analysis history and profile endpoints for the signed-in user."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID  # noqa: TC003

from fastapi import APIRouter, Depends, Request

from nutrition_analyzer.api.auth import current_identity
from nutrition_analyzer.api.models import ProfileUpdateRequest  # noqa: TC001
from nutrition_analyzer.domain.models import Identity, ProfileUpdate  # noqa: TC001
from nutrition_analyzer.services.history import serialize_record
from nutrition_analyzer.services.profiles import serialize_profile

if TYPE_CHECKING:
    from nutrition_analyzer.containers import AppContainer

router = APIRouter(prefix="/api", tags=["account"])


@router.get("/analyses")
def list_analyses(
    request: Request,
    limit: int = 50,
    identity: Identity | None = Depends(current_identity),
) -> dict[str, object]:
    """Return the caller's saved analyses, newest first."""
    container: AppContainer = request.app.state.container
    records = container.history_service.list_analyses(identity, limit)
    return {"analyses": [serialize_record(record) for record in records]}


@router.get("/analyses/{analysis_id}")
def get_analysis(
    analysis_id: UUID,
    request: Request,
    identity: Identity | None = Depends(current_identity),
) -> dict[str, object]:
    """Return one saved analysis."""
    container: AppContainer = request.app.state.container
    return serialize_record(
        container.history_service.get_analysis(identity, analysis_id)
    )


@router.delete("/analyses/{analysis_id}")
def delete_analysis(
    analysis_id: UUID,
    request: Request,
    identity: Identity | None = Depends(current_identity),
) -> dict[str, object]:
    """Delete one saved analysis."""
    container: AppContainer = request.app.state.container
    container.history_service.delete_analysis(identity, analysis_id)
    return {"success": True}


@router.get("/profile")
def get_profile(
    request: Request,
    identity: Identity | None = Depends(current_identity),
) -> dict[str, object]:
    """Return the caller's profile and dietary settings."""
    container: AppContainer = request.app.state.container
    return serialize_profile(container.profile_service.get_profile(identity))


@router.patch("/profile")
def update_profile(
    payload: ProfileUpdateRequest,
    request: Request,
    identity: Identity | None = Depends(current_identity),
) -> dict[str, object]:
    """Update the caller's profile and dietary settings."""
    container: AppContainer = request.app.state.container
    profile = container.profile_service.update_profile(
        identity,
        ProfileUpdate(
            display_name=payload.display_name,
            dietary_preferences=payload.dietary_preferences,
            allergens=payload.allergens,
        ),
    )
    return serialize_profile(profile)
