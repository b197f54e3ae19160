"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from nutrition_analyzer.adapters.httpx_image_fetcher import HttpxImageFetcher
from nutrition_analyzer.adapters.openai_vision_client import OpenAIVisionClient
from nutrition_analyzer.adapters.s3_object_store import S3ObjectStore
from nutrition_analyzer.adapters.supabase_analysis_repository import (
    SupabaseAnalysisRepository,
)
from nutrition_analyzer.adapters.supabase_profile_repository import (
    SupabaseProfileRepository,
)
from nutrition_analyzer.adapters.supabase_session_guard import SupabaseSessionGuard
from nutrition_analyzer.config import Settings
from nutrition_analyzer.services.analysis import AnalysisService
from nutrition_analyzer.services.auth import SessionGuard
from nutrition_analyzer.services.history import HistoryService
from nutrition_analyzer.services.profiles import ProfileService
from nutrition_analyzer.services.uploads import UploadService
from nutrition_analyzer.services.vision import VisionService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    session_guard: SessionGuard
    upload_service: UploadService
    analysis_service: AnalysisService
    history_service: HistoryService
    profile_service: ProfileService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    session_guard = SupabaseSessionGuard(
        supabase_client, cookie_name=resolved_settings.session_cookie_name
    )
    analysis_repository = SupabaseAnalysisRepository(supabase_client)
    profile_repository = SupabaseProfileRepository(supabase_client)
    object_store = S3ObjectStore.create(
        bucket=resolved_settings.aws_s3_bucket_name,
        region=resolved_settings.aws_region,
        access_key_id=resolved_settings.aws_access_key_id,
        secret_access_key=resolved_settings.aws_secret_access_key,
    )
    upload_service = UploadService(
        object_store=object_store,
        max_bytes=resolved_settings.max_upload_bytes,
        url_ttl_seconds=resolved_settings.signed_url_ttl_seconds,
    )
    openai_client = OpenAIVisionClient.create(resolved_settings.openai_api_key)
    vision_service = VisionService(
        client=openai_client,
        model=resolved_settings.openai_model,
        reasoning_effort=resolved_settings.openai_reasoning_effort,
        store=resolved_settings.openai_store,
    )
    image_fetcher = HttpxImageFetcher.create(
        timeout_seconds=resolved_settings.image_fetch_timeout_seconds
    )
    analysis_service = AnalysisService(
        vision_service=vision_service,
        image_fetcher=image_fetcher,
        repository=analysis_repository,
    )
    history_service = HistoryService(analysis_repository)
    profile_service = ProfileService(profile_repository)

    async def close_resources() -> None:
        await image_fetcher.close()
        await openai_client.close()
        object_store.close()

    return AppContainer(
        settings=resolved_settings,
        session_guard=session_guard,
        upload_service=upload_service,
        analysis_service=analysis_service,
        history_service=history_service,
        profile_service=profile_service,
        close_resources=close_resources,
    )
