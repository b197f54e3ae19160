"""Shared test fixtures."""

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from uuid import UUID, uuid4

import pytest

from nutrition_analyzer.config import Settings
from nutrition_analyzer.containers import AppContainer
from nutrition_analyzer.domain.analysis import AnalysisRecord
from nutrition_analyzer.domain.models import Identity, UserProfile
from nutrition_analyzer.domain.storage import FetchedImage, SignedUrl
from nutrition_analyzer.domain.vision import VisionReply
from nutrition_analyzer.services.analysis import (
    AnalysisRepository,
    AnalysisService,
    ImageFetcher,
    ImageFetchError,
)
from nutrition_analyzer.services.auth import SessionGuard, extract_access_token
from nutrition_analyzer.services.history import HistoryService
from nutrition_analyzer.services.profiles import ProfileRepository, ProfileService
from nutrition_analyzer.services.uploads import ObjectStore, UploadService
from nutrition_analyzer.services.vision import VisionClient, VisionService

JPEG_BYTES = b"\xff\xd8\xff\xe0" + b"\x00" * 64
VALID_TOKEN = "valid-token"
AUTH_HEADERS = {"Authorization": f"Bearer {VALID_TOKEN}"}


@dataclass
class FakeSessionGuard(SessionGuard):
    """Session guard accepting a fixed set of tokens."""

    identities: dict[str, Identity] = field(default_factory=dict)

    def get_session(
        self, authorization: str | None, cookies: Mapping[str, str]
    ) -> Identity | None:
        token = extract_access_token(authorization, cookies)
        if token is None:
            return None
        return self.identities.get(token)


@dataclass
class InMemoryObjectStore(ObjectStore):
    """Object store keeping blobs in memory and minting fake signed URLs."""

    objects: dict[str, tuple[bytes, str]] = field(default_factory=dict)
    signed: dict[str, datetime] = field(default_factory=dict)
    put_calls: int = 0
    fail_put: bool = False
    fail_sign: bool = False

    def put(self, key: str, data: bytes, content_type: str) -> None:
        self.put_calls += 1
        if self.fail_put:
            raise RuntimeError("bucket unavailable")
        self.objects[key] = (data, content_type)

    def sign_get(self, key: str, ttl_seconds: int) -> SignedUrl:
        if self.fail_sign:
            raise RuntimeError("signing failed")
        url = (
            f"https://food-analyses-images.s3.amazonaws.com/{key}"
            f"?X-Amz-Algorithm=AWS4-HMAC-SHA256&X-Amz-Expires={ttl_seconds}"
            "&X-Amz-Signature=abc123"
        )
        expires_at = datetime.now(tz=UTC) + timedelta(seconds=ttl_seconds)
        self.signed[url] = expires_at
        return SignedUrl(url=url, expires_at=expires_at)

    def get(self, url: str) -> tuple[bytes, str] | None:
        """Return the object behind a signed URL that has not expired."""
        expires_at = self.signed.get(url)
        if expires_at is None or expires_at <= datetime.now(tz=UTC):
            return None
        key = url.split("?", maxsplit=1)[0].rsplit("/", maxsplit=1)[-1]
        return self.objects.get(key)


@dataclass
class FakeVisionClient(VisionClient):
    """Fake vision client returning a fixed reply."""

    payload: dict[str, object] | None = field(
        default_factory=lambda: {
            "contains_food": True,
            "dish_name": "Chicken Salad",
            "cuisine": "American",
            "serving_size": "1 bowl",
            "cooking_method": "Grilled",
            "ingredients": [
                {"name": "chicken breast", "quantity": "120 g", "calories": 198},
                {"name": "lettuce", "quantity": "50 g", "calories": None},
            ],
            "total_calories": 350,
            "macros": {"protein": 32, "carbs": 10, "fat": 18},
            "allergens": ["egg"],
            "confidence_score": 0.85,
        }
    )
    text: str | None = None
    finish_reason: str | None = "stop"
    available: bool = True
    error: Exception | None = None
    calls: list[dict[str, object]] = field(default_factory=list)

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
        self.calls.append({"model": model, "image_data_url": image_data_url})
        if self.error is not None:
            raise self.error
        text = self.text
        if text is None and self.payload is not None:
            text = json.dumps(self.payload)
        return VisionReply(text=text, finish_reason=self.finish_reason)


@dataclass
class FakeImageFetcher(ImageFetcher):
    """Image fetcher serving bytes from an object store or raising."""

    store: InMemoryObjectStore | None = None
    content: bytes = JPEG_BYTES
    content_type: str = "image/jpeg"
    error: str | None = None
    fetched: list[str] = field(default_factory=list)

    async def fetch(self, url: str) -> FetchedImage:
        self.fetched.append(url)
        if self.error is not None:
            raise ImageFetchError(self.error)
        if self.store is not None:
            stored = self.store.get(url)
            if stored is not None:
                return FetchedImage(content=stored[0], content_type=stored[1])
        return FetchedImage(content=self.content, content_type=self.content_type)


@dataclass
class InMemoryAnalysisRepository(AnalysisRepository):
    """In-memory analysis repository for tests."""

    records: dict[UUID, AnalysisRecord] = field(default_factory=dict)
    fail: bool = False

    def create_analysis(self, record: AnalysisRecord) -> AnalysisRecord:
        if self.fail:
            raise RuntimeError("database unavailable")
        stored = AnalysisRecord(
            id=uuid4(),
            user_id=record.user_id,
            image_url=record.image_url,
            result=record.result,
            created_at=record.created_at,
        )
        self.records[stored.id] = stored
        return stored

    def list_analyses(self, user_id: UUID, limit: int) -> list[AnalysisRecord]:
        owned = [r for r in self.records.values() if r.user_id == user_id]
        return sorted(owned, key=lambda r: r.created_at, reverse=True)[:limit]

    def get_analysis(self, user_id: UUID, analysis_id: UUID) -> AnalysisRecord | None:
        record = self.records.get(analysis_id)
        if record is None or record.user_id != user_id:
            return None
        return record

    def delete_analysis(self, user_id: UUID, analysis_id: UUID) -> bool:
        if self.get_analysis(user_id, analysis_id) is None:
            return False
        del self.records[analysis_id]
        return True


@dataclass
class InMemoryProfileRepository(ProfileRepository):
    """In-memory profile repository for tests."""

    profiles: dict[UUID, UserProfile] = field(default_factory=dict)

    def get_profile(self, user_id: UUID) -> UserProfile | None:
        return self.profiles.get(user_id)

    def upsert_profile(self, user_id: UUID, payload: dict[str, object]) -> UserProfile:
        current = self.profiles.get(user_id)
        updated_raw = payload.get("updated_at")
        profile = UserProfile(
            id=user_id,
            display_name=payload.get(
                "display_name", current.display_name if current else None
            ),
            dietary_preferences=payload.get(
                "dietary_preferences", current.dietary_preferences if current else []
            ),
            allergens=payload.get("allergens", current.allergens if current else []),
            updated_at=(
                datetime.fromisoformat(updated_raw)
                if isinstance(updated_raw, str)
                else None
            ),
        )
        self.profiles[user_id] = profile
        return profile


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="header.payload.signature",
        openai_api_key="openai-key",
        aws_access_key_id="AKIDEXAMPLE",
        aws_secret_access_key="secret",
        aws_region="us-east-1",
        environment="test",
    )


@pytest.fixture
def identity() -> Identity:
    return Identity(user_id=uuid4(), email="eater@example.com")


@pytest.fixture
def session_guard(identity: Identity) -> FakeSessionGuard:
    return FakeSessionGuard(identities={VALID_TOKEN: identity})


@pytest.fixture
def object_store() -> InMemoryObjectStore:
    return InMemoryObjectStore()


@pytest.fixture
def vision_client() -> FakeVisionClient:
    return FakeVisionClient()


@pytest.fixture
def image_fetcher(object_store: InMemoryObjectStore) -> FakeImageFetcher:
    return FakeImageFetcher(store=object_store)


@pytest.fixture
def analysis_repository() -> InMemoryAnalysisRepository:
    return InMemoryAnalysisRepository()


@pytest.fixture
def profile_repository() -> InMemoryProfileRepository:
    return InMemoryProfileRepository()


@pytest.fixture
def vision_service(
    settings: Settings, vision_client: FakeVisionClient
) -> VisionService:
    return VisionService(
        client=vision_client,
        model=settings.openai_model,
        reasoning_effort=settings.openai_reasoning_effort,
        store=settings.openai_store,
    )


@pytest.fixture
def analysis_service(
    vision_service: VisionService,
    image_fetcher: FakeImageFetcher,
    analysis_repository: InMemoryAnalysisRepository,
) -> AnalysisService:
    return AnalysisService(
        vision_service=vision_service,
        image_fetcher=image_fetcher,
        repository=analysis_repository,
    )


@pytest.fixture
def container(  # noqa: PLR0913
    settings: Settings,
    session_guard: FakeSessionGuard,
    object_store: InMemoryObjectStore,
    analysis_service: AnalysisService,
    analysis_repository: InMemoryAnalysisRepository,
    profile_repository: InMemoryProfileRepository,
) -> AppContainer:
    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        session_guard=session_guard,
        upload_service=UploadService(object_store=object_store),
        analysis_service=analysis_service,
        history_service=HistoryService(analysis_repository),
        profile_service=ProfileService(profile_repository),
        close_resources=close_resources,
    )
