"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import BackgroundTasks, Depends, FastAPI, File, Request, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from nutrition_analyzer.api.account import router as account_router
from nutrition_analyzer.api.auth import current_identity
from nutrition_analyzer.app_logging import configure_logging
from nutrition_analyzer.containers import AppContainer
from nutrition_analyzer.domain.errors import PipelineError, UpstreamCallFailed
from nutrition_analyzer.domain.models import Identity
from nutrition_analyzer.domain.storage import UploadRequest


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.include_router(account_router)

    @app.exception_handler(PipelineError)
    async def pipeline_error_handler(
        request: Request, exc: PipelineError
    ) -> JSONResponse:
        return JSONResponse({"error": exc.message}, status_code=exc.status_code)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.post("/api/upload")
    async def upload_image(
        request: Request,
        file: UploadFile | None = File(default=None),
        identity: Identity | None = Depends(current_identity),
    ) -> JSONResponse:
        """Store an uploaded food photo and return a signed link to it."""
        state_container: AppContainer = request.app.state.container
        upload_request = None
        if identity is not None and file is not None:
            size = file.size
            content = b""
            # Oversized parts are rejected from the parsed size without reading.
            if size is None or size <= state_container.upload_service.max_bytes:
                content = await file.read()
                size = len(content)
            upload_request = UploadRequest(
                content=content,
                content_type=file.content_type,
                size=size,
                filename=file.filename,
            )
        try:
            stored = await run_in_threadpool(
                state_container.upload_service.upload, identity, upload_request
            )
        except PipelineError as exc:
            return JSONResponse(
                {"error": exc.message, "success": False},
                status_code=exc.status_code,
            )
        except Exception as exc:
            logger.exception("Unhandled error in upload endpoint")
            return JSONResponse(
                {
                    "error": _server_error_message(
                        state_container,
                        exc,
                        "An unexpected server error occurred during upload.",
                    ),
                    "success": False,
                },
                status_code=500,
            )
        return JSONResponse(
            {"url": stored.signed_url.url, "success": True, "s3_key": stored.key}
        )

    @app.post("/api/analyze")
    async def analyze_image(
        request: Request,
        background_tasks: BackgroundTasks,
        identity: Identity | None = Depends(current_identity),
    ) -> JSONResponse:
        """Analyze a previously uploaded photo by its signed URL."""
        state_container: AppContainer = request.app.state.container
        image_url = await _read_image_url(request)
        try:
            outcome = await state_container.analysis_service.analyze(
                identity, image_url
            )
        except UpstreamCallFailed as exc:
            return JSONResponse(
                {
                    "contains_food": False,
                    "dish_name": "Analysis Failed",
                    "error": exc.message,
                },
                status_code=exc.status_code,
            )
        except PipelineError as exc:
            return JSONResponse(
                {"error": exc.message, "contains_food": False},
                status_code=exc.status_code,
            )
        except Exception as exc:
            logger.exception("Unhandled error in analyze endpoint")
            return JSONResponse(
                {
                    "contains_food": False,
                    "dish_name": "Analysis Error",
                    "error": _server_error_message(
                        state_container, exc, "An unexpected server error occurred."
                    ),
                },
                status_code=500,
            )
        if outcome.record is not None:
            # Runs after the response is sent; failures only reach the logs.
            background_tasks.add_task(
                state_container.analysis_service.record_analysis, outcome.record
            )
        return JSONResponse(outcome.result.to_response())

    return app


async def _read_image_url(request: Request) -> object:
    """Return the imageUrl field of a JSON body, or None if unreadable."""
    try:
        body = await request.json()
    except ValueError:
        return None
    if not isinstance(body, dict):
        return None
    return body.get("imageUrl")


def _server_error_message(
    state_container: AppContainer, exc: Exception, fallback: str
) -> str:
    """Return a client-facing 500 message, with exception detail if opted in."""
    if state_container.settings.debug_errors:
        detail = f"{type(exc).__name__}: {exc}".strip()
        if detail:
            return f"{fallback} (debug: {detail})"
    return fallback
