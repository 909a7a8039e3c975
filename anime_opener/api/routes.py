"""REST API routes for the anime opener generation flow."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, File, Form, HTTPException, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from anime_opener import config
from anime_opener.models.api import GenerateResponse, HealthResponse, StatusResponse
from anime_opener.services.minimax_client import MiniMaxClient
from anime_opener.services.orchestrator import GenerationOrchestrator
from anime_opener.services.status_service import TaskNotFoundError, TaskStatusService
from anime_opener.services.task_store import InMemoryTaskStore, TaskStore
from anime_opener.services.uploads import (
    InvalidImageError,
    run_upload_sweeper,
    save_upload,
    verify_image,
)

log = logging.getLogger(__name__)

MISSING_KEY_MESSAGE = (
    "MiniMax API key not configured. Please set MINIMAX_API_KEY environment variable."
)


def create_app(
    client: MiniMaxClient | None = None,
    store: TaskStore | None = None,
    orchestrator: GenerationOrchestrator | None = None,
    upload_dir: Path | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Collaborators default to the production ones; tests inject fakes.
    """
    if orchestrator is not None:
        client = client if client is not None else orchestrator.client
        store = store if store is not None else orchestrator.store
    if client is None:
        client = MiniMaxClient()
    if store is None:
        store = InMemoryTaskStore()
    if orchestrator is None:
        orchestrator = GenerationOrchestrator(client, store)
    status_service = TaskStatusService(client, store)
    upload_dir = upload_dir or config.UPLOAD_DIR

    @contextlib.asynccontextmanager
    async def lifespan(app: FastAPI):
        log.info("MiniMax API key configured: %s", client.is_configured)
        sweeper = asyncio.create_task(run_upload_sweeper(upload_dir))
        try:
            yield
        finally:
            sweeper.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await sweeper

    app = FastAPI(
        title="Anime Opener API",
        description="Turns an image and a theme into lyrics, music and an anime opening video",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.client = client
    app.state.store = store
    app.state.orchestrator = orchestrator

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(StarletteHTTPException)
    async def error_body(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        # Errors go out as {"error": ...}
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})

    @app.post("/api/generate", response_model=GenerateResponse)
    async def generate(
        theme: str = Form(""),
        image: Optional[UploadFile] = File(None),
    ) -> GenerateResponse:
        """
        Start generating an anime opening.

        Args:
            theme: Text theme of the opening (required)
            image: Uploaded image, at most 10MB

        Returns:
            Task id (when a video job was started), music URL, image URL and lyrics
        """
        if not client.is_configured:
            raise HTTPException(status_code=500, detail=MISSING_KEY_MESSAGE)
        if not theme.strip():
            raise HTTPException(status_code=400, detail="Please provide a theme")

        upload_path: str | None = None
        if image is not None and image.filename:
            # Reject by the parsed size before pulling the file into memory
            if image.size is not None and image.size > config.MAX_UPLOAD_BYTES:
                raise HTTPException(status_code=413, detail=config.upload_limit_message())
            data = await image.read(config.MAX_UPLOAD_BYTES + 1)
            if len(data) > config.MAX_UPLOAD_BYTES:
                raise HTTPException(status_code=413, detail=config.upload_limit_message())
            try:
                verify_image(data)
            except InvalidImageError as e:
                raise HTTPException(status_code=400, detail=str(e))
            upload_path = str(save_upload(data, image.filename, upload_dir))

        try:
            return await orchestrator.generate(theme, upload_path)
        except Exception as e:
            log.error(f"Generation error for theme '{theme[:80]}': {e}", exc_info=True)
            raise HTTPException(
                status_code=500, detail=str(e) or "Failed to generate anime opening"
            )

    @app.get(
        "/api/status/{task_id}",
        response_model=StatusResponse,
        response_model_exclude_none=True,
    )
    async def get_status(task_id: str) -> StatusResponse:
        """Refresh and return the status of a video task."""
        try:
            return await status_service.refresh(task_id)
        except TaskNotFoundError:
            raise HTTPException(status_code=404, detail="Task not found")
        except Exception as e:
            log.error(f"Status query error for task {task_id}: {e}", exc_info=True)
            raise HTTPException(status_code=500, detail=str(e) or "Failed to query status")

    @app.get("/api/health", response_model=HealthResponse)
    async def health_check() -> HealthResponse:
        """Health check endpoint."""
        return HealthResponse(api_key_configured=client.is_configured)

    return app
