"""Async client for the anime opener API.

Drives the same sequence as the web form:
  1. Validate the image and theme locally
  2. POST /api/generate (steps 1–2 of the progress indicator)
  3. Poll GET /api/status/{taskId} every few seconds (step 3)
  4. Report the video URL (step 4, no separate merge happens)

Polling is bounded by ``max_wait`` and can be stopped through a CancelToken.
"""

from __future__ import annotations

import asyncio
import logging
import math
import mimetypes
from pathlib import Path
from typing import Any

import httpx
from pydantic import BaseModel

from anime_opener import config
from anime_opener.client.progress import (
    MERGE,
    MUSIC,
    UPLOAD,
    VIDEO,
    ProgressTracker,
    StepStatus,
)
from anime_opener.client.validation import validate_submission

log = logging.getLogger(__name__)

DEFAULT_SERVER_URL = "http://localhost:3001"


class ApiError(RuntimeError):
    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class GenerationFailedError(RuntimeError):
    """The server reported the video task as failed."""


class PollingTimeoutError(TimeoutError):
    pass


class PollingCancelledError(RuntimeError):
    pass


class CancelToken:
    """Cooperative cancellation flag shared between the caller and a poll loop."""

    def __init__(self):
        self._event = asyncio.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    async def wait(self, timeout: float) -> bool:
        """Sleep up to ``timeout`` seconds; return True if cancelled meanwhile."""
        if self.cancelled:
            return True
        if timeout <= 0:
            await asyncio.sleep(0)
            return self.cancelled
        try:
            await asyncio.wait_for(self._event.wait(), timeout)
        except asyncio.TimeoutError:
            return False
        return True


class OpeningResult(BaseModel):
    status: str
    task_id: str | None = None
    video_url: str | None = None
    music_url: str | None = None
    image_url: str | None = None
    lyrics: str = ""


def _json_or_raise(resp: httpx.Response, fallback: str) -> dict[str, Any]:
    try:
        body = resp.json()
    except ValueError:
        body = {}
    if resp.is_error:
        message = body.get("error") if isinstance(body, dict) else None
        raise ApiError(message or fallback, status_code=resp.status_code)
    if not isinstance(body, dict):
        raise ApiError(fallback, status_code=resp.status_code)
    return body


class AnimeOpenerClient:
    def __init__(
        self,
        base_url: str = DEFAULT_SERVER_URL,
        tracker: ProgressTracker | None = None,
        poll_interval: float = config.CLIENT_POLL_INTERVAL_SECONDS,
        max_wait: float = config.CLIENT_MAX_WAIT_SECONDS,
        max_attempts: int | None = None,
        timeout: float = 600,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.tracker = tracker or ProgressTracker()
        self.poll_interval = poll_interval
        if max_attempts is None:
            if poll_interval <= 0:
                raise ValueError("max_attempts is required when poll_interval is 0")
            max_attempts = max(1, math.ceil(max_wait / poll_interval))
        self.max_attempts = max_attempts
        # /api/generate blocks on image, lyrics and music generation
        self.timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url, timeout=self.timeout, transport=self._transport
        )

    async def health(self) -> dict[str, Any]:
        async with self._client() as client:
            resp = await client.get("/api/health")
            return _json_or_raise(resp, "Health check failed")

    async def submit(self, image_path: Path, theme: str) -> dict[str, Any]:
        """POST the multipart form and return the decoded JSON body."""
        mime = mimetypes.guess_type(image_path.name)[0] or "application/octet-stream"
        async with self._client() as client:
            with open(image_path, "rb") as f:
                resp = await client.post(
                    "/api/generate",
                    files={"image": (image_path.name, f, mime)},
                    data={"theme": theme},
                )
        return _json_or_raise(resp, "Generation failed")

    async def poll_status(
        self, task_id: str, cancel: CancelToken | None = None
    ) -> dict[str, Any]:
        """Poll the status endpoint until success, failure, cancellation or timeout."""
        cancel = cancel or CancelToken()
        async with self._client() as client:
            for attempt in range(1, self.max_attempts + 1):
                if await cancel.wait(self.poll_interval):
                    raise PollingCancelledError(f"Polling for task {task_id} was cancelled")

                resp = await client.get(f"/api/status/{task_id}")
                data = _json_or_raise(resp, "Failed to query status")
                status = data.get("status")
                log.debug("Status check %d/%d for %s: %s", attempt, self.max_attempts, task_id, status)

                if status == "success":
                    return data
                if status == "failed":
                    raise GenerationFailedError(data.get("error") or "Video generation failed")

        raise PollingTimeoutError(
            f"Video for task {task_id} was not ready after {self.max_attempts} checks"
        )

    async def create_opening(
        self,
        image_path: str | Path | None,
        theme: str | None,
        cancel: CancelToken | None = None,
    ) -> OpeningResult:
        """Run the whole flow, keeping ``self.tracker`` in step with it.

        Validation errors are raised before any request is made. Any later
        error marks the in-flight steps as errored and is re-raised.
        """
        path = validate_submission(image_path, theme)
        tracker = self.tracker
        tracker.reset()

        try:
            tracker.update(UPLOAD, StepStatus.PROCESSING)
            data = await self.submit(path, theme)
            tracker.update(UPLOAD, StepStatus.COMPLETED)
            tracker.update(MUSIC, StepStatus.PROCESSING)

            result = OpeningResult(
                status=data.get("status", "completed"),
                task_id=data.get("taskId"),
                music_url=data.get("musicUrl"),
                image_url=data.get("imageUrl"),
                lyrics=data.get("lyrics") or "",
            )
            tracker.update(MUSIC, StepStatus.COMPLETED)

            if result.status == "processing" and result.task_id:
                tracker.update(VIDEO, StepStatus.PROCESSING)
                status = await self.poll_status(result.task_id, cancel)
                tracker.update(VIDEO, StepStatus.COMPLETED)
                tracker.update(MERGE, StepStatus.PROCESSING)
                result.video_url = status.get("videoUrl")
                result.status = "success"
                tracker.update(MERGE, StepStatus.COMPLETED)

            return result
        except (Exception, asyncio.CancelledError) as e:
            tracker.fail_in_flight(str(e) or "An error occurred")
            raise

    async def download_video(self, video_url: str, dest: str | Path) -> Path:
        """Stream the finished video to ``dest``."""
        dest = Path(dest)
        dest.parent.mkdir(parents=True, exist_ok=True)
        async with self._client() as client:
            async with client.stream("GET", video_url) as resp:
                resp.raise_for_status()
                with open(dest, "wb") as f:
                    async for chunk in resp.aiter_bytes():
                        f.write(chunk)
        log.info("Saved video to %s", dest)
        return dest
