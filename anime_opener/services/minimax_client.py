"""HTTP client for the MiniMax generative-media REST API.

Endpoints used by the service:
  1. Image generation      — POST /image_generation
  2. Image status          — GET  /query/image_generation
  3. Lyrics generation     — POST /lyrics_generation
  4. Music generation      — POST /music_generation
  5. Video generation      — POST /video_generation
  6. Video status          — GET  /query/video_generation
  7. File upload           — POST /files/upload
  8. File retrieve         — GET  /files/retrieve

Every call is a single attempt: no retries, no backoff. Raw payloads are
converted to the models in ``anime_opener.models.provider`` by
``anime_opener.services.normalize``.
"""

from __future__ import annotations

import logging
import mimetypes
from pathlib import Path
from typing import Any

import httpx

from anime_opener import config
from anime_opener.models.provider import (
    ImageJob,
    ImageStatus,
    LyricsResult,
    MusicResult,
    UploadedFile,
    VideoJob,
    VideoStatus,
)
from anime_opener.services import normalize

log = logging.getLogger(__name__)

IMAGE_MODEL = "image-01"
MUSIC_MODEL = "music-2.5"
VIDEO_MODEL = "MiniMax-Hailuo-2.3"


class MiniMaxError(RuntimeError):
    """A MiniMax call failed at the transport, HTTP or provider level."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        provider_code: int | None = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.provider_code = provider_code


class MiniMaxConfigError(MiniMaxError):
    """The API key is not configured."""


def extract_error_message(body: Any) -> str | None:
    """Best-effort extraction of a human-readable message from an error body."""
    if not isinstance(body, dict):
        return None
    base_resp = body.get("base_resp")
    if isinstance(base_resp, dict) and base_resp.get("status_msg"):
        return str(base_resp["status_msg"])
    error = body.get("error")
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    if isinstance(error, str) and error:
        return error
    if body.get("message"):
        return str(body["message"])
    return None


class MiniMaxClient:
    """Async client for the MiniMax REST API.

    Configured via environment variables (see ``anime_opener.config``):
      - MINIMAX_API_KEY: bearer token, read at construction
      - MINIMAX_BASE_URL: API root (default: https://api.minimax.io/v1)
      - MINIMAX_TIMEOUT: transport timeout in seconds
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_key = api_key if api_key is not None else config.minimax_api_key()
        self.base_url = (base_url or config.MINIMAX_BASE_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else config.MINIMAX_TIMEOUT
        self._transport = transport

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.api_key}"}

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport)

    async def _request(self, method: str, endpoint: str, **kwargs: Any) -> dict:
        if not self.api_key:
            raise MiniMaxConfigError(
                "MiniMax API key not configured. "
                "Please set MINIMAX_API_KEY environment variable."
            )

        url = f"{self.base_url}{endpoint}"
        try:
            async with self._client() as client:
                resp = await client.request(method, url, headers=self._headers(), **kwargs)
        except httpx.HTTPError as e:
            log.error("MiniMax %s %s transport error: %s", method, endpoint, e)
            raise MiniMaxError(str(e) or f"MiniMax request to {endpoint} failed") from e

        try:
            body = resp.json()
        except ValueError:
            body = None

        if resp.is_error:
            message = extract_error_message(body) or (
                f"MiniMax {endpoint} returned HTTP {resp.status_code}"
            )
            log.error("MiniMax %s %s -> %d: %s", method, endpoint, resp.status_code, message)
            raise MiniMaxError(message, status_code=resp.status_code)

        if not isinstance(body, dict):
            raise MiniMaxError(
                f"MiniMax {endpoint} returned a non-JSON body", status_code=resp.status_code
            )

        # MiniMax reports some failures (bad key, no balance) inside a 200 body
        base_resp = body.get("base_resp")
        if isinstance(base_resp, dict):
            code = base_resp.get("status_code", 0)
            if code not in (0, None):
                message = base_resp.get("status_msg") or f"MiniMax error code {code}"
                log.error("MiniMax %s %s -> provider code %s: %s", method, endpoint, code, message)
                raise MiniMaxError(message, status_code=resp.status_code, provider_code=code)

        return body

    async def _post(self, endpoint: str, payload: dict) -> dict:
        return await self._request("POST", endpoint, json=payload)

    # ── 1. Image Generation ─────────────────────────────

    async def generate_image(self, prompt: str) -> ImageJob:
        body = await self._post(
            "/image_generation",
            {
                "model": IMAGE_MODEL,
                "prompt": prompt,
                "num_images": 1,
                "image_setting": {"resolution": "1024x1024"},
            },
        )
        job = normalize.image_job(body)
        log.info(
            "MiniMax image generation: task_id=%s, inline_url=%s",
            job.task_id,
            bool(job.image_url),
        )
        return job

    # ── 2. Image Status ─────────────────────────────────

    async def query_image_status(self, task_id: str) -> ImageStatus:
        body = await self._request(
            "GET", "/query/image_generation", params={"task_id": task_id}
        )
        return normalize.image_status(body)

    # ── 3. Lyrics ───────────────────────────────────────

    async def generate_lyrics(self, prompt: str) -> LyricsResult:
        body = await self._post(
            "/lyrics_generation", {"mode": "write_full_song", "prompt": prompt}
        )
        return normalize.lyrics_result(body)

    # ── 4. Music ────────────────────────────────────────

    async def generate_music(self, prompt: str, lyrics: str) -> MusicResult:
        body = await self._post(
            "/music_generation",
            {
                "model": MUSIC_MODEL,
                "prompt": prompt,
                "lyrics": lyrics,
                "audio_setting": {
                    "sample_rate": 44100,
                    "bitrate": 256000,
                    "format": "mp3",
                },
                "output_format": "url",
            },
        )
        result = normalize.music_result(body)
        log.info("MiniMax music generation: url=%s", result.music_url)
        return result

    # ── 5. Video Generation ─────────────────────────────

    async def generate_video(self, image_url: str, prompt: str) -> VideoJob:
        body = await self._post(
            "/video_generation",
            {
                "model": VIDEO_MODEL,
                "prompt": prompt,
                "image_url": image_url,
                "duration": 6,
                "resolution": "720P",
            },
        )
        job = normalize.video_job(body)
        log.info("MiniMax video generation: task_id=%s", job.task_id)
        return job

    # ── 6. Video Status ─────────────────────────────────

    async def query_video_status(self, task_id: str) -> VideoStatus:
        body = await self._request(
            "GET", "/query/video_generation", params={"task_id": task_id}
        )
        return normalize.video_status(body)

    # ── 7. File Upload ──────────────────────────────────

    async def upload_file(self, path: str | Path, purpose: str = "video_generation") -> UploadedFile:
        """Upload a local file so it can be referenced by URL in later calls."""
        path = Path(path)
        mime = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
        with open(path, "rb") as f:
            body = await self._request(
                "POST",
                "/files/upload",
                files={"file": (path.name, f, mime)},
                data={"purpose": purpose},
            )
        uploaded = normalize.uploaded_file(body)
        log.info("MiniMax file upload: file_id=%s, url=%s", uploaded.file_id, uploaded.file_url)
        return uploaded

    # ── 8. File Retrieve ────────────────────────────────

    async def retrieve_file(self, file_id: str) -> str | None:
        """Resolve a provider file id to a download URL."""
        body = await self._request("GET", "/files/retrieve", params={"file_id": file_id})
        return normalize.download_url(body)
