"""Turns one submission into the chain of MiniMax generation jobs.

Chains the MiniMax calls strictly in order:
  Step 1: Image  (text-to-image, short bounded poll for the URL)
  Step 2: Lyrics (falls back to a canned song, never fails the request)
  Step 3: Music  (theme prompt + lyrics)
  Step 4: Video  (image-to-video, only when an image URL exists)

The video is not awaited: its task is registered in the store and the
caller polls it through ``TaskStatusService``.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

from anime_opener import config
from anime_opener.models.api import GenerateResponse
from anime_opener.models.provider import ImageJob, JobState
from anime_opener.models.task import GenerationTask
from anime_opener.prompts import (
    DEFAULT_LYRICS,
    IMAGE_PROMPT,
    LYRICS_PROMPT,
    MUSIC_PROMPT,
    VIDEO_PROMPT,
)
from anime_opener.services.minimax_client import MiniMaxClient, MiniMaxError
from anime_opener.services.task_store import TaskStore

log = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


class GenerationOrchestrator:
    """Sequences the four generation calls for a single theme.

    Usage:
        orchestrator = GenerationOrchestrator(MiniMaxClient(), InMemoryTaskStore())
        response = await orchestrator.generate("Epic battle scene", upload_path)
    """

    def __init__(
        self,
        client: MiniMaxClient,
        store: TaskStore,
        poll_attempts: int | None = None,
        poll_interval: float | None = None,
        sleep: Sleep = asyncio.sleep,
        use_uploaded_image: bool | None = None,
    ):
        self.client = client
        self.store = store
        self.poll_attempts = (
            poll_attempts if poll_attempts is not None else config.IMAGE_POLL_ATTEMPTS
        )
        self.poll_interval = (
            poll_interval if poll_interval is not None else config.IMAGE_POLL_INTERVAL_SECONDS
        )
        self._sleep = sleep
        self.use_uploaded_image = (
            use_uploaded_image
            if use_uploaded_image is not None
            else config.MINIMAX_USE_UPLOADED_IMAGE
        )

    async def generate(self, theme: str, upload_path: str | None = None) -> GenerateResponse:
        """Run steps 1–4 and return the partial result immediately.

        Raises:
            ValueError: theme is empty.
            MiniMaxError: image, music or video generation failed.
        """
        theme = theme.strip()
        if not theme:
            raise ValueError("Theme is required")

        # ── Step 1: Image ────────────────────────────────────
        image_url = await self._resolve_image_url(theme, upload_path)
        log.info("Generated image URL: %s", image_url)

        # ── Step 2: Lyrics ───────────────────────────────────
        lyrics = await self._generate_lyrics(theme)

        # ── Step 3: Music ────────────────────────────────────
        music = await self.client.generate_music(MUSIC_PROMPT.format(theme=theme), lyrics)

        # ── Step 4: Video ────────────────────────────────────
        task_id: str | None = None
        if image_url:
            video = await self.client.generate_video(
                image_url, VIDEO_PROMPT.format(theme=theme)
            )
            task_id = video.task_id
        else:
            log.warning("No image URL available, skipping video generation")

        if task_id:
            self.store.set(
                GenerationTask(
                    id=task_id,
                    theme=theme,
                    image_url=image_url,
                    music_url=music.music_url,
                    lyrics=lyrics,
                    upload_path=upload_path,
                )
            )

        return GenerateResponse(
            status="processing" if task_id else "completed",
            task_id=task_id,
            music_url=music.music_url,
            image_url=image_url,
            lyrics=lyrics,
        )

    async def _resolve_image_url(self, theme: str, upload_path: str | None) -> str | None:
        if upload_path:
            if self.use_uploaded_image:
                uploaded = await self.client.upload_file(upload_path)
                if uploaded.file_url:
                    return uploaded.file_url
                log.warning("Upload of %s returned no URL, generating an image instead", upload_path)
            else:
                log.info("User uploaded %s, but generating new image based on theme", upload_path)

        job = await self.client.generate_image(IMAGE_PROMPT.format(theme=theme))
        image_url = None
        if job.task_id:
            image_url = await self._poll_image(job)
        # Fall back to whatever the initial response carried
        return image_url or job.image_url

    async def _poll_image(self, job: ImageJob) -> str | None:
        """Query the image task at most ``poll_attempts`` times, sleeping first."""
        for attempt in range(1, self.poll_attempts + 1):
            await self._sleep(self.poll_interval)
            try:
                status = await self.client.query_image_status(job.task_id)
            except MiniMaxError as e:
                log.warning(
                    "Image status check %d/%d error: %s", attempt, self.poll_attempts, e
                )
                continue

            if status.state is JobState.SUCCESS:
                return status.image_url
            if status.state is JobState.FAILED:
                log.warning("Image generation failed for task %s", job.task_id)
                return None

        log.info("Image task %s not ready after %d checks", job.task_id, self.poll_attempts)
        return None

    async def _generate_lyrics(self, theme: str) -> str:
        try:
            result = await self.client.generate_lyrics(LYRICS_PROMPT.format(theme=theme))
        except MiniMaxError as e:
            log.warning("Lyrics generation error, using default lyrics: %s", e)
            return DEFAULT_LYRICS
        if not result.lyrics:
            log.warning("Lyrics response was empty, using default lyrics")
            return DEFAULT_LYRICS
        return result.lyrics
