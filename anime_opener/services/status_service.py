from __future__ import annotations

import logging

from anime_opener.models.api import StatusResponse
from anime_opener.models.provider import JobState
from anime_opener.models.task import GenerationTask, TaskStatus
from anime_opener.services.media import merge_video_and_audio
from anime_opener.services.minimax_client import MiniMaxClient
from anime_opener.services.task_store import TaskStore

log = logging.getLogger(__name__)

VIDEO_FAILED_MESSAGE = "Video generation failed"


class TaskNotFoundError(KeyError):
    """No task is registered under the requested id."""


class TaskStatusService:
    """Refreshes a registered video task against the provider."""

    def __init__(self, client: MiniMaxClient, store: TaskStore):
        self.client = client
        self.store = store

    async def refresh(self, task_id: str) -> StatusResponse:
        """Return the task's current status, querying MiniMax while it is processing.

        Terminal tasks are answered from the store without another provider
        call, so repeated polls after success keep returning the same URL.
        Provider errors propagate to the caller.
        """
        task = self.store.get(task_id)
        if task is None:
            raise TaskNotFoundError(task_id)

        if task.is_terminal:
            return _terminal_response(task)

        status = await self.client.query_video_status(task_id)

        if status.state is JobState.SUCCESS:
            video_url = status.video_url
            if not video_url and status.file_id:
                video_url = await self.client.retrieve_file(status.file_id)
            final_url = await merge_video_and_audio(video_url, task.music_url)
            if not final_url:
                # Stay processing so a later poll can pick the URL up
                log.warning("Task %s reported success without a video URL", task_id)
                return StatusResponse(status=TaskStatus.PROCESSING.value)

            settled = self._settled(task_id)
            if settled is not None:
                return settled
            task.mark_success(final_url)
            self.store.set(task)
            log.info("Task %s finished: %s", task_id, final_url)
            return StatusResponse(status=TaskStatus.SUCCESS.value, video_url=final_url)

        if status.state is JobState.FAILED:
            settled = self._settled(task_id)
            if settled is not None:
                return settled
            task.mark_failed(VIDEO_FAILED_MESSAGE)
            self.store.set(task)
            log.warning("Task %s failed at the provider", task_id)
            return StatusResponse(status=TaskStatus.FAILED.value, error=VIDEO_FAILED_MESSAGE)

        return StatusResponse(status=TaskStatus.PROCESSING.value)

    def _settled(self, task_id: str) -> StatusResponse | None:
        """Stored result if a concurrent refresh already finished the task."""
        current = self.store.get(task_id)
        if current is not None and current.is_terminal:
            log.info("Task %s already %s, keeping stored result", task_id, current.status.value)
            return _terminal_response(current)
        return None


def _terminal_response(task: GenerationTask) -> StatusResponse:
    if task.status is TaskStatus.SUCCESS:
        return StatusResponse(status=task.status.value, video_url=task.video_url)
    return StatusResponse(
        status=task.status.value, error=task.error or VIDEO_FAILED_MESSAGE
    )
