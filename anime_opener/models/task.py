"""Generation task record tracked between /api/generate and /api/status."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field


class TaskStatus(str, Enum):
    PROCESSING = "processing"
    SUCCESS = "success"
    FAILED = "failed"


class InvalidTransitionError(ValueError):
    """Raised when a task is moved out of a terminal state."""


class GenerationTask(BaseModel):
    """One provider video job plus the metadata gathered while creating it."""

    id: str = Field(description="Task id issued by the provider")
    theme: str = Field(description="Theme text submitted by the user")
    image_url: str | None = Field(default=None, description="Source image for the video")
    music_url: str | None = Field(default=None, description="Generated music track")
    lyrics: str = Field(default="", description="Lyrics embedded in the music")
    status: TaskStatus = Field(default=TaskStatus.PROCESSING)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    video_url: str | None = Field(default=None, description="Set once the video succeeds")
    error: str | None = Field(default=None, description="Set once the video fails")
    upload_path: str | None = Field(
        default=None, description="Local path of the user's uploaded image"
    )

    @property
    def is_terminal(self) -> bool:
        return self.status is not TaskStatus.PROCESSING

    def mark_success(self, video_url: str | None) -> None:
        """Move processing → success. Repeating it with the same URL is a no-op."""
        if self.status is TaskStatus.SUCCESS and self.video_url == video_url:
            return
        self._check_transition(TaskStatus.SUCCESS)
        self.status = TaskStatus.SUCCESS
        self.video_url = video_url

    def mark_failed(self, error: str) -> None:
        """Move processing → failed. Repeating it is a no-op."""
        if self.status is TaskStatus.FAILED:
            return
        self._check_transition(TaskStatus.FAILED)
        self.status = TaskStatus.FAILED
        self.error = error

    def _check_transition(self, target: TaskStatus) -> None:
        if self.status is not TaskStatus.PROCESSING:
            raise InvalidTransitionError(
                f"Task {self.id} cannot move from {self.status.value} to {target.value}"
            )
