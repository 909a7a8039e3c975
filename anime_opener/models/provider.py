"""Normalized shapes of the MiniMax responses the orchestrator consumes.

Raw provider payloads are converted into these models in
``anime_opener.services.normalize``; nothing else reads raw JSON.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class JobState(str, Enum):
    """Provider job state collapsed to the three states we act on."""

    PROCESSING = "processing"
    SUCCESS = "success"
    FAILED = "failed"


class ImageJob(BaseModel):
    task_id: str | None = Field(default=None, description="Async image task id, if any")
    image_url: str | None = Field(default=None, description="URL returned inline, if any")
    raw: dict[str, Any] = Field(default_factory=dict, repr=False)


class ImageStatus(BaseModel):
    state: JobState
    image_url: str | None = None


class LyricsResult(BaseModel):
    lyrics: str | None = None


class MusicResult(BaseModel):
    music_url: str | None = None


class VideoJob(BaseModel):
    task_id: str | None = None


class VideoStatus(BaseModel):
    state: JobState
    video_url: str | None = None
    file_id: str | None = Field(
        default=None, description="Returned instead of a URL by newer API versions"
    )


class UploadedFile(BaseModel):
    file_id: str | None = None
    file_url: str | None = None
