"""Request/response bodies of the public HTTP API."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class GenerateResponse(_CamelModel):
    """Immediate answer of POST /api/generate; the video is polled separately."""

    status: str = Field(description="'processing' when a video task exists, else 'completed'")
    task_id: str | None = None
    music_url: str | None = None
    image_url: str | None = None
    lyrics: str = ""


class StatusResponse(_CamelModel):
    status: str = Field(description="'processing', 'success' or 'failed'")
    video_url: str | None = None
    error: str | None = None


class HealthResponse(_CamelModel):
    status: str = "ok"
    api_key_configured: bool
