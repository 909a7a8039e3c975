"""Convert raw MiniMax payloads into the models in ``models.provider``.

Each field the service needs is read through an ordered list of named rules.
The first rule that yields a non-empty value wins. All knowledge of the
provider's response variants lives here.
"""

from __future__ import annotations

import logging
from typing import Any, Sequence

from anime_opener.models.provider import (
    ImageJob,
    ImageStatus,
    JobState,
    LyricsResult,
    MusicResult,
    UploadedFile,
    VideoJob,
    VideoStatus,
)

log = logging.getLogger(__name__)

Rule = tuple[str, tuple[str | int, ...]]

IMAGE_TASK_ID_RULES: list[Rule] = [
    ("id", ("id",)),
    ("task_id", ("task_id",)),
]

# Inline URLs in the image_generation response
IMAGE_URL_RULES: list[Rule] = [
    ("data.image_urls[0]", ("data", "image_urls", 0)),
    ("image.image_url", ("image", "image_url")),
]

# URLs in the query/image_generation response
IMAGE_STATUS_URL_RULES: list[Rule] = [
    ("image.image_url", ("image", "image_url")),
    ("data.image_urls[0]", ("data", "image_urls", 0)),
]

LYRICS_RULES: list[Rule] = [
    ("lyrics", ("lyrics",)),
    ("data.lyrics", ("data", "lyrics")),
]

MUSIC_URL_RULES: list[Rule] = [
    ("data.audio", ("data", "audio")),
    ("audio_file", ("audio_file",)),
    ("audio.file_url", ("audio", "file_url")),
    ("file_url", ("file_url",)),
    ("url", ("url",)),
]

VIDEO_TASK_ID_RULES: list[Rule] = [
    ("task_id", ("task_id",)),
    ("task.task_id", ("task", "task_id")),
]

VIDEO_URL_RULES: list[Rule] = [
    ("video.video_url", ("video", "video_url")),
    ("video_url", ("video_url",)),
]

VIDEO_FILE_ID_RULES: list[Rule] = [
    ("file_id", ("file_id",)),
    ("video.file_id", ("video", "file_id")),
]

UPLOAD_URL_RULES: list[Rule] = [
    ("file.file_url", ("file", "file_url")),
    ("file_url", ("file_url",)),
    ("files[0].file_url", ("files", 0, "file_url")),
    ("url", ("url",)),
]

UPLOAD_FILE_ID_RULES: list[Rule] = [
    ("file.file_id", ("file", "file_id")),
    ("file_id", ("file_id",)),
]

DOWNLOAD_URL_RULES: list[Rule] = [
    ("file.download_url", ("file", "download_url")),
    ("download_url", ("download_url",)),
]

SUCCESS_STATES = {"success", "succeeded", "completed"}
FAILED_STATES = {"failed", "fail", "error"}


def _dig(payload: Any, path: tuple[str | int, ...]) -> Any:
    node = payload
    for key in path:
        if isinstance(key, int):
            if not isinstance(node, list) or len(node) <= key:
                return None
            node = node[key]
        else:
            if not isinstance(node, dict):
                return None
            node = node.get(key)
        if node is None:
            return None
    return node


def first_match(payload: Any, rules: Sequence[Rule]) -> str | None:
    """Return the first non-empty scalar selected by ``rules``, as a string."""
    for name, path in rules:
        value = _dig(payload, path)
        if value is None or value == "" or isinstance(value, (dict, list)):
            continue
        log.debug("Matched rule %s -> %r", name, value)
        return str(value)
    return None


def parse_state(payload: Any) -> JobState:
    raw = _dig(payload, ("status",))
    state = str(raw).strip().lower() if raw is not None else ""
    if state in SUCCESS_STATES:
        return JobState.SUCCESS
    if state in FAILED_STATES:
        return JobState.FAILED
    return JobState.PROCESSING


def image_job(payload: dict) -> ImageJob:
    return ImageJob(
        task_id=first_match(payload, IMAGE_TASK_ID_RULES),
        image_url=first_match(payload, IMAGE_URL_RULES),
        raw=payload if isinstance(payload, dict) else {},
    )


def image_status(payload: dict) -> ImageStatus:
    return ImageStatus(
        state=parse_state(payload),
        image_url=first_match(payload, IMAGE_STATUS_URL_RULES),
    )


def lyrics_result(payload: dict) -> LyricsResult:
    return LyricsResult(lyrics=first_match(payload, LYRICS_RULES))


def music_result(payload: dict) -> MusicResult:
    return MusicResult(music_url=first_match(payload, MUSIC_URL_RULES))


def video_job(payload: dict) -> VideoJob:
    return VideoJob(task_id=first_match(payload, VIDEO_TASK_ID_RULES))


def video_status(payload: dict) -> VideoStatus:
    return VideoStatus(
        state=parse_state(payload),
        video_url=first_match(payload, VIDEO_URL_RULES),
        file_id=first_match(payload, VIDEO_FILE_ID_RULES),
    )


def uploaded_file(payload: dict) -> UploadedFile:
    return UploadedFile(
        file_id=first_match(payload, UPLOAD_FILE_ID_RULES),
        file_url=first_match(payload, UPLOAD_URL_RULES),
    )


def download_url(payload: dict) -> str | None:
    return first_match(payload, DOWNLOAD_URL_RULES)
