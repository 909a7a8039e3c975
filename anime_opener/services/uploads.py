"""Local persistence of uploaded images and the hourly clean-up sweep."""

from __future__ import annotations

import asyncio
import io
import logging
import time
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from anime_opener import config

log = logging.getLogger(__name__)


class InvalidImageError(ValueError):
    """The uploaded bytes are not a readable image."""


def verify_image(data: bytes) -> str:
    """Check that ``data`` decodes as an image and return its format (e.g. 'JPEG')."""
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.verify()
            return img.format or "unknown"
    except (UnidentifiedImageError, OSError, SyntaxError) as e:
        raise InvalidImageError("Uploaded file is not a valid image") from e


def save_upload(data: bytes, filename: str, upload_dir: Path | None = None) -> Path:
    """Write an upload as ``<epoch-ms>-<original name>`` and return its path."""
    upload_dir = upload_dir or config.UPLOAD_DIR
    upload_dir.mkdir(parents=True, exist_ok=True)
    safe_name = Path(filename).name or "upload"
    path = upload_dir / f"{int(time.time() * 1000)}-{safe_name}"
    path.write_bytes(data)
    log.info("Saved upload to %s (%d bytes)", path, len(data))
    return path


def sweep_uploads(
    upload_dir: Path | None = None,
    max_age_seconds: float | None = None,
    now: float | None = None,
) -> list[Path]:
    """Delete files in ``upload_dir`` last modified more than ``max_age_seconds`` ago."""
    upload_dir = upload_dir or config.UPLOAD_DIR
    max_age = max_age_seconds if max_age_seconds is not None else config.UPLOAD_MAX_AGE_SECONDS
    if not upload_dir.exists():
        return []

    cutoff = (now if now is not None else time.time()) - max_age
    removed: list[Path] = []
    for path in upload_dir.iterdir():
        if not path.is_file():
            continue
        if path.stat().st_mtime < cutoff:
            path.unlink(missing_ok=True)
            removed.append(path)

    if removed:
        log.info("Removed %d expired upload(s) from %s", len(removed), upload_dir)
    return removed


async def run_upload_sweeper(
    upload_dir: Path | None = None,
    interval_seconds: float | None = None,
    max_age_seconds: float | None = None,
) -> None:
    """Sweep ``upload_dir`` every ``interval_seconds`` until cancelled."""
    interval = (
        interval_seconds
        if interval_seconds is not None
        else config.UPLOAD_SWEEP_INTERVAL_SECONDS
    )
    while True:
        await asyncio.sleep(interval)
        try:
            sweep_uploads(upload_dir, max_age_seconds)
        except OSError as e:
            log.error("Upload sweep failed: %s", e)
