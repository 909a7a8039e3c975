from __future__ import annotations

import mimetypes
from pathlib import Path

from anime_opener import config


class SubmissionError(ValueError):
    """The submission was rejected before contacting the server."""


def validate_submission(image_path: str | Path | None, theme: str | None) -> Path:
    """Check the image and theme locally and return the image path.

    Mirrors the browser form: both fields are required, the file must look
    like an image and weigh at most 10MB.
    """
    if image_path is None or not theme or not theme.strip():
        raise SubmissionError("Please upload an image and enter a theme")

    path = Path(image_path)
    if not path.is_file():
        raise SubmissionError(f"Image not found: {path}")

    mime, _ = mimetypes.guess_type(path.name)
    if not mime or not mime.startswith("image/"):
        raise SubmissionError("Please choose an image file")

    if path.stat().st_size > config.MAX_UPLOAD_BYTES:
        raise SubmissionError(config.upload_limit_message())

    return path
