"""Environment-driven settings for the anime opener service."""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


# MiniMax API
MINIMAX_BASE_URL = os.environ.get("MINIMAX_BASE_URL", "https://api.minimax.io/v1")
MINIMAX_TIMEOUT = float(os.environ.get("MINIMAX_TIMEOUT", "60"))
# NOTE: when off, the uploaded image is stored but a fresh one is generated from the theme
MINIMAX_USE_UPLOADED_IMAGE = _env_bool("MINIMAX_USE_UPLOADED_IMAGE")

# Server
HOST = os.environ.get("HOST", "0.0.0.0")
PORT = int(os.environ.get("PORT", "3001"))
CORS_ORIGINS = [
    origin.strip()
    for origin in os.environ.get(
        "CORS_ORIGINS", "http://localhost:5173,http://127.0.0.1:5173"
    ).split(",")
    if origin.strip()
]

# Uploads
PROJECT_ROOT = Path(__file__).resolve().parent.parent
UPLOAD_DIR = Path(os.environ.get("UPLOAD_DIR", str(PROJECT_ROOT / "uploads")))
MAX_UPLOAD_BYTES = int(os.environ.get("MAX_UPLOAD_BYTES", str(10 * 1024 * 1024)))
UPLOAD_MAX_AGE_SECONDS = int(os.environ.get("UPLOAD_MAX_AGE_SECONDS", "3600"))
UPLOAD_SWEEP_INTERVAL_SECONDS = int(
    os.environ.get("UPLOAD_SWEEP_INTERVAL_SECONDS", "3600")
)

# Image resolution polling inside /api/generate
IMAGE_POLL_ATTEMPTS = int(os.environ.get("IMAGE_POLL_ATTEMPTS", "5"))
IMAGE_POLL_INTERVAL_SECONDS = float(os.environ.get("IMAGE_POLL_INTERVAL_SECONDS", "2"))

# Client-side status polling
CLIENT_POLL_INTERVAL_SECONDS = 3.0
CLIENT_MAX_WAIT_SECONDS = 15 * 60


def upload_limit_message() -> str:
    return f"Image must be less than {MAX_UPLOAD_BYTES / (1024 * 1024):g}MB"


def minimax_api_key() -> str:
    """Read the API key at call time so a missing key surfaces per request."""
    return os.environ.get("MINIMAX_API_KEY", "")
