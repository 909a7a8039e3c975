from __future__ import annotations

import logging

log = logging.getLogger(__name__)


async def merge_video_and_audio(video_url: str | None, audio_url: str | None) -> str | None:
    """Return the URL of the final clip.

    No muxing happens: the provider's silent video URL is passed through and
    the music track is delivered separately.
    """
    if audio_url:
        log.debug("Skipping audio merge for %s (audio at %s)", video_url, audio_url)
    return video_url
