#!/usr/bin/env python3
"""Live check of the MiniMax endpoints used by the service.

Spends real credits: runs one image, lyrics and music generation against
the configured account. Video is skipped unless --video is given.
"""

import argparse
import asyncio
import sys

from anime_opener import config
from anime_opener.prompts import IMAGE_PROMPT, LYRICS_PROMPT, MUSIC_PROMPT, VIDEO_PROMPT
from anime_opener.services.minimax_client import MiniMaxClient, MiniMaxError

THEME = "Epic battle scene with dramatic orchestra"


def check_api_key() -> bool:
    key = config.minimax_api_key()
    if not key:
        print("✗ MINIMAX_API_KEY is not set (add it to .env)")
        return False
    print(f"✓ API key found: {key[:6]}...{key[-4:]} ({len(key)} chars)")
    return True


async def check_image(client: MiniMaxClient) -> str | None:
    try:
        job = await client.generate_image(IMAGE_PROMPT.format(theme=THEME))
    except MiniMaxError as e:
        print(f"✗ Image generation failed: {e}")
        return None
    print(f"✓ Image generation: task_id={job.task_id}, url={job.image_url}")
    if job.task_id and not job.image_url:
        try:
            status = await client.query_image_status(job.task_id)
        except MiniMaxError as e:
            print(f"✗ Image status check failed: {e}")
            return None
        print(f"  Image status: {status.state.value}, url={status.image_url}")
        return status.image_url
    return job.image_url


async def check_lyrics(client: MiniMaxClient) -> str | None:
    try:
        result = await client.generate_lyrics(LYRICS_PROMPT.format(theme=THEME))
    except MiniMaxError as e:
        print(f"✗ Lyrics generation failed: {e}")
        return None
    first_line = (result.lyrics or "").splitlines()[:1]
    print(f"✓ Lyrics generation: {first_line[0] if first_line else '(empty)'}")
    return result.lyrics


async def check_music(client: MiniMaxClient, lyrics: str) -> bool:
    try:
        result = await client.generate_music(MUSIC_PROMPT.format(theme=THEME), lyrics)
    except MiniMaxError as e:
        print(f"✗ Music generation failed: {e}")
        return False
    print(f"✓ Music generation: {result.music_url}")
    return bool(result.music_url)


async def check_video(client: MiniMaxClient, image_url: str) -> bool:
    try:
        job = await client.generate_video(image_url, VIDEO_PROMPT.format(theme=THEME))
    except MiniMaxError as e:
        print(f"✗ Video generation failed: {e}")
        return False
    if not job.task_id:
        print("✗ Video generation returned no task id")
        return False
    try:
        status = await client.query_video_status(job.task_id)
    except MiniMaxError as e:
        print(f"✗ Video status check failed: {e}")
        return False
    print(f"✓ Video generation: task_id={job.task_id}, status={status.state.value}")
    return True


async def main(with_video: bool) -> int:
    print("Testing MiniMax connection...")
    print(f"URL: {config.MINIMAX_BASE_URL}\n")

    if not check_api_key():
        return 1

    client = MiniMaxClient()
    image_url = await check_image(client)
    lyrics = await check_lyrics(client)
    music_ok = await check_music(client, lyrics or "[Verse]\nTesting one two")

    video_ok = True
    if with_video:
        video_ok = bool(image_url) and await check_video(client, image_url)

    if image_url and lyrics and music_ok and video_ok:
        print("\n✓ All checks passed!")
        return 0
    print("\n✗ Some checks failed")
    return 1


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--video", action="store_true", help="Also start a video job.")
    args = parser.parse_args()
    sys.exit(asyncio.run(main(args.video)))
