"""CLI entry point: create an anime opening from an image and a theme."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from datetime import datetime
from pathlib import Path

from anime_opener import config
from anime_opener.client.progress import ProgressStep, ProgressTracker, StepStatus
from anime_opener.client.session import DEFAULT_SERVER_URL, AnimeOpenerClient
from anime_opener.client.validation import SubmissionError
from anime_opener.prompts import THEME_SUGGESTIONS

log = logging.getLogger(__name__)

STEP_ICONS = {
    StepStatus.PENDING: " ",
    StepStatus.PROCESSING: "…",
    StepStatus.COMPLETED: "✓",
    StepStatus.ERROR: "✗",
}


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Create an anime opening video (lyrics, music, video) from an image and a theme."
    )
    parser.add_argument(
        "image",
        nargs="?",
        help="Path to the image to upload (at most 10MB).",
    )
    parser.add_argument(
        "--theme", "-t",
        type=str,
        default=None,
        help="Theme of the opening, e.g. 'Epic battle scene with dramatic orchestra'.",
    )
    parser.add_argument(
        "--server", "-s",
        type=str,
        default=DEFAULT_SERVER_URL,
        help=f"Base URL of the API server (default: {DEFAULT_SERVER_URL}).",
    )
    parser.add_argument(
        "--output", "-o",
        type=str,
        default=None,
        help="Where to save the video (default: outputs/anime-opening-YYYYmmdd-HHMMSS.mp4).",
    )
    parser.add_argument(
        "--poll-interval",
        type=float,
        default=config.CLIENT_POLL_INTERVAL_SECONDS,
        help="Seconds between status checks (default: 3).",
    )
    parser.add_argument(
        "--max-wait",
        type=float,
        default=config.CLIENT_MAX_WAIT_SECONDS,
        help="Give up waiting for the video after this many seconds (default: 900).",
    )
    parser.add_argument(
        "--no-download",
        action="store_true",
        help="Print the video URL without downloading it.",
    )
    parser.add_argument(
        "--suggestions",
        action="store_true",
        help="List example themes and exit.",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging.",
    )
    return parser.parse_args()


def print_step(step: ProgressStep) -> None:
    print(f"  [{STEP_ICONS[step.status]}] {step.id}. {step.label}", file=sys.stderr)


def default_output_path() -> Path:
    stamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    return Path("outputs") / f"anime-opening-{stamp}.mp4"


async def main() -> int:
    args = parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    if args.suggestions:
        for suggestion in THEME_SUGGESTIONS:
            print(suggestion)
        return 0

    client = AnimeOpenerClient(
        base_url=args.server,
        tracker=ProgressTracker(on_change=print_step),
        poll_interval=args.poll_interval,
        max_wait=args.max_wait,
    )

    try:
        result = await client.create_opening(args.image, args.theme)
    except SubmissionError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2
    except Exception as e:
        log.error("Generation failed: %s", e)
        print(f"Error: {client.tracker.error or e}", file=sys.stderr)
        return 1

    summary = result.model_dump(exclude_none=True)
    if result.video_url and not args.no_download:
        output = Path(args.output) if args.output else default_output_path()
        await client.download_video(result.video_url, output)
        summary["saved_to"] = str(output)

    print(json.dumps(summary, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
