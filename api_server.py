"""API server entry point."""

from __future__ import annotations

import logging
import sys

import uvicorn

from anime_opener import config
from anime_opener.api.routes import create_app

# Setup logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    stream=sys.stderr,
)


def main() -> None:
    """Run the API server."""
    app = create_app()
    uvicorn.run(
        app,
        host=config.HOST,
        port=config.PORT,
        log_level="info",
    )


if __name__ == "__main__":
    main()
