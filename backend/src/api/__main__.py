"""Entry point for running the bookmarks web app."""

import logging
import os

import uvicorn

from core.config import get_settings


def main() -> None:
    """Configure logging and serve the app."""
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    host = os.getenv("HOST", "0.0.0.0")
    # PORT for PaaS platforms (Railway, Heroku, etc.)
    port = int(os.getenv("PORT") or "8000")

    uvicorn.run(
        "api.main:app",
        host=host,
        port=port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
