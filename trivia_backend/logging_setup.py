"""Logging configuration"""

import logging

from .config import Settings


def setup_logging(settings: Settings) -> None:
    """Configure the root logger for the trivia server."""
    level = getattr(logging, settings.log_level, logging.INFO)

    # force=True: uvicorn configures the root logger before we get here
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)

    logging.getLogger(__name__).info(f"Logging: {settings.log_level}")


__all__ = ["setup_logging"]
