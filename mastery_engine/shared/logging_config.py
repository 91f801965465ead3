"""Logging setup for the engine and its command line interface."""

import logging

from mastery_engine.shared.config import get_settings


def setup_logging(level: str | None = None) -> None:
    """Configure application logging.

    Sets up structured JSON-style lines for production
    and a human-readable format for development.

    Args:
        level: Optional level name overriding ``settings.log_level``
    """
    settings = get_settings()
    log_level = getattr(logging, (level or settings.log_level).upper(), logging.INFO)

    if settings.is_production:
        # JSON format for production (easier to parse in log aggregators)
        log_format = (
            '{"timestamp": "%(asctime)s", "level": "%(levelname)s", '
            '"logger": "%(name)s", "message": "%(message)s"}'
        )
    else:
        log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logging.basicConfig(
        level=log_level,
        format=log_format,
        datefmt="%Y-%m-%dT%H:%M:%S%z",
        force=True,
    )

    # Third-party loggers stay quiet unless something goes wrong
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)
