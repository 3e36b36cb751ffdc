"""Logging configuration."""

from __future__ import annotations
import logging


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging for the API shell and CLI."""
    resolved = getattr(logging, str(level).upper(), logging.INFO)

    logging.basicConfig(
        level=resolved,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )

    # Every poll from every client is an access-log line
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
