"""Logging setup for the buildchain CLI."""

from __future__ import annotations

import logging
import sys

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def configure_logging(level: str) -> None:
    """Send log records to stderr so stdout stays machine-readable JSON."""

    name = level.upper()
    if name not in LOG_LEVELS:
        raise ValueError(f"Unknown log level: {level}")
    logging.basicConfig(
        level=getattr(logging, name),
        format=LOG_FORMAT,
        stream=sys.stderr,
        force=True,
    )
