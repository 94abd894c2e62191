"""Runtime configuration for buildchain."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from buildchain.logs import LOG_LEVELS

logger = logging.getLogger(__name__)

DEFAULT_LOG_LEVEL = "WARNING"


def default_dsn() -> str:
    return os.getenv("BUILDCHAIN_DSN", "dbname=buildchain")


def default_log_level() -> str:
    value = os.getenv("BUILDCHAIN_LOG_LEVEL", DEFAULT_LOG_LEVEL).strip().upper()
    if value not in LOG_LEVELS:
        logger.warning(
            "Ignoring BUILDCHAIN_LOG_LEVEL=%s; using %s", value, DEFAULT_LOG_LEVEL
        )
        return DEFAULT_LOG_LEVEL
    return value


def repo_root() -> Path:
    return Path(__file__).resolve().parents[3]


def migrations_dir() -> Path:
    return repo_root() / "buildchain" / "sql" / "migrations"
