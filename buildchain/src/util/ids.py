"""Identifier helpers: sanitised build names and upstream identifiers."""

from __future__ import annotations

import hashlib
import re
from typing import Final

_UNSAFE_RE: Final[re.Pattern[str]] = re.compile(r"[^\w.-]+")
_DASH_RUN_RE: Final[re.Pattern[str]] = re.compile(r"-{2,}")
_FALLBACK_HASH_LEN: Final[int] = 8


def sanitize_build_name(name: str) -> str:
    """Make a project full name safe to use as an identifier token.

    Path separators, whitespace and punctuation other than ``.``, ``_`` and
    ``-`` become ``-``; letters and digits of any script are kept. Runs of
    ``-`` collapse and leading/trailing ``-`` are stripped. A name with nothing
    left maps to a short SHA-256 prefix of the original so it stays stable.
    """

    cleaned = _UNSAFE_RE.sub("-", name)
    cleaned = _DASH_RUN_RE.sub("-", cleaned).strip("-")
    if cleaned:
        return cleaned
    return hashlib.sha256(name.encode("utf-8")).hexdigest()[:_FALLBACK_HASH_LEN]


def format_upstream_identifier(full_name: str, number: int) -> str:
    """Format ``<sanitised full name>-<build number>``."""

    return f"{sanitize_build_name(full_name)}-{number}"


__all__ = [
    "format_upstream_identifier",
    "sanitize_build_name",
]
