"""Utility helpers for buildchain."""

from .ids import format_upstream_identifier, sanitize_build_name

__all__ = ["format_upstream_identifier", "sanitize_build_name"]
