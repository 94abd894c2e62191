"""Resolve the root build of a CI trigger chain and its upstream identifier."""

from buildchain.resolver import (
    get_root_build,
    get_upstream_identifier,
    is_pass_identified_downstream,
    resolve_upstream_identifier,
)

__all__ = [
    "get_root_build",
    "get_upstream_identifier",
    "is_pass_identified_downstream",
    "resolve_upstream_identifier",
]
