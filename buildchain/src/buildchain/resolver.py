"""Root-build resolution across upstream/downstream trigger chains."""

from __future__ import annotations

import logging
from typing import Iterator

from buildchain.model import CONFIG_SOURCES, Build
from buildchain.registry import BuildRegistry
from util.ids import format_upstream_identifier

logger = logging.getLogger(__name__)


def get_upstream_build(build: Build, registry: BuildRegistry) -> Build | None:
    """Return the build that triggered ``build``, or None when it cannot be resolved."""

    cause = build.upstream_cause
    if cause is None:
        return None

    upstream_project = registry.get_project(cause.upstream_project)
    if upstream_project is None:
        logger.debug("No project found answering for the name: %s", cause.upstream_project)
        return None

    upstream_build = registry.get_build(upstream_project, cause.upstream_build)
    if upstream_build is None:
        logger.debug(
            "No build with name: %s and number: %s",
            upstream_project.full_name,
            cause.upstream_build,
        )
    return upstream_build


def iter_upstream_builds(build: Build, registry: BuildRegistry) -> Iterator[Build]:
    """Yield the upstream builds of ``build``, nearest first."""

    seen = {(build.project.full_name, build.number)}
    parent = get_upstream_build(build, registry)
    while parent is not None:
        key = (parent.project.full_name, parent.number)
        if key in seen:
            logger.warning("Upstream cycle at %s; stopping walk", parent.display_name())
            return
        seen.add(key)
        yield parent
        parent = get_upstream_build(parent, registry)


def is_pass_identified_downstream(build: Build) -> bool:
    """Whether ``build``'s project passes its identifier to the builds it triggers."""

    for source in CONFIG_SOURCES:
        config = build.project.identifier_config(source)
        if config is not None:
            return config.pass_identified_downstream
    return False


def get_root_build(build: Build, registry: BuildRegistry) -> Build | None:
    """Return the root build which triggered ``build``.

    The root is the ancestor furthest from ``build`` whose project passes its
    identifier downstream. Without such an ancestor, ``build`` itself is the
    root if its own project passes the identifier; otherwise there is none.
    """

    root_build = None
    for parent in iter_upstream_builds(build, registry):
        if is_pass_identified_downstream(parent):
            root_build = parent
    if root_build is None and is_pass_identified_downstream(build):
        return build
    return root_build


def get_upstream_identifier(root_build: Build | None) -> str | None:
    if root_build is None:
        return None
    return format_upstream_identifier(root_build.project.full_name, root_build.number)


def resolve_upstream_identifier(build: Build, registry: BuildRegistry) -> str | None:
    return get_upstream_identifier(get_root_build(build, registry))


__all__ = [
    "get_root_build",
    "get_upstream_build",
    "get_upstream_identifier",
    "is_pass_identified_downstream",
    "iter_upstream_builds",
    "resolve_upstream_identifier",
]
