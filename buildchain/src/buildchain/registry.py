"""Project/build lookup backends for the upstream resolver."""

from __future__ import annotations

from typing import Protocol

import psycopg

from buildchain.model import (
    Build,
    Cause,
    IdentifierConfig,
    OtherCause,
    Project,
    UpstreamCause,
)


class RegistryError(RuntimeError):
    """Raised when a requested build is not present in the registry."""


class BuildRegistry(Protocol):
    def get_project(self, full_name: str) -> Project | None:
        """Return the buildable project with this full name, or None."""

    def get_build(self, project: Project, number: int) -> Build | None:
        """Return build ``number`` of ``project``, or None."""


class InMemoryBuildRegistry:
    """Registry over an in-memory snapshot of the host index."""

    def __init__(self) -> None:
        self._projects: dict[str, Project] = {}
        self._builds: dict[tuple[str, int], Build] = {}

    def add_project(self, project: Project) -> Project:
        self._projects[project.full_name] = project
        return project

    def add_build(self, build: Build) -> Build:
        if build.project.full_name not in self._projects:
            self.add_project(build.project)
        self._builds[(build.project.full_name, build.number)] = build
        return build

    def get_project(self, full_name: str) -> Project | None:
        project = self._projects.get(full_name)
        if project is None or not project.buildable:
            return None
        return project

    def get_build(self, project: Project, number: int) -> Build | None:
        return self._builds.get((project.full_name, number))

    def __len__(self) -> int:
        return len(self._builds)


class PgBuildRegistry:
    """Registry over the host index mirrored into the ``ci`` schema."""

    def __init__(self, conn: psycopg.Connection) -> None:
        self._conn = conn

    def get_project(self, full_name: str) -> Project | None:
        with self._conn.cursor() as cur:
            cur.execute(
                "SELECT item_type FROM ci.project WHERE full_name = %s",
                (full_name,),
            )
            row = cur.fetchone()
            if row is None:
                return None
            item_type = row[0]
            cur.execute(
                """
                SELECT source, pass_identified_downstream
                FROM ci.project_identifier_config
                WHERE project_full_name = %s
                ORDER BY source
                """,
                (full_name,),
            )
            configs = tuple(
                IdentifierConfig(source=source, pass_identified_downstream=bool(flag))
                for source, flag in cur.fetchall()
            )

        project = Project(full_name=full_name, item_type=item_type, identifier_configs=configs)
        if not project.buildable:
            return None
        return project

    def get_build(self, project: Project, number: int) -> Build | None:
        with self._conn.cursor() as cur:
            cur.execute(
                "SELECT 1 FROM ci.build WHERE project_full_name = %s AND number = %s",
                (project.full_name, number),
            )
            if cur.fetchone() is None:
                return None
            cur.execute(
                """
                SELECT cause_type, upstream_project, upstream_build, description
                FROM ci.build_cause
                WHERE project_full_name = %s AND build_number = %s
                ORDER BY ordinal
                """,
                (project.full_name, number),
            )
            causes = tuple(_cause_from_row(row) for row in cur.fetchall())

        return Build(project=project, number=number, causes=causes)


def _cause_from_row(row: tuple) -> Cause:
    cause_type, upstream_project, upstream_build, description = row
    if cause_type == "upstream":
        return UpstreamCause(upstream_project=upstream_project, upstream_build=int(upstream_build))
    return OtherCause(description=description or cause_type)


def require_build(registry: BuildRegistry, full_name: str, number: int) -> Build:
    project = registry.get_project(full_name)
    if project is None:
        raise RegistryError(f"Unknown project: {full_name}")
    build = registry.get_build(project, number)
    if build is None:
        raise RegistryError(f"Unknown build: {full_name} #{number}")
    return build


__all__ = [
    "BuildRegistry",
    "InMemoryBuildRegistry",
    "PgBuildRegistry",
    "RegistryError",
    "require_build",
]
