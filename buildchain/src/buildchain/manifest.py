"""Build-graph snapshot parsing and validation."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from buildchain.model import (
    CONFIG_SOURCES,
    PROJECT_ITEM_TYPE,
    Build,
    Cause,
    IdentifierConfig,
    OtherCause,
    Project,
    UpstreamCause,
)
from buildchain.registry import InMemoryBuildRegistry


class ManifestError(ValueError):
    """Raised when a build-graph snapshot is invalid."""


UPSTREAM_CAUSE_TYPE = "upstream"


def _load_json(path: Path) -> dict[str, Any]:
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise ManifestError(f"Snapshot file not found: {path}") from exc
    except OSError as exc:
        raise ManifestError(f"Cannot read snapshot {path}: {exc.strerror or exc}") from exc
    except UnicodeDecodeError as exc:
        raise ManifestError(f"Snapshot is not valid UTF-8: {path}") from exc
    except json.JSONDecodeError as exc:
        raise ManifestError(f"Invalid JSON snapshot: {path}") from exc
    if not isinstance(payload, dict):
        raise ManifestError(f"Snapshot root must be an object: {path}")
    return payload


def _require_string(payload: dict[str, Any], key: str) -> str:
    value = payload.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ManifestError(f"Snapshot field '{key}' must be a non-empty string")
    return value.strip()


def _require_build_number(payload: dict[str, Any], key: str) -> int:
    value = payload.get(key)
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ManifestError(f"Snapshot field '{key}' must be an integer >= 1")
    return value


def _parse_list(payload: dict[str, Any], key: str) -> list[Any]:
    value = payload.get(key, [])
    if not isinstance(value, list):
        raise ManifestError(f"Snapshot field '{key}' must be an array when present")
    return value


def _parse_identifier_config(entry: Any) -> IdentifierConfig:
    if not isinstance(entry, dict):
        raise ManifestError("Each identifier_configs[] entry must be an object")

    source = _require_string(entry, "source")
    if source not in CONFIG_SOURCES:
        raise ManifestError(f"Invalid identifier config source '{source}'")

    flag = entry.get("pass_identified_downstream", False)
    if not isinstance(flag, bool):
        raise ManifestError("identifier_configs[].pass_identified_downstream must be a boolean")

    return IdentifierConfig(source=source, pass_identified_downstream=flag)


def _parse_cause(entry: Any) -> Cause:
    if not isinstance(entry, dict):
        raise ManifestError("Each causes[] entry must be an object")

    cause_type = _require_string(entry, "type")
    if cause_type == UPSTREAM_CAUSE_TYPE:
        return UpstreamCause(
            upstream_project=_require_string(entry, "upstream_project"),
            upstream_build=_require_build_number(entry, "upstream_build"),
        )

    description = entry.get("description")
    if description is not None and not isinstance(description, str):
        raise ManifestError("causes[].description must be a string when present")
    return OtherCause(description=description or cause_type)


def _parse_project(entry: Any) -> tuple[Project, list[Any]]:
    if not isinstance(entry, dict):
        raise ManifestError("Each projects[] entry must be an object")

    full_name = _require_string(entry, "full_name")
    item_type = entry.get("item_type", PROJECT_ITEM_TYPE)
    if not isinstance(item_type, str) or not item_type.strip():
        raise ManifestError(f"projects[{full_name}].item_type must be a non-empty string")

    configs = tuple(
        _parse_identifier_config(item) for item in _parse_list(entry, "identifier_configs")
    )
    sources = [config.source for config in configs]
    if len(sources) != len(set(sources)):
        raise ManifestError(f"projects[{full_name}] repeats an identifier config source")

    project = Project(full_name=full_name, item_type=item_type.strip(), identifier_configs=configs)
    return project, _parse_list(entry, "builds")


def load_build_graph(path: Path) -> InMemoryBuildRegistry:
    """Load a build-graph snapshot into an in-memory registry."""

    payload = _load_json(path)

    projects_raw = payload.get("projects")
    if not isinstance(projects_raw, list):
        raise ManifestError("Snapshot projects must be an array")

    registry = InMemoryBuildRegistry()
    seen_projects: set[str] = set()
    for project_entry in projects_raw:
        project, builds_raw = _parse_project(project_entry)
        if project.full_name in seen_projects:
            raise ManifestError(f"Duplicate project in snapshot: {project.full_name}")
        seen_projects.add(project.full_name)
        registry.add_project(project)

        if builds_raw and not project.buildable:
            raise ManifestError(
                f"projects[{project.full_name}] of type '{project.item_type}' cannot have builds"
            )

        seen_numbers: set[int] = set()
        for build_entry in builds_raw:
            if not isinstance(build_entry, dict):
                raise ManifestError("Each builds[] entry must be an object")
            number = _require_build_number(build_entry, "number")
            if number in seen_numbers:
                raise ManifestError(f"Duplicate build {project.full_name} #{number}")
            seen_numbers.add(number)
            causes = tuple(_parse_cause(item) for item in _parse_list(build_entry, "causes"))
            registry.add_build(Build(project=project, number=number, causes=causes))

    return registry


__all__ = ["ManifestError", "load_build_graph"]
