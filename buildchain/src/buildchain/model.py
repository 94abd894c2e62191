"""Read-only view of the CI host's project/build index."""

from __future__ import annotations

from dataclasses import dataclass, field

PROJECT_ITEM_TYPE = "project"

# Priority order for the mutually exclusive identifier configuration sources.
CONFIG_SOURCES: tuple[str, ...] = (
    "redeploy_publisher",
    "gradle_wrapper",
    "generic_wrapper",
)


@dataclass(frozen=True)
class IdentifierConfig:
    source: str
    pass_identified_downstream: bool = False


@dataclass(frozen=True)
class UpstreamCause:
    upstream_project: str
    upstream_build: int


@dataclass(frozen=True)
class OtherCause:
    description: str = ""


Cause = UpstreamCause | OtherCause


@dataclass(frozen=True)
class Project:
    full_name: str
    item_type: str = PROJECT_ITEM_TYPE
    identifier_configs: tuple[IdentifierConfig, ...] = ()

    @property
    def buildable(self) -> bool:
        return self.item_type == PROJECT_ITEM_TYPE

    def identifier_config(self, source: str) -> IdentifierConfig | None:
        for config in self.identifier_configs:
            if config.source == source:
                return config
        return None


@dataclass(frozen=True)
class Build:
    project: Project
    number: int
    causes: tuple[Cause, ...] = field(default=())

    @property
    def upstream_cause(self) -> UpstreamCause | None:
        """First upstream cause of this build, if it was triggered by another build."""

        for cause in self.causes:
            if isinstance(cause, UpstreamCause):
                return cause
        return None

    def display_name(self) -> str:
        return f"{self.project.full_name} #{self.number}"


__all__ = [
    "Build",
    "CONFIG_SOURCES",
    "Cause",
    "IdentifierConfig",
    "OtherCause",
    "PROJECT_ITEM_TYPE",
    "Project",
    "UpstreamCause",
]
