from __future__ import annotations

import logging

import pytest

from buildchain.model import Build, IdentifierConfig, OtherCause, Project, UpstreamCause
from buildchain.registry import InMemoryBuildRegistry
from buildchain.resolver import (
    get_root_build,
    get_upstream_build,
    get_upstream_identifier,
    is_pass_identified_downstream,
    iter_upstream_builds,
    resolve_upstream_identifier,
)


def _project(full_name: str, passes: bool | None = None, source: str = "redeploy_publisher") -> Project:
    configs: tuple[IdentifierConfig, ...] = ()
    if passes is not None:
        configs = (IdentifierConfig(source=source, pass_identified_downstream=passes),)
    return Project(full_name=full_name, identifier_configs=configs)


def _triggered_by(build: Build) -> tuple[UpstreamCause, ...]:
    return (UpstreamCause(upstream_project=build.project.full_name, upstream_build=build.number),)


@pytest.fixture
def registry() -> InMemoryBuildRegistry:
    return InMemoryBuildRegistry()


def _chain(
    registry: InMemoryBuildRegistry, *, a: bool, b: bool, c: bool = False
) -> tuple[Build, Build, Build]:
    """Build A triggers B, which triggers C."""

    build_a = registry.add_build(
        Build(_project("pipeline/a", a), 3, (OtherCause("Started by user admin"),))
    )
    build_b = registry.add_build(Build(_project("pipeline/b", b), 17, _triggered_by(build_a)))
    build_c = registry.add_build(Build(_project("pipeline/c", c), 8, _triggered_by(build_b)))
    return build_a, build_b, build_c


def test_lone_build_without_flag_has_no_root(registry: InMemoryBuildRegistry) -> None:
    build = registry.add_build(Build(_project("solo", False), 1))

    assert get_root_build(build, registry) is None


def test_lone_build_with_flag_is_its_own_root(registry: InMemoryBuildRegistry) -> None:
    build = registry.add_build(Build(_project("solo", True), 1))

    assert get_root_build(build, registry) is build


def test_only_top_of_chain_flagged(registry: InMemoryBuildRegistry) -> None:
    build_a, _, build_c = _chain(registry, a=True, b=False)

    assert get_root_build(build_c, registry) is build_a


def test_furthest_flagged_ancestor_wins(registry: InMemoryBuildRegistry) -> None:
    build_a, _, build_c = _chain(registry, a=True, b=True)

    assert get_root_build(build_c, registry) is build_a


def test_flagged_ancestor_beats_flagged_self(registry: InMemoryBuildRegistry) -> None:
    _, build_b, build_c = _chain(registry, a=False, b=True, c=True)

    assert get_root_build(build_c, registry) is build_b


def test_unflagged_chain_falls_back_to_flagged_self(registry: InMemoryBuildRegistry) -> None:
    _, _, build_c = _chain(registry, a=False, b=False, c=True)

    assert get_root_build(build_c, registry) is build_c


def test_missing_upstream_project_ends_walk(
    registry: InMemoryBuildRegistry, caplog: pytest.LogCaptureFixture
) -> None:
    build_b = registry.add_build(
        Build(_project("pipeline/b", True), 17, (UpstreamCause("deleted/job", 5),))
    )
    build_c = registry.add_build(Build(_project("pipeline/c", False), 8, _triggered_by(build_b)))

    with caplog.at_level(logging.DEBUG, logger="buildchain.resolver"):
        assert get_root_build(build_c, registry) is build_b

    assert "No project found answering for the name: deleted/job" in caplog.text


def test_missing_upstream_build_ends_walk(
    registry: InMemoryBuildRegistry, caplog: pytest.LogCaptureFixture
) -> None:
    registry.add_project(_project("pipeline/a", True))
    build_b = registry.add_build(
        Build(_project("pipeline/b", False), 17, (UpstreamCause("pipeline/a", 99),))
    )

    with caplog.at_level(logging.DEBUG, logger="buildchain.resolver"):
        assert get_upstream_build(build_b, registry) is None
        assert get_root_build(build_b, registry) is None

    assert "No build with name: pipeline/a and number: 99" in caplog.text


def test_folder_is_not_a_buildable_upstream(registry: InMemoryBuildRegistry) -> None:
    registry.add_project(Project(full_name="pipeline", item_type="folder"))
    build = registry.add_build(Build(_project("pipeline/b", True), 1, (UpstreamCause("pipeline", 1),)))

    assert get_upstream_build(build, registry) is None
    assert get_root_build(build, registry) is build


def test_first_upstream_cause_is_followed(registry: InMemoryBuildRegistry) -> None:
    first = registry.add_build(Build(_project("first", True), 1))
    registry.add_build(Build(_project("second", True), 1))
    build = registry.add_build(
        Build(
            _project("child", False),
            4,
            (
                OtherCause("Started by timer"),
                UpstreamCause("first", 1),
                UpstreamCause("second", 1),
            ),
        )
    )

    assert list(iter_upstream_builds(build, registry)) == [first]


def test_chain_is_listed_nearest_first(registry: InMemoryBuildRegistry) -> None:
    build_a, build_b, build_c = _chain(registry, a=False, b=False)

    assert list(iter_upstream_builds(build_c, registry)) == [build_b, build_a]


def test_cycle_stops_walk(registry: InMemoryBuildRegistry, caplog: pytest.LogCaptureFixture) -> None:
    loop_a = Build(_project("loop/a", True), 1, (UpstreamCause("loop/b", 1),))
    loop_b = Build(_project("loop/b", False), 1, (UpstreamCause("loop/a", 1),))
    registry.add_build(loop_a)
    registry.add_build(loop_b)

    with caplog.at_level(logging.WARNING, logger="buildchain.resolver"):
        assert list(iter_upstream_builds(loop_a, registry)) == [loop_b]
        assert get_root_build(loop_b, registry) is loop_a

    assert "Upstream cycle" in caplog.text


@pytest.mark.parametrize("source", ["redeploy_publisher", "gradle_wrapper", "generic_wrapper"])
def test_each_config_source_carries_the_flag(source: str) -> None:
    assert is_pass_identified_downstream(Build(_project("job", True, source), 1))
    assert not is_pass_identified_downstream(Build(_project("job", False, source), 1))


def test_unconfigured_project_does_not_pass_identifier() -> None:
    assert not is_pass_identified_downstream(Build(_project("job"), 1))


def test_publisher_takes_priority_over_wrappers() -> None:
    project = Project(
        full_name="job",
        identifier_configs=(
            IdentifierConfig("generic_wrapper", True),
            IdentifierConfig("redeploy_publisher", False),
        ),
    )

    assert not is_pass_identified_downstream(Build(project, 1))


def test_gradle_wrapper_takes_priority_over_generic_wrapper() -> None:
    project = Project(
        full_name="job",
        identifier_configs=(
            IdentifierConfig("generic_wrapper", False),
            IdentifierConfig("gradle_wrapper", True),
        ),
    )

    assert is_pass_identified_downstream(Build(project, 1))


def test_upstream_identifier_of_root() -> None:
    assert get_upstream_identifier(Build(_project("folder/job", True), 42)) == "folder-job-42"
    assert get_upstream_identifier(None) is None


def test_resolve_upstream_identifier_uses_root(registry: InMemoryBuildRegistry) -> None:
    _, _, build_c = _chain(registry, a=True, b=False)

    assert resolve_upstream_identifier(build_c, registry) == "pipeline-a-3"


def test_resolve_upstream_identifier_without_root(registry: InMemoryBuildRegistry) -> None:
    _, _, build_c = _chain(registry, a=False, b=False)

    assert resolve_upstream_identifier(build_c, registry) is None


def test_non_ascii_root_project_yields_identifier(registry: InMemoryBuildRegistry) -> None:
    root = registry.add_build(Build(_project("デプロイ", True), 42))
    child = registry.add_build(Build(_project("Équipe/job", False), 3, _triggered_by(root)))

    assert resolve_upstream_identifier(child, registry) == "デプロイ-42"
    assert get_upstream_identifier(Build(_project("Équipe/job", True), 7)) == "Équipe-job-7"
