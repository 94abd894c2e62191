"""CLI entrypoint for buildchain."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator

import psycopg

from buildchain.config import default_dsn, default_log_level, migrations_dir
from buildchain.db.connection import connect
from buildchain.db.migrations import apply_migrations
from buildchain.logs import LOG_LEVELS, configure_logging
from buildchain.manifest import ManifestError, load_build_graph
from buildchain.model import Build
from buildchain.registry import BuildRegistry, PgBuildRegistry, RegistryError, require_build
from buildchain.resolver import (
    get_root_build,
    get_upstream_identifier,
    is_pass_identified_downstream,
    iter_upstream_builds,
)

logger = logging.getLogger(__name__)


def _add_dsn_argument(container: Any) -> None:
    container.add_argument("--dsn", default=default_dsn(), help="PostgreSQL DSN")


def _add_build_arguments(parser: argparse.ArgumentParser) -> None:
    source = parser.add_mutually_exclusive_group()
    source.add_argument("--graph", type=Path, help="Build-graph snapshot JSON")
    _add_dsn_argument(source)
    parser.add_argument("--project", required=True, help="Full name of the build's project")
    parser.add_argument("--build", required=True, type=int, help="Build number")


def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="buildchain")
    parser.add_argument(
        "--log-level",
        default=default_log_level(),
        type=str.upper,
        choices=LOG_LEVELS,
        help="Log level for stderr diagnostics",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    db_parser = subparsers.add_parser("db", help="Database operations")
    db_subparsers = db_parser.add_subparsers(dest="db_command", required=True)
    migrate_parser = db_subparsers.add_parser("migrate", help="Apply SQL migrations")
    _add_dsn_argument(migrate_parser)

    root_parser = subparsers.add_parser("root", help="Resolve the root build and upstream identifier")
    _add_build_arguments(root_parser)

    chain_parser = subparsers.add_parser("chain", help="List the upstream chain of a build")
    _add_build_arguments(chain_parser)

    return parser


@contextmanager
def _open_registry(args: argparse.Namespace) -> Iterator[BuildRegistry]:
    if args.graph is not None:
        yield load_build_graph(args.graph)
        return
    with connect(args.dsn, read_only=True) as conn:
        yield PgBuildRegistry(conn)


def _build_payload(build: Build) -> dict[str, Any]:
    return {
        "project": build.project.full_name,
        "build": build.number,
        "pass_identified_downstream": is_pass_identified_downstream(build),
    }


def main(argv: list[str] | None = None) -> int:
    parser = _parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level)

    try:
        if args.command == "db" and args.db_command == "migrate":
            applied = apply_migrations(args.dsn, migrations_dir())
            print(json.dumps({"status": "ok", "migrations_applied": applied}))
            return 0

        if args.command == "root":
            with _open_registry(args) as registry:
                build = require_build(registry, args.project, args.build)
                root_build = get_root_build(build, registry)
            print(
                json.dumps(
                    {
                        "status": "ok",
                        "root_project": root_build.project.full_name if root_build else None,
                        "root_build": root_build.number if root_build else None,
                        "upstream_identifier": get_upstream_identifier(root_build),
                    }
                )
            )
            return 0

        if args.command == "chain":
            with _open_registry(args) as registry:
                build = require_build(registry, args.project, args.build)
                upstream = [_build_payload(parent) for parent in iter_upstream_builds(build, registry)]
            print(
                json.dumps(
                    {
                        "status": "ok",
                        "build": _build_payload(build),
                        "upstream": upstream,
                    }
                )
            )
            return 0

        parser.print_help(sys.stderr)
        return 2
    except (ManifestError, RegistryError, RuntimeError, psycopg.Error) as exc:
        logger.debug("Command failed", exc_info=True)
        print(json.dumps({"status": "error", "error": str(exc)}), file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
