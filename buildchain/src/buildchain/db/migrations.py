"""SQL migration runner for the build registry schema."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List

import psycopg

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Migration:
    version: str
    path: Path


def discover_migrations(migrations_dir: Path) -> List[Migration]:
    """Return sorted migration files based on numeric filename prefix."""

    migrations: List[Migration] = []
    for path in sorted(migrations_dir.glob("*.sql")):
        version = path.stem.split("_", 1)[0]
        migrations.append(Migration(version=version, path=path))
    return migrations


def apply_migrations(dsn: str, migrations_dir: Path) -> int:
    """Apply unapplied migrations in filename order. Returns the number applied."""

    migrations = discover_migrations(migrations_dir)
    applied_count = 0

    with psycopg.connect(dsn) as conn:
        with conn.cursor() as cur:
            cur.execute("CREATE SCHEMA IF NOT EXISTS meta")
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS meta.schema_migration (
                    version text PRIMARY KEY,
                    applied_at timestamptz NOT NULL DEFAULT now()
                )
                """
            )
            cur.execute("SELECT version FROM meta.schema_migration")
            applied_versions = {row[0] for row in cur.fetchall()}

            for migration in migrations:
                if migration.version in applied_versions:
                    continue
                logger.info("Applying migration %s", migration.path.name)
                cur.execute(migration.path.read_text(encoding="utf-8"))
                cur.execute(
                    "INSERT INTO meta.schema_migration (version) VALUES (%s)",
                    (migration.version,),
                )
                applied_count += 1

    return applied_count
