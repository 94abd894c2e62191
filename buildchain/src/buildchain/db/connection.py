"""Database connection helpers."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

import psycopg


@contextmanager
def connect(dsn: str, *, read_only: bool = False) -> Iterator[psycopg.Connection]:
    """Open a connection; ``read_only`` sessions reject any write to the host mirror."""

    conn = psycopg.connect(dsn)
    conn.read_only = read_only
    try:
        yield conn
    finally:
        conn.close()
