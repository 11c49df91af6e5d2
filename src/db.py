"""Connections to the engage message database.

``libsql`` is synchronous; each statement runs on a worker thread via
``asyncio.to_thread()``.  The ``engage_messages`` schema is applied the first
time a given database is opened in this process.

Target, in order of precedence: an explicit path (tests), Turso when
``TURSO_DATABASE_URL`` is set, otherwise the local file at ``database_path``.
"""

from __future__ import annotations

import asyncio
import contextlib
from typing import TYPE_CHECKING, Any

import libsql

from src.config import settings

if TYPE_CHECKING:
    from collections.abc import AsyncIterator
    from pathlib import Path

ENGAGE_SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS engage_messages (
        id TEXT PRIMARY KEY,
        kind TEXT NOT NULL,
        title TEXT NOT NULL,
        method TEXT NOT NULL DEFAULT 'email',
        is_live INTEGER NOT NULL DEFAULT 0,
        is_draft INTEGER NOT NULL DEFAULT 0,
        schedule_date TEXT,
        content TEXT NOT NULL DEFAULT '{}',
        created_at TEXT NOT NULL,
        last_sent_at TEXT
    )
    """,
    # Startup load filters on these two columns
    "CREATE INDEX IF NOT EXISTS idx_engage_messages_live_kind "
    "ON engage_messages (is_live, kind)",
)

# Databases that already have ENGAGE_SCHEMA applied, keyed by path or URL.
_ready_targets: set[str] = set()


class EngageConnection:
    """One open engage database connection.

    Writes commit immediately and return the affected row count.
    """

    def __init__(self, conn: Any) -> None:
        self._conn = conn

    async def execute(self, sql: str, params: tuple = ()) -> int:
        def _run() -> int:
            cursor = self._conn.execute(sql, params)
            self._conn.commit()
            return cursor.rowcount

        return await asyncio.to_thread(_run)

    async def fetchone(self, sql: str, params: tuple = ()) -> tuple | None:
        return await asyncio.to_thread(lambda: self._conn.execute(sql, params).fetchone())

    async def fetchall(self, sql: str, params: tuple = ()) -> list[tuple]:
        return await asyncio.to_thread(lambda: self._conn.execute(sql, params).fetchall())

    async def close(self) -> None:
        await asyncio.to_thread(self._conn.close)


def _open_file(path: Path) -> tuple[str, Any]:
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = libsql.connect(str(path))
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA busy_timeout=5000")
    return str(path.resolve()), conn


def _open(local_path_override: Path | None) -> tuple[str, Any]:
    if local_path_override:
        return _open_file(local_path_override)
    if settings.turso_database_url:
        conn = libsql.connect(
            database=settings.turso_database_url,
            auth_token=settings.turso_auth_token,
        )
        return settings.turso_database_url, conn
    return _open_file(settings.database_path)


def _apply_schema(conn: Any) -> None:
    for statement in ENGAGE_SCHEMA:
        conn.execute(statement)
    conn.commit()


async def get_connection(local_path_override: Path | None = None) -> EngageConnection:
    """Open the engage database, creating its tables on first use."""
    target, conn = await asyncio.to_thread(_open, local_path_override)
    if target not in _ready_targets:
        await asyncio.to_thread(_apply_schema, conn)
        _ready_targets.add(target)
    return EngageConnection(conn)


@contextlib.asynccontextmanager
async def connect(local_path_override: Path | None = None) -> AsyncIterator[EngageConnection]:
    """``async with connect() as db:``, closing the connection on exit."""
    db = await get_connection(local_path_override)
    try:
        yield db
    finally:
        await db.close()
