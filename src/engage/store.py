"""EngageMessageStore — libsql persistence for engage messages."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from src.db import connect
from src.engage.models import EngageMessage

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path

logger = logging.getLogger(__name__)

_COLUMNS = (
    "id, kind, title, method, is_live, is_draft, schedule_date, content, "
    "created_at, last_sent_at"
)


class EngageMessageStore:
    """Persists engage messages in SQLite / Turso.

    Singleton accessed via ``EngageMessageStore.get()``.  Pass an explicit
    *db_path* for test isolation (e.g. ``tmp_path / "test.db"``).
    """

    _instance: EngageMessageStore | None = None

    def __init__(self, db_path: Path | None = None) -> None:
        self._db_path = db_path

    @classmethod
    def get(cls) -> EngageMessageStore:
        """Return the shared EngageMessageStore instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def _reset(cls) -> None:
        """Reset the singleton (for testing)."""
        cls._instance = None

    # -- Queries ---------------------------------------------------------------

    async def get_message(self, message_id: str) -> EngageMessage | None:
        """Fetch a message by ID, or None if not found."""
        async with connect(self._db_path) as db:
            row = await db.fetchone(
                f"SELECT {_COLUMNS} FROM engage_messages WHERE id = ?",  # noqa: S608
                (message_id,),
            )
        return EngageMessage.from_row(row) if row else None

    async def list_live_messages(self, kinds: Iterable[str]) -> list[EngageMessage]:
        """Return live messages whose kind is one of *kinds*."""
        kinds = list(kinds)
        if not kinds:
            return []
        placeholders = ", ".join("?" for _ in kinds)
        async with connect(self._db_path) as db:
            rows = await db.fetchall(
                f"SELECT {_COLUMNS} FROM engage_messages "  # noqa: S608
                f"WHERE is_live = 1 AND kind IN ({placeholders}) ORDER BY created_at",
                tuple(kinds),
            )
        return [EngageMessage.from_row(row) for row in rows]

    # -- Mutations -------------------------------------------------------------

    async def add_message(self, message: EngageMessage) -> EngageMessage:
        """Insert a new message. Returns the same message object."""
        async with connect(self._db_path) as db:
            await db.execute(
                f"INSERT INTO engage_messages ({_COLUMNS}) "  # noqa: S608
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                message.to_row(),
            )
        logger.info("Added engage message: %s (%s)", message.title, message.id)
        return message

    async def update_message(self, message: EngageMessage) -> bool:
        """Overwrite the editable fields of a stored message.

        ``created_at`` and ``last_sent_at`` are left untouched. Returns True if
        a row was updated.
        """
        row = message.to_row()
        async with connect(self._db_path) as db:
            updated = await db.execute(
                """
                UPDATE engage_messages
                SET kind = ?, title = ?, method = ?, is_live = ?, is_draft = ?,
                    schedule_date = ?, content = ?
                WHERE id = ?
                """,
                (*row[1:8], message.id),
            )
        return updated > 0

    async def set_live(self, message_id: str, live: bool) -> bool:
        """Flip the ``is_live`` flag. Returns True if a row was updated."""
        async with connect(self._db_path) as db:
            updated = await db.execute(
                "UPDATE engage_messages SET is_live = ? WHERE id = ?",
                (int(live), message_id),
            )
        if updated:
            logger.info("Engage message %s is_live=%s", message_id, live)
        return updated > 0

    async def delete_message(self, message_id: str) -> bool:
        """Delete a message. Returns True if a row was removed."""
        async with connect(self._db_path) as db:
            deleted = await db.execute(
                "DELETE FROM engage_messages WHERE id = ?", (message_id,)
            )
        if deleted:
            logger.info("Deleted engage message: %s", message_id)
        return deleted > 0

    async def update_last_sent(self, message_id: str, timestamp: str | None = None) -> None:
        """Set the last_sent_at timestamp (defaults to now UTC)."""
        ts = timestamp or datetime.now(UTC).isoformat()
        async with connect(self._db_path) as db:
            await db.execute(
                "UPDATE engage_messages SET last_sent_at = ? WHERE id = ?",
                (ts, message_id),
            )
