"""EngageMessageService — keeps stored messages and live schedules in step."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from src.engage.models import EngageMessage, make_message_id

if TYPE_CHECKING:
    from src.engage.store import EngageMessageStore
    from src.engage.tracker import EngageScheduleTracker

logger = logging.getLogger(__name__)


class EngageMessageService:
    """Message lifecycle operations that touch the scheduler.

    Args:
        store: EngageMessageStore for persistence.
        tracker: EngageScheduleTracker holding the live jobs.
    """

    def __init__(self, store: EngageMessageStore, tracker: EngageScheduleTracker) -> None:
        self._store = store
        self._tracker = tracker

    async def create_message(self, kind: str, title: str, **fields: Any) -> EngageMessage:
        """Build a message with a fresh id and add it."""
        message = EngageMessage(id=make_message_id(), kind=kind, title=title, **fields)
        return await self.add_message(message)

    async def add_message(self, message: EngageMessage) -> EngageMessage:
        """Persist a new message and schedule it if it is a live auto message."""
        await self._store.add_message(message)
        if message.is_auto and message.is_live:
            self._tracker.create_schedule(message)
        return message

    async def edit_message(self, message: EngageMessage) -> EngageMessage:
        """Save changes and rebuild the message's job from the stored record."""
        if not await self._store.update_message(message):
            msg = f"Engage message not found: {message.id}"
            raise ValueError(msg)
        await self._tracker.update_or_remove_schedule(message.id, update=True)
        return message

    async def remove_message(self, message_id: str) -> None:
        """Cancel the message's job and delete it."""
        await self._tracker.update_or_remove_schedule(message_id)
        if not await self._store.delete_message(message_id):
            msg = f"Engage message not found: {message_id}"
            raise ValueError(msg)

    async def set_live(self, message_id: str) -> EngageMessage:
        """Mark a message live and start its schedule if it is an auto message."""
        message = await self._get(message_id)
        await self._store.set_live(message_id, True)
        message.is_live = True
        if message.is_auto:
            self._tracker.create_schedule(message)
        return message

    async def set_pause(self, message_id: str) -> EngageMessage:
        """Take a message off air and cancel its schedule."""
        message = await self._get(message_id)
        await self._store.set_live(message_id, False)
        message.is_live = False
        await self._tracker.update_or_remove_schedule(message_id)
        return message

    async def _get(self, message_id: str) -> EngageMessage:
        message = await self._store.get_message(message_id)
        if message is None:
            msg = f"Engage message not found: {message_id}"
            raise ValueError(msg)
        return message
