"""EngageSender — hands a due engage message to the delivery transport."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from src.engage.models import EngageMessage
    from src.engage.store import EngageMessageStore

logger = logging.getLogger(__name__)


class EngageSender:
    """Sends engage messages when their schedule fires.

    Args:
        deliver: Async callable that actually delivers a message (email,
            messenger, ...).
        store: EngageMessageStore for updating last_sent_at.
    """

    def __init__(
        self,
        deliver: Callable[[EngageMessage], Awaitable[None]],
        store: EngageMessageStore,
    ) -> None:
        self._deliver = deliver
        self._store = store

    async def send(self, message: EngageMessage) -> None:
        """Deliver *message* and record the send time.

        Drafts are skipped. Delivery errors propagate to the caller.
        """
        if message.is_draft:
            logger.info("Skipping draft engage message: %s (%s)", message.title, message.id)
            return

        logger.info(
            "Sending engage message: '%s' (%s) method=%s",
            message.title,
            message.id,
            message.method,
        )
        await self._deliver(message)
        await self._store.update_last_sent(message.id)
