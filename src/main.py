"""Engage scheduler entry point."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import signal
from typing import TYPE_CHECKING

from src.config import settings
from src.engage.sender import EngageSender
from src.engage.store import EngageMessageStore
from src.engage.tracker import EngageScheduleTracker

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from src.engage.models import EngageMessage

logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=getattr(logging, settings.log_level),
)
logger = logging.getLogger(__name__)


async def _log_delivery(message: EngageMessage) -> None:
    logger.info(
        "No delivery transport configured, engage message '%s' (%s) only logged",
        message.title,
        message.id,
    )


def build_tracker(
    deliver: Callable[[EngageMessage], Awaitable[None]] | None = None,
) -> EngageScheduleTracker:
    """Wire the store, sender and tracker together."""
    store = EngageMessageStore.get()
    sender = EngageSender(deliver=deliver or _log_delivery, store=store)
    return EngageScheduleTracker(store=store, send=sender.send)


async def run(tracker: EngageScheduleTracker, stop_event: asyncio.Event | None = None) -> None:
    """Bootstrap the tracker and keep it running until SIGINT/SIGTERM."""
    stop_event = stop_event or asyncio.Event()
    loop = asyncio.get_running_loop()
    signals = (signal.SIGINT, signal.SIGTERM)
    for sig in signals:
        with contextlib.suppress(NotImplementedError, RuntimeError):
            loop.add_signal_handler(sig, stop_event.set)

    await tracker.start()
    try:
        await stop_event.wait()
    finally:
        await tracker.stop()
        for sig in signals:
            with contextlib.suppress(NotImplementedError, RuntimeError):
                loop.remove_signal_handler(sig)


def main() -> None:
    """Start the engage scheduler."""
    logger.info(
        "Starting engage scheduler (tz=%s, kinds=%s)...",
        settings.scheduler_timezone,
        settings.get_engage_auto_kinds(),
    )
    asyncio.run(run(build_tracker()))


if __name__ == "__main__":
    main()
