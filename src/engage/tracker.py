"""EngageScheduleTracker — APScheduler jobs for recurring engage messages."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from src.config import settings
from src.engage.rules import build_trigger, create_schedule_rule

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Iterable, Iterator

    from apscheduler.job import Job

    from src.engage.models import EngageMessage
    from src.engage.store import EngageMessageStore

logger = logging.getLogger(__name__)


@dataclass
class ScheduleEntry:
    """A running job for one engage message."""

    id: str
    rule: str
    job: Job


class ScheduleRegistry:
    """In-memory list of live schedule entries, at most one per message id.

    Nothing here is persisted; ``EngageScheduleTracker.start()`` rebuilds it
    from the store after a restart.
    """

    def __init__(self) -> None:
        self._entries: list[ScheduleEntry] = []

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[ScheduleEntry]:
        return iter(list(self._entries))

    def __contains__(self, message_id: object) -> bool:
        return self.get(message_id) is not None  # type: ignore[arg-type]

    def ids(self) -> list[str]:
        return [entry.id for entry in self._entries]

    def get(self, message_id: str) -> ScheduleEntry | None:
        for entry in self._entries:
            if entry.id == message_id:
                return entry
        return None

    def add(self, entry: ScheduleEntry) -> None:
        if self.get(entry.id) is not None:
            msg = f"Engage message already scheduled: {entry.id}"
            raise ValueError(msg)
        self._entries.append(entry)

    def pop(self, message_id: str) -> ScheduleEntry | None:
        """Remove and return the entry for *message_id*, if any."""
        for index, entry in enumerate(self._entries):
            if entry.id == message_id:
                return self._entries.pop(index)
        return None

    def clear(self) -> list[ScheduleEntry]:
        """Drop every entry and return what was dropped."""
        entries, self._entries = self._entries, []
        return entries


class EngageScheduleTracker:
    """Keeps one APScheduler job per live recurring engage message.

    Args:
        store: Message store used for the startup load and re-fetch on update.
        send: Async callable invoked with the message on every firing.
        registry: Registry to populate (a fresh one by default).
        timezone: IANA timezone string (default from settings).
        auto_kinds: Message kinds loaded at startup (default from settings).
    """

    def __init__(
        self,
        store: EngageMessageStore,
        send: Callable[[EngageMessage], Awaitable[None]],
        registry: ScheduleRegistry | None = None,
        timezone: str | None = None,
        auto_kinds: Iterable[str] | None = None,
    ) -> None:
        self._store = store
        self._send = send
        self._registry = registry if registry is not None else ScheduleRegistry()
        self._timezone = timezone or settings.scheduler_timezone
        self._auto_kinds = (
            list(auto_kinds) if auto_kinds is not None else settings.get_engage_auto_kinds()
        )
        self._scheduler = AsyncIOScheduler(timezone=self._timezone)
        self._running = False
        self._inflight: set[asyncio.Task] = set()

    @property
    def running(self) -> bool:
        return self._running

    @property
    def registry(self) -> ScheduleRegistry:
        return self._registry

    # -- Lifecycle -------------------------------------------------------------

    async def start(self) -> None:
        """Schedule every live auto message from the store, then start the scheduler."""
        messages = await self._store.list_live_messages(self._auto_kinds)
        for message in messages:
            self.create_schedule(message)
        self._scheduler.start()
        self._running = True
        logger.info(
            "Engage scheduler started with %d schedule(s) from %d live message(s) (tz=%s)",
            len(self._registry),
            len(messages),
            self._timezone,
        )

    async def stop(self) -> None:
        """Remove all jobs, empty the registry and shut the scheduler down."""
        self._scheduler.remove_all_jobs()
        dropped = self._registry.clear()
        if self._running:
            self._scheduler.shutdown(wait=False)
            self._running = False
            logger.info("Engage scheduler stopped (%d schedule(s) dropped)", len(dropped))

    # -- Schedules -------------------------------------------------------------

    def create_schedule(self, message: EngageMessage) -> None:
        """Register a recurring job that sends *message* on its cron rule.

        A message that already has a job gets a fresh one in its place.
        """
        existing = self._registry.pop(message.id)
        if existing is not None:
            self._cancel(existing)

        rule = create_schedule_rule(message.schedule_date, self._timezone)
        try:
            trigger = build_trigger(rule, self._timezone)
        except ValueError:
            logger.exception(
                "Invalid schedule rule %r for engage message %s, not scheduled",
                rule,
                message.id,
            )
            return

        job = self._scheduler.add_job(
            self._fire,
            trigger=trigger,
            id=f"engage:{message.id}",
            name=message.title,
            args=[message],
            misfire_grace_time=None,
            replace_existing=True,
        )
        self._registry.add(ScheduleEntry(id=message.id, rule=rule, job=job))
        logger.info("Scheduled engage message: %s (%s) rule=%r", message.title, message.id, rule)

    async def update_or_remove_schedule(self, message_id: str, update: bool = False) -> None:
        """Cancel the job for *message_id* and, if *update*, rebuild it.

        Unknown ids are ignored.  On update the message is re-read from the
        store so a changed ``schedule_date`` takes effect.
        """
        entry = self._registry.pop(message_id)
        if entry is None:
            return

        self._cancel(entry)

        if not update:
            return

        message = await self._store.get_message(message_id)
        if message is None:
            logger.warning("Engage message %s vanished before rescheduling", message_id)
            return

        self.create_schedule(message)

    # -- Internal --------------------------------------------------------------

    def _cancel(self, entry: ScheduleEntry) -> None:
        try:
            entry.job.remove()
        except JobLookupError:
            logger.debug("Job for engage message %s already removed", entry.id)
        logger.info("Cancelled schedule for engage message %s", entry.id)

    async def _fire(self, message: EngageMessage) -> None:
        """Job callback. Starts the send in its own task and returns."""
        task = asyncio.create_task(self._send(message), name=f"engage-send:{message.id}")
        self._inflight.add(task)
        task.add_done_callback(self._on_send_done)

    def _on_send_done(self, task: asyncio.Task) -> None:
        self._inflight.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Engage send failed (%s)", task.get_name(), exc_info=exc)
