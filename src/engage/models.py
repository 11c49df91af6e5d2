"""Engage message data model."""

from __future__ import annotations

import json
import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

KIND_AUTO = "auto"
KIND_VISITOR_AUTO = "visitorAuto"
KIND_MANUAL = "manual"

MESSAGE_KINDS = (KIND_AUTO, KIND_VISITOR_AUTO, KIND_MANUAL)
AUTO_KINDS = (KIND_AUTO, KIND_VISITOR_AUTO)


@dataclass
class ScheduleDate:
    """When a recurring engage message should go out.

    Attributes:
        type: Single-character cron weekday (``"0"``-``"6"``, Sunday is 0),
            ``"month"``, ``"year"``, or anything else for a daily send.
        time: Time of day as a datetime or ISO 8601 string.
        day: Day of the month, only read for ``"month"``/``"year"`` types.
        month: Month, copied into the cron rule as-is.
    """

    type: str | None = None
    time: datetime | str | None = None
    day: int | str | None = None
    month: int | str | None = None

    def to_dict(self) -> dict[str, Any]:
        time = self.time.isoformat() if isinstance(self.time, datetime) else self.time
        return {"type": self.type, "time": time, "day": self.day, "month": self.month}

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> ScheduleDate | None:
        if not data:
            return None
        return cls(
            type=data.get("type"),
            time=data.get("time"),
            day=data.get("day"),
            month=data.get("month"),
        )


@dataclass
class EngageMessage:
    """An outbound campaign message.

    Attributes:
        id: Unique identifier (UUID hex).
        kind: ``"auto"``, ``"visitorAuto"`` or ``"manual"``.
        title: Human-readable campaign name.
        method: Delivery method, ``"email"`` or ``"messenger"``.
        is_live: Whether the message is eligible for automatic sending.
        is_draft: Drafts are stored but never sent.
        schedule_date: Recurrence for auto messages.
        content: Payload handed to the delivery transport.
        created_at: ISO 8601 timestamp.
        last_sent_at: ISO 8601 timestamp of the last delivery.
    """

    id: str
    kind: str
    title: str
    method: str = "email"
    is_live: bool = False
    is_draft: bool = False
    schedule_date: ScheduleDate | None = None
    content: dict[str, Any] = field(default_factory=dict)
    created_at: str = ""
    last_sent_at: str | None = None

    def __post_init__(self) -> None:
        if self.kind not in MESSAGE_KINDS:
            msg = f"Unknown engage message kind: {self.kind}"
            raise ValueError(msg)
        if not self.created_at:
            self.created_at = datetime.now(UTC).isoformat()

    @property
    def is_auto(self) -> bool:
        return self.kind in AUTO_KINDS

    # -- Serialization ---------------------------------------------------------

    def to_row(self) -> tuple:
        """Serialize to a tuple matching the ``engage_messages`` column order."""
        schedule = json.dumps(self.schedule_date.to_dict()) if self.schedule_date else None
        return (
            self.id,
            self.kind,
            self.title,
            self.method,
            int(self.is_live),
            int(self.is_draft),
            schedule,
            json.dumps(self.content),
            self.created_at,
            self.last_sent_at,
        )

    @classmethod
    def from_row(cls, row: tuple) -> EngageMessage:
        """Deserialize from a database row tuple."""
        return cls(
            id=row[0],
            kind=row[1],
            title=row[2],
            method=row[3],
            is_live=bool(row[4]),
            is_draft=bool(row[5]),
            schedule_date=ScheduleDate.from_dict(json.loads(row[6])) if row[6] else None,
            content=json.loads(row[7]) if row[7] else {},
            created_at=row[8],
            last_sent_at=row[9],
        )


def make_message_id() -> str:
    """Generate a new message ID."""
    return uuid.uuid4().hex
