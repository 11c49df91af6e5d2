"""Cron rules for recurring engage messages.

``create_schedule_rule`` turns a message's ``ScheduleDate`` into a five-field
cron expression::

    ┬    ┬    ┬    ┬    ┬
    │    │    │    │    └ day of week (0 - 7) (0 or 7 is Sun)
    │    │    │    └───── month (1 - 12)
    │    │    └────────── day of month (1 - 31)
    │    └─────────────── hour (0 - 23)
    └──────────────────── minute (0 - 59)

and ``build_trigger`` turns that expression into an APScheduler trigger.

An hour or minute of ``0`` reads the same as "not set" and becomes ``*``, so a
message scheduled for midnight or the top of the hour fires every hour or every
minute instead.  Callers rely on this, keep it.
"""

from __future__ import annotations

import logging
import zoneinfo
from datetime import datetime
from typing import TYPE_CHECKING, Any

from apscheduler.triggers.cron import CronTrigger

from src.engage.models import ScheduleDate

if TYPE_CHECKING:
    from datetime import tzinfo

logger = logging.getLogger(__name__)

WILDCARD = "*"

# Returned when there is nothing to build a rule from. Only four fields;
# build_trigger reads it as 23:45 every day.
FALLBACK_RULE = "* 45 23 * "
_FALLBACK_HOUR = 23
_FALLBACK_MINUTE = 45

_PERIOD_TYPES = ("month", "year")

# Cron weekday numbers (0 and 7 are Sunday). APScheduler counts from Monday.
_CRON_WEEKDAYS = ("sun", "mon", "tue", "wed", "thu", "fri", "sat", "sun")


def _parse_time(value: datetime | str | None, timezone: str | None) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        moment = value
    else:
        try:
            moment = datetime.fromisoformat(value)
        except (TypeError, ValueError):
            logger.warning("Ignoring unparseable schedule time: %r", value)
            return None
    if timezone and moment.tzinfo is not None:
        moment = moment.astimezone(zoneinfo.ZoneInfo(timezone))
    return moment


def create_schedule_rule(
    schedule_date: ScheduleDate | dict[str, Any] | None,
    timezone: str | None = None,
) -> str:
    """Compile a recurrence descriptor into a cron expression.

    Never raises: an absent descriptor, or one with neither ``type`` nor
    ``time``, yields ``FALLBACK_RULE``.  Aware ``time`` values are converted
    into *timezone* before the hour and minute are read.
    """
    if isinstance(schedule_date, dict):
        schedule_date = ScheduleDate.from_dict(schedule_date)

    if schedule_date is None or (not schedule_date.type and not schedule_date.time):
        return FALLBACK_RULE

    time = _parse_time(schedule_date.time, timezone)

    hour = (time.hour if time else 0) or WILDCARD
    minute = (time.minute if time else 0) or WILDCARD
    month = schedule_date.month or WILDCARD

    schedule_type = "" if schedule_date.type is None else str(schedule_date.type)
    day_of_week = WILDCARD
    day = WILDCARD

    # Single character means a day of the week [0-6]
    if len(schedule_type) == 1:
        day_of_week = schedule_type

    if schedule_type in _PERIOD_TYPES:
        day = schedule_date.day or WILDCARD

    return f"{minute} {hour} {day} {month} {day_of_week}"


def build_trigger(rule: str, timezone: str | tzinfo | None = None) -> CronTrigger:
    """Convert a cron expression from ``create_schedule_rule`` into a trigger.

    Raises:
        ValueError: If the rule is not ``FALLBACK_RULE`` and does not have
            exactly five single-space separated fields, or if APScheduler
            rejects one of the fields.
    """
    if rule == FALLBACK_RULE:
        logger.debug("No schedule given, using daily 23:45")
        return CronTrigger(hour=_FALLBACK_HOUR, minute=_FALLBACK_MINUTE, timezone=timezone)

    fields = rule.split(" ")
    if len(fields) != 5 or not all(fields):
        msg = f"Cron rule must have five fields: {rule!r}"
        raise ValueError(msg)

    minute, hour, day, month, day_of_week = fields
    if day_of_week.isdigit():
        index = int(day_of_week)
        if index >= len(_CRON_WEEKDAYS):
            msg = f"Day of week out of range in rule {rule!r}"
            raise ValueError(msg)
        day_of_week = _CRON_WEEKDAYS[index]

    return CronTrigger(
        minute=minute,
        hour=hour,
        day=day,
        month=month,
        day_of_week=day_of_week,
        timezone=timezone,
    )
