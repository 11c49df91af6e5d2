"""Recurring engage messages: models, persistence, cron rules and scheduling."""

from src.engage.models import EngageMessage, ScheduleDate
from src.engage.rules import build_trigger, create_schedule_rule
from src.engage.sender import EngageSender
from src.engage.service import EngageMessageService
from src.engage.store import EngageMessageStore
from src.engage.tracker import EngageScheduleTracker, ScheduleEntry, ScheduleRegistry

__all__ = [
    "EngageMessage",
    "ScheduleDate",
    "EngageMessageStore",
    "EngageSender",
    "EngageScheduleTracker",
    "EngageMessageService",
    "ScheduleEntry",
    "ScheduleRegistry",
    "build_trigger",
    "create_schedule_rule",
]
