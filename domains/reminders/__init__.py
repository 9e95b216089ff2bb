"""Reminders: parse time expressions, persist reminders, fire and recur them.

Uses APScheduler date triggers with JSON-file persistence.
"""

from .models import Reminder, Recurrence, next_occurrence
from .parser import parse_time_expression
from .command import parse_reminder_command, ParsedCommand
from .store import ReminderStore
from .scheduler import ReminderScheduler
from .executor import execute_reminder, format_notification
from .service import ReminderService
from .profiles import JsonProfileLookup, StaticProfileLookup
from .handler import handle_reminder_intent

__all__ = [
    "Reminder",
    "Recurrence",
    "next_occurrence",
    "parse_time_expression",
    "parse_reminder_command",
    "ParsedCommand",
    "ReminderStore",
    "ReminderScheduler",
    "execute_reminder",
    "format_notification",
    "ReminderService",
    "JsonProfileLookup",
    "StaticProfileLookup",
    "handle_reminder_intent",
]
