"""Reminder records and recurrence arithmetic."""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from dateutil.parser import isoparse
from dateutil.relativedelta import relativedelta
from dateutil.tz import tzlocal


class Recurrence(str, Enum):
    """Supported recurrence kinds. A reminder without one fires once."""
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


# Calendar offset added to the local wall-clock due time on rollover.
# relativedelta clamps Jan 31 + 1 month to the last day of February.
RECURRENCE_OFFSETS = {
    Recurrence.DAILY: relativedelta(days=1),
    Recurrence.WEEKLY: relativedelta(days=7),
    Recurrence.MONTHLY: relativedelta(months=1),
}


def local_now() -> datetime:
    """Current time in the host's local zone, with its DST rules attached."""
    return datetime.now(tzlocal())


def as_local(value: datetime) -> datetime:
    """Return an aware local-time datetime. Naive values are read as local wall-clock time."""
    return value.astimezone()


def parse_recurrence(value) -> Optional[Recurrence]:
    """Map a stored recurrence value to a Recurrence, or None if absent or unrecognized."""
    if value is None:
        return None
    if isinstance(value, Recurrence):
        return value
    try:
        return Recurrence(str(value).lower())
    except ValueError:
        return None


def next_occurrence(due_at: datetime, recurrence) -> Optional[datetime]:
    """Compute the next due instant for a recurring reminder.

    The offset is applied to the local wall-clock reading of due_at, so a
    daily 09:00 reminder stays at 09:00 across DST changes.

    Args:
        due_at: The current due instant (not "now")
        recurrence: Recurrence kind or raw stored value

    Returns:
        The next due instant, or None if the reminder does not recur
    """
    kind = parse_recurrence(recurrence)
    if kind is None:
        return None
    wall_clock = as_local(due_at).replace(tzinfo=None)
    return (wall_clock + RECURRENCE_OFFSETS[kind]).astimezone()


def _to_iso(value: datetime) -> str:
    return as_local(value).astimezone(timezone.utc).isoformat()


def _from_iso(value: str) -> datetime:
    return as_local(isoparse(value))


@dataclass
class Reminder:
    """A single reminder owned by a user or channel."""
    id: str
    owner_id: str
    text: str
    due_at: datetime
    created_at: datetime
    completed: bool = False
    recurrence: Optional[str] = None  # raw value; unknown values survive a load/save

    @property
    def is_recurring(self) -> bool:
        return parse_recurrence(self.recurrence) is not None

    def to_record(self) -> dict:
        """Serialize to the persisted record layout (owner and id are the enclosing keys)."""
        return {
            "text": self.text,
            "dueAt": _to_iso(self.due_at),
            "createdAt": _to_iso(self.created_at),
            "completed": self.completed,
            "recurrence": self.recurrence,
        }

    @classmethod
    def from_record(cls, owner_id: str, reminder_id: str, record: dict) -> "Reminder":
        """Build a Reminder from a persisted record.

        Also accepts the older layout that used `time`, `created` and
        `recurring` keys.

        Raises:
            KeyError, TypeError, ValueError: If the record is malformed
        """
        due_raw = record.get("dueAt") or record["time"]
        created_raw = record.get("createdAt") or record.get("created") or due_raw
        recurrence = record.get("recurrence", record.get("recurring"))
        return cls(
            id=str(reminder_id),
            owner_id=str(owner_id),
            text=str(record["text"]),
            due_at=_from_iso(due_raw),
            created_at=_from_iso(created_raw),
            completed=bool(record.get("completed", False)),
            recurrence=recurrence or None,
        )
