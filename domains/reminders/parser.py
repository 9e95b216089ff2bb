"""Parse free-text time expressions into concrete instants.

Each grammar is an independent matcher tried in a fixed order:

- "in 2 hours", "in 30 minutes", "in 3 days"
- "tomorrow at 9am", "tomorrow at 14:30"
- "today at 5pm" (None if that time has already passed)
- "3/15 at 2pm", "12/25/2025 at 8:30am" (None if in the past)
- an ISO-8601 timestamp such as "2025-06-01T09:00:00"

The first grammar that matches decides the result, even when the matched
time turns out to be unusable.
"""

import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from dateutil.parser import isoparse
from dateutil.tz import tzlocal

from .models import local_now

# "<H>[:<M>] [am|pm]", shared by every clock-time grammar
_CLOCK = r'(\d+)(?::(\d+))?\s*(am|pm)?'

RELATIVE_PATTERN = re.compile(r'in\s+(\d+)\s+(minute|minutes|hour|hours|day|days)', re.IGNORECASE)
TOMORROW_PATTERN = re.compile(r'tomorrow\s+at\s+' + _CLOCK, re.IGNORECASE)
TODAY_PATTERN = re.compile(r'today\s+at\s+' + _CLOCK, re.IGNORECASE)
DATE_PATTERN = re.compile(r'(\d{1,2})/(\d{1,2})(?:/(\d{4}))?\s+at\s+' + _CLOCK, re.IGNORECASE)


@dataclass
class TimeMatch:
    """A grammar matched. `when` is None when the matched time is unusable."""
    when: Optional[datetime]


def _parse_clock(hour_str: str, minute_str: Optional[str], meridiem: Optional[str]) -> Optional[tuple[int, int]]:
    """Normalize a 12/24-hour clock reading to (hour, minute).

    Returns:
        (hour, minute) in 24-hour time, or None if out of range
    """
    hour = int(hour_str)
    minute = int(minute_str) if minute_str else 0

    if meridiem:
        meridiem = meridiem.lower()
        if meridiem == 'pm' and hour < 12:
            hour += 12
        elif meridiem == 'am' and hour == 12:
            hour = 0

    if hour > 23 or minute > 59:
        return None
    return hour, minute


def _localize(wall_clock: datetime, now: datetime) -> datetime:
    """Attach now's zone to a naive wall-clock reading.

    The host's own fixed offset (what `astimezone()` returns, e.g. GMT or
    CET) means host-local time, so the reading gets the local zone rules and
    the DST offset of its own date rather than now's. Any other zone, UTC
    included, is kept as is.
    """
    tz = now.tzinfo
    if tz is None:
        return wall_clock
    if isinstance(tz, timezone):
        host = now.astimezone().tzinfo
        if tz.utcoffset(None) == host.utcoffset(None) and tz.tzname(None) == host.tzname(None):
            return wall_clock.replace(tzinfo=tzlocal())
    return wall_clock.replace(tzinfo=tz)


def _on_day(now: datetime, days: int, clock: Optional[tuple[int, int]]) -> Optional[datetime]:
    """Clock time on the local calendar day `days` after now's."""
    if clock is None:
        return None
    hour, minute = clock
    day = now.replace(tzinfo=None) + timedelta(days=days)
    return _localize(day.replace(hour=hour, minute=minute, second=0, microsecond=0), now)


def match_relative(text: str, now: datetime) -> Optional[TimeMatch]:
    match = RELATIVE_PATTERN.search(text)
    if not match:
        return None

    amount = int(match.group(1))
    unit = match.group(2).lower().rstrip('s') + 's'
    try:
        delta = timedelta(**{unit: amount})
        if now.tzinfo is None:
            return TimeMatch(now + delta)
        # Elapsed time, not wall-clock time, across a DST change
        return TimeMatch((now.astimezone(timezone.utc) + delta).astimezone(now.tzinfo))
    except OverflowError:
        return TimeMatch(None)


def match_tomorrow(text: str, now: datetime) -> Optional[TimeMatch]:
    match = TOMORROW_PATTERN.search(text)
    if not match:
        return None
    return TimeMatch(_on_day(now, 1, _parse_clock(*match.groups())))


def match_today(text: str, now: datetime) -> Optional[TimeMatch]:
    match = TODAY_PATTERN.search(text)
    if not match:
        return None

    when = _on_day(now, 0, _parse_clock(*match.groups()))
    # Never roll a passed slot over to tomorrow
    if when is None or when <= now:
        return TimeMatch(None)
    return TimeMatch(when)


def match_date(text: str, now: datetime) -> Optional[TimeMatch]:
    match = DATE_PATTERN.search(text)
    if not match:
        return None

    month, day, year = match.group(1), match.group(2), match.group(3)
    clock = _parse_clock(match.group(4), match.group(5), match.group(6))
    if clock is None:
        return TimeMatch(None)

    try:
        when = _localize(datetime(
            int(year) if year else now.year,
            int(month),
            int(day),
            clock[0],
            clock[1],
        ), now)
    except ValueError:
        return TimeMatch(None)

    if when <= now:
        return TimeMatch(None)
    return TimeMatch(when)


def match_timestamp(text: str, now: datetime) -> Optional[TimeMatch]:
    try:
        when = isoparse(text.strip())
    except (ValueError, OverflowError):
        return None

    # Line the result up with now so callers can compare the two
    if when.tzinfo is None and now.tzinfo is not None:
        when = _localize(when, now)
    elif when.tzinfo is not None and now.tzinfo is None:
        when = when.astimezone().replace(tzinfo=None)
    return TimeMatch(when)


# Precedence order: first match wins
TIME_MATCHERS: tuple[Callable[[str, datetime], Optional[TimeMatch]], ...] = (
    match_relative,
    match_tomorrow,
    match_today,
    match_date,
    match_timestamp,
)


def parse_time_expression(text: str, now: datetime = None) -> Optional[datetime]:
    """Parse a time expression into an absolute instant.

    Never raises; anything unparseable gives None.

    Args:
        text: Time expression, e.g. "tomorrow at 3pm"
        now: Reference time (defaults to the current local time). The result
            carries the same tzinfo.

    Returns:
        The instant, or None if the text is unparseable or names a past time
    """
    if not text or not text.strip():
        return None

    now = now or local_now()
    for matcher in TIME_MATCHERS:
        match = matcher(text, now)
        if match is not None:
            return match.when
    return None
