"""Parse reminder commands into text, instant and recurrence.

Examples:
- "/remind in 2 hours to call mom"
- "/remind tomorrow at 9am about the dentist"
- "/remind water the plants at today at 6pm daily"
- "/remind pay rent on 3/1 at 10am monthly"
"""

import re
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from config import REMINDER_COMMAND
from .models import Recurrence
from .parser import parse_time_expression

# Ordered: first matching suffix wins
RECURRENCE_SUFFIXES = [
    (re.compile(r'\s+daily$', re.IGNORECASE), Recurrence.DAILY),
    (re.compile(r'\s+every\s+day$', re.IGNORECASE), Recurrence.DAILY),
    (re.compile(r'\s+weekly$', re.IGNORECASE), Recurrence.WEEKLY),
    (re.compile(r'\s+every\s+week$', re.IGNORECASE), Recurrence.WEEKLY),
    (re.compile(r'\s+monthly$', re.IGNORECASE), Recurrence.MONTHLY),
    (re.compile(r'\s+every\s+month$', re.IGNORECASE), Recurrence.MONTHLY),
]

TIME_THEN_SUBJECT = re.compile(r'^(.*?)\s+(?:to|about)\s+(.*)$', re.IGNORECASE | re.DOTALL)
SUBJECT_THEN_TIME = re.compile(r'^(.*?)\s+(?:at|on)\s+(.*)$', re.IGNORECASE | re.DOTALL)


@dataclass
class ParsedCommand:
    """Parsed reminder command."""
    text: str
    when: datetime
    recurrence: Optional[Recurrence] = None


def _strip_command(text: str) -> str:
    return re.sub(rf'^{re.escape(REMINDER_COMMAND)}\s+', '', text.strip(), flags=re.IGNORECASE).strip()


def _split_recurrence(content: str) -> tuple[str, Optional[Recurrence]]:
    for pattern, recurrence in RECURRENCE_SUFFIXES:
        if pattern.search(content):
            return pattern.sub('', content).strip(), recurrence
    return content, None


def parse_reminder_command(text: str, now: datetime = None) -> Optional[ParsedCommand]:
    """Parse a reminder command.

    Tries "<time> to|about <subject>" first, then "<subject> at|on <time>".

    Args:
        text: Command text, with or without the leading command token
        now: Reference time passed to the time parser

    Returns:
        ParsedCommand, or None if no grammar yields a usable time and subject
    """
    if not text:
        return None

    content, recurrence = _split_recurrence(_strip_command(text))

    match = TIME_THEN_SUBJECT.match(content)
    if match:
        subject = match.group(2).strip()
        when = parse_time_expression(match.group(1).strip(), now)
        if when and subject:
            return ParsedCommand(text=subject, when=when, recurrence=recurrence)

    match = SUBJECT_THEN_TIME.match(content)
    if match:
        subject = match.group(1).strip()
        when = parse_time_expression(match.group(2).strip(), now)
        if when and subject:
            return ParsedCommand(text=subject, when=when, recurrence=recurrence)

    return None
