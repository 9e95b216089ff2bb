"""Reminder intent handler for chat messages."""

import re

from config import REMINDER_COMMAND
from logger import logger
from .command import parse_reminder_command
from .models import as_local
from .service import ReminderService

LIST_COMMANDS = ['/reminders', 'list reminders', 'show reminders', 'my reminders']
CANCEL_PREFIXES = ['/cancelreminder', 'cancel reminder']

USAGE = (
    "I couldn't work out when to remind you. Try:\n"
    f"- `{REMINDER_COMMAND} in 2 hours to call mom`\n"
    f"- `{REMINDER_COMMAND} tomorrow at 9am about the dentist`\n"
    f"- `{REMINDER_COMMAND} take vitamins at today at 8pm daily`\n"
    f"- `{REMINDER_COMMAND} pay rent on 3/1 at 10am monthly`"
)


def _format_when(when) -> str:
    return as_local(when).strftime('%a %d %b %H:%M')


async def handle_reminder_intent(content: str, owner_id, service: ReminderService) -> str | None:
    """Handle reminder-related messages.

    Args:
        content: Message content
        owner_id: Owner the reminders belong to (e.g. the channel ID)
        service: Reminder service

    Returns:
        Response string if handled, None if not a reminder message
    """
    content = content.strip()
    content_lower = content.lower()

    if content_lower in LIST_COMMANDS:
        return await _list_reminders(owner_id, service)

    for prefix in CANCEL_PREFIXES:
        if content_lower.startswith(prefix):
            reminder_id_partial = content[len(prefix):].strip()
            return await _cancel_reminder(owner_id, reminder_id_partial, service)

    if not re.match(rf'^{re.escape(REMINDER_COMMAND)}(\s|$)', content, re.IGNORECASE):
        return None

    parsed = parse_reminder_command(content)
    if not parsed:
        return USAGE

    try:
        reminder_id = await service.create_reminder(owner_id, parsed.text, parsed.when, parsed.recurrence)
    except ValueError as e:
        logger.error(f"Failed to add reminder: {e}")
        return f"Failed to set reminder: {e}"

    if not reminder_id:
        return "Failed to set reminder, please try again."

    lines = [f"**Reminder set for {_format_when(parsed.when)}**", "", f"> {parsed.text}"]
    if parsed.recurrence:
        lines.append(f"Repeats {parsed.recurrence.value}.")
    lines.append(f"`cancel reminder {reminder_id}`")
    return "\n".join(lines)


async def _list_reminders(owner_id, service: ReminderService) -> str:
    """List pending reminders for an owner."""
    reminders = await service.list_reminders(owner_id)

    if not reminders:
        return "No active reminders."

    lines = ["**Your reminders:**\n"]
    for i, r in enumerate(reminders, 1):
        repeat = f" ({r.recurrence})" if r.recurrence else ""
        lines.append(f"{i}. {_format_when(r.due_at)} - {r.text}{repeat}")
        lines.append(f"  `cancel reminder {r.id}`")

    return "\n".join(lines)


async def _cancel_reminder(owner_id, reminder_id_partial: str, service: ReminderService) -> str:
    """Cancel a reminder by exact ID or a unique ID suffix."""
    if not reminder_id_partial:
        return "Tell me which reminder to cancel. Use `list reminders` to see their IDs."

    reminders = await service.list_reminders(owner_id)
    matches = [r for r in reminders if r.id == reminder_id_partial]
    if not matches:
        matches = [r for r in reminders if r.id.endswith(reminder_id_partial)]

    if not matches:
        return "Reminder not found. Use `list reminders` to see your reminders."
    if len(matches) > 1:
        return "More than one reminder matches that ID, please use the full ID."

    reminder = matches[0]
    if await service.delete_reminder(owner_id, reminder.id):
        return f"Cancelled reminder: {reminder.text}"
    return "Failed to cancel reminder."
