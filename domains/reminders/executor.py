"""Fire reminders: deliver, then roll recurring ones forward or delete."""

from typing import TYPE_CHECKING

from logger import logger
from domains.base import NotificationSink
from .models import Reminder, next_occurrence, parse_recurrence

if TYPE_CHECKING:
    from .service import ReminderService


def format_notification(reminder: Reminder, profile: dict) -> str:
    """Build the notification text, personalized from the owner's profile.

    Args:
        reminder: The current reminder record
        profile: Owner profile (may be empty)

    Returns:
        Message text
    """
    lines = ["**Reminder**"]

    companion = profile.get("companionName")
    user_name = profile.get("userName")
    if companion and user_name:
        lines.append(f"Hey {user_name}, it's {companion} here!")
    elif companion:
        lines.append(f"Hey, it's {companion} here!")

    lines.append("")
    lines.append(f"> {reminder.text}")

    if reminder.is_recurring:
        lines.append(f"_This is your {parse_recurrence(reminder.recurrence).value} reminder._")

    return "\n".join(lines)


async def deliver(sink: NotificationSink, reminder: Reminder, profile: dict) -> bool:
    """Send a reminder through the sink. Failures are logged, never raised.

    Returns:
        True if the sink accepted the message
    """
    try:
        sent = await sink.send(reminder.owner_id, format_notification(reminder, profile))
    except Exception as e:
        logger.error(f"Failed to deliver reminder {reminder.owner_id}/{reminder.id}: {e}")
        return False

    if sent:
        logger.info(f"Fired reminder {reminder.owner_id}/{reminder.id}: {reminder.text}")
    else:
        logger.error(f"Sink rejected reminder {reminder.owner_id}/{reminder.id}")
    return bool(sent)


async def execute_reminder(service: "ReminderService", owner_id: str, reminder_id: str) -> None:
    """Fire a reminder. Called by the scheduler when its timer expires.

    Re-reads the record rather than trusting what was armed, delivers it,
    then either advances a recurring reminder's due time from its current
    due time and re-arms it, or deletes a one-off reminder. Delivery
    failure does not stop the rollover.

    Args:
        service: The reminder service owning store, scheduler and sink
        owner_id: Reminder owner
        reminder_id: The reminder ID
    """
    reminder = await service.store.get(owner_id, reminder_id)
    if reminder is None:
        logger.debug(f"Reminder {owner_id}/{reminder_id} was removed before it fired")
        return

    profile = await service.profiles.get_profile(owner_id)
    if profile is None:
        logger.info(f"No profile for {owner_id}, skipping reminder {reminder_id}")
        return

    await deliver(service.sink, reminder, profile)

    next_due = None
    async with service.store.transaction() as collection:
        owned = collection.get(owner_id, {})
        current = owned.get(reminder_id)
        if current is not None:
            next_due = next_occurrence(current.due_at, current.recurrence)
            if next_due is not None:
                current.due_at = next_due
            else:
                if current.recurrence and not current.is_recurring:
                    logger.warning(
                        f"Unknown recurrence '{current.recurrence}' on reminder "
                        f"{owner_id}/{reminder_id}, treating as one-off"
                    )
                del owned[reminder_id]

    if not service.store.last_write_ok:
        logger.error(f"Reminder {owner_id}/{reminder_id} fired but the store update was not saved")
        service.scheduler.disarm(owner_id, reminder_id)
        return

    if current is None:
        logger.debug(f"Reminder {owner_id}/{reminder_id} was removed during delivery")
        return

    if next_due is None:
        service.scheduler.disarm(owner_id, reminder_id)
        logger.info(f"Deleted one-off reminder {owner_id}/{reminder_id}")
    elif service.scheduler.rearm(owner_id, reminder_id, next_due, service.fire):
        logger.info(f"Rescheduled reminder {owner_id}/{reminder_id} to {next_due}")
    else:
        logger.warning(f"Reminder {owner_id}/{reminder_id} rolled over to past time {next_due}, not armed")
