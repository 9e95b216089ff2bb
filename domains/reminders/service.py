"""Reminder service: the one object that owns the store and the timer table."""

from datetime import datetime
from typing import Callable, Optional

from logger import logger
from domains.base import NotificationSink, ProfileLookup
from .executor import execute_reminder
from .models import Reminder, as_local, local_now, parse_recurrence
from .profiles import StaticProfileLookup
from .scheduler import ReminderScheduler
from .store import ReminderStore, new_reminder_id


class ReminderService:
    """Create, list, delete and fire reminders.

    Construct once per process and pass it to whatever needs reminders.
    Every store change goes through the store's single-flight lock; every
    armed timer has a matching, non-completed store record.
    """

    def __init__(
        self,
        store: ReminderStore,
        scheduler: ReminderScheduler,
        sink: NotificationSink,
        profiles: Optional[ProfileLookup] = None,
        clock: Callable[[], datetime] = local_now,
        fire_past_due: bool = False
    ):
        """
        Args:
            store: Durable reminder store
            scheduler: Timer table
            sink: Where notifications are sent
            profiles: Owner profile lookup (defaults to a blank profile for everyone)
            clock: Source of "now"
            fire_past_due: Fire reminders found past-due at startup instead of skipping them
        """
        self.store = store
        self.scheduler = scheduler
        self.sink = sink
        self.profiles = profiles or StaticProfileLookup()
        self._clock = clock
        self.fire_past_due = fire_past_due

    async def create_reminder(
        self,
        owner_id,
        text: str,
        when: datetime,
        recurrence: Optional[str] = None
    ) -> Optional[str]:
        """Persist a new reminder and arm it.

        Args:
            owner_id: Recipient/channel the reminder belongs to
            text: Message to deliver
            when: Due instant; must be in the future
            recurrence: None, "daily", "weekly" or "monthly"

        Returns:
            The new reminder ID, or None if it is not in the future or could not be saved

        Raises:
            ValueError: If recurrence is not a supported value
        """
        kind = parse_recurrence(recurrence)
        if recurrence is not None and kind is None:
            raise ValueError(f"Unsupported recurrence: {recurrence!r}")

        now = self._clock()
        due_at = as_local(when)
        if due_at <= now:
            logger.warning(f"Refusing reminder for {owner_id} due in the past ({due_at})")
            return None

        reminder = Reminder(
            id=new_reminder_id(now),
            owner_id=str(owner_id),
            text=text,
            due_at=due_at,
            created_at=now,
            recurrence=kind.value if kind else None,
        )

        if not await self.store.insert(reminder):
            logger.error(f"Failed to save reminder for {owner_id}: {text}")
            return None

        self.scheduler.arm(reminder.owner_id, reminder.id, reminder.due_at, self.fire)
        logger.info(f"Created reminder {reminder.owner_id}/{reminder.id}: '{text}' at {due_at}")
        return reminder.id

    async def list_reminders(self, owner_id) -> list[Reminder]:
        """Active reminders for an owner, soonest first."""
        return await self.store.list_for_owner(str(owner_id))

    async def get_reminder(self, owner_id, reminder_id: str) -> Optional[Reminder]:
        return await self.store.get(str(owner_id), reminder_id)

    async def delete_reminder(self, owner_id, reminder_id: str) -> bool:
        """Remove a reminder and cancel its timer.

        Returns:
            True if the reminder existed and its removal was saved
        """
        owner_id = str(owner_id)
        deleted = await self.store.delete(owner_id, reminder_id)
        self.scheduler.disarm(owner_id, reminder_id)
        if deleted:
            logger.info(f"Deleted reminder {owner_id}/{reminder_id}")
        return deleted

    async def recover(self) -> int:
        """Arm every pending reminder in the store. Call once at startup.

        Reminders already past due are skipped unless fire_past_due is set,
        in which case each is fired once, oldest first.

        Returns:
            Count of reminders armed
        """
        collection = await self.store.read_all()
        now = self._clock()
        armed = 0
        past_due: list[Reminder] = []

        for owned in collection.values():
            for reminder in owned.values():
                if reminder.completed:
                    continue
                if reminder.due_at <= now:
                    past_due.append(reminder)
                    continue
                if self.scheduler.arm(reminder.owner_id, reminder.id, reminder.due_at, self.fire):
                    armed += 1

        if past_due and self.fire_past_due:
            logger.info(f"Firing {len(past_due)} past-due reminder(s)")
            for reminder in sorted(past_due, key=lambda r: r.due_at):
                await self.fire(reminder.owner_id, reminder.id)
        elif past_due:
            for reminder in past_due:
                logger.warning(f"Skipping past reminder {reminder.owner_id}/{reminder.id}: was due {reminder.due_at}")

        logger.info(f"Recovered {armed} pending reminders (skipped {len(past_due)} past)")
        return armed

    async def fire(self, owner_id: str, reminder_id: str) -> None:
        """Timer callback: deliver and roll over or delete."""
        await execute_reminder(self, owner_id, reminder_id)
