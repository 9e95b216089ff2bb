"""Arm one-shot reminder wake-ups with APScheduler."""

from datetime import datetime
from itertools import count
from typing import Awaitable, Callable, Optional

from apscheduler.job import Job
from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.date import DateTrigger

from logger import logger
from .models import as_local, local_now

OnFire = Callable[[str, str], Awaitable]


class ReminderScheduler:
    """In-memory timer table: owner_id -> reminder_id -> APScheduler job.

    Timers are disposable; the store is the source of truth and a recovery
    pass can rebuild the table after a restart.
    """

    def __init__(
        self,
        scheduler: Optional[AsyncIOScheduler] = None,
        clock: Callable[[], datetime] = local_now
    ):
        """
        Args:
            scheduler: APScheduler instance to add jobs to (shared with the bot)
            clock: Source of "now" for the past-due check
        """
        self.scheduler = scheduler or AsyncIOScheduler()
        self._clock = clock
        self._timers: dict[str, dict[str, Job]] = {}
        self._arm_counter = count(1)

    @staticmethod
    def job_id(owner_id: str, reminder_id: str) -> str:
        return f"reminder:{owner_id}:{reminder_id}"

    def start(self) -> None:
        """Start the underlying scheduler (needs a running event loop)."""
        if not self.scheduler.running:
            self.scheduler.start()

    def shutdown(self) -> None:
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)

    def arm(self, owner_id: str, reminder_id: str, due_at: datetime, on_fire: OnFire) -> bool:
        """Register a one-shot wake-up that calls on_fire(owner_id, reminder_id).

        Arming an already-armed reminder replaces its timer.

        Args:
            owner_id: Reminder owner
            reminder_id: Reminder ID
            due_at: When to fire; must be strictly in the future
            on_fire: Coroutine function invoked exactly once at due_at

        Returns:
            False if due_at is not in the future (nothing armed)
        """
        due_at = as_local(due_at)
        if due_at <= self._clock():
            logger.warning(f"Not arming reminder {owner_id}/{reminder_id}: due {due_at} is not in the future")
            return False

        self.disarm(owner_id, reminder_id)

        job = self.scheduler.add_job(
            self._dispatch,
            trigger=DateTrigger(run_date=due_at),
            args=[owner_id, reminder_id, on_fire, next(self._arm_counter)],
            id=self.job_id(owner_id, reminder_id),
            name=f"reminder:{owner_id}:{reminder_id}",
            replace_existing=True,
            misfire_grace_time=None,
        )
        self._timers.setdefault(owner_id, {})[reminder_id] = job
        logger.info(f"Armed reminder {owner_id}/{reminder_id} for {due_at}")
        return True

    def disarm(self, owner_id: str, reminder_id: str) -> bool:
        """Cancel a pending wake-up. No-op if none is armed.

        Returns:
            True if a timer was cancelled
        """
        job = self._pop(owner_id, reminder_id)
        if job is None:
            return False

        try:
            self.scheduler.remove_job(job.id)
        except JobLookupError:
            pass  # already fired
        logger.debug(f"Disarmed reminder {owner_id}/{reminder_id}")
        return True

    def rearm(self, owner_id: str, reminder_id: str, due_at: datetime, on_fire: OnFire) -> bool:
        """Disarm then arm; used on recurrence rollover and edits."""
        self.disarm(owner_id, reminder_id)
        return self.arm(owner_id, reminder_id, due_at, on_fire)

    def is_armed(self, owner_id: str, reminder_id: str) -> bool:
        return reminder_id in self._timers.get(owner_id, {})

    def armed_at(self, owner_id: str, reminder_id: str) -> Optional[datetime]:
        """The instant a reminder is armed for, or None if not armed."""
        job = self._timers.get(owner_id, {}).get(reminder_id)
        return job.trigger.run_date if job else None

    def armed_count(self, owner_id: Optional[str] = None) -> int:
        if owner_id is not None:
            return len(self._timers.get(owner_id, {}))
        return sum(len(owned) for owned in self._timers.values())

    def _pop(self, owner_id: str, reminder_id: str) -> Optional[Job]:
        owned = self._timers.get(owner_id)
        if not owned:
            return None
        job = owned.pop(reminder_id, None)
        if not owned:
            del self._timers[owner_id]
        return job

    async def _dispatch(self, owner_id: str, reminder_id: str, on_fire: OnFire, arm_seq: int) -> None:
        # Only drop the table entry if it still belongs to this arm
        current = self._timers.get(owner_id, {}).get(reminder_id)
        if current is not None and current.args[-1] == arm_seq:
            self._pop(owner_id, reminder_id)
        await on_fire(owner_id, reminder_id)
