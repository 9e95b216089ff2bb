"""JSON-file persistence for reminders.

The whole collection is read, mutated and written back on every change.
All access goes through one asyncio.Lock per store, so two mutations can
never interleave their read-modify-write cycles. One store per process;
two processes sharing a file will corrupt it.

Writes are not crash-atomic: a crash mid-write can lose the last write.
"""

import asyncio
import json
from contextlib import asynccontextmanager
from datetime import datetime
from pathlib import Path
from typing import AsyncIterator, Optional

from logger import logger
from .models import Reminder

# owner_id -> reminder_id -> Reminder
Collection = dict[str, dict[str, Reminder]]


class StoreReadError(Exception):
    """The store file exists but could not be read as a reminder collection."""


class ReminderStore:
    """Durable owner -> reminder-id -> record mapping."""

    def __init__(self, path: Path):
        self.path = Path(path)
        self._lock = asyncio.Lock()
        self.last_write_ok = True

    # ------------------------------------------------------------------
    # Whole-collection I/O
    # ------------------------------------------------------------------

    def _read(self) -> Collection:
        """Load the collection, creating an empty store if there is none.

        Raises:
            StoreReadError: If the file exists but is unreadable or not a JSON object
        """
        if not self.path.exists():
            if self._save({}):
                logger.info(f"Created reminder store at {self.path}")
            return {}

        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise StoreReadError(f"Failed to read reminder store {self.path}: {e}") from e

        if not isinstance(raw, dict):
            raise StoreReadError(f"Reminder store {self.path} is not an object")

        collection: Collection = {}
        for owner_id, records in raw.items():
            if not isinstance(records, dict):
                logger.warning(f"Skipping malformed reminders for owner {owner_id}")
                continue
            for reminder_id, record in records.items():
                try:
                    reminder = Reminder.from_record(owner_id, reminder_id, record)
                except (KeyError, TypeError, ValueError, AttributeError) as e:
                    logger.warning(f"Skipping malformed reminder {owner_id}/{reminder_id}: {e}")
                    continue
                collection.setdefault(reminder.owner_id, {})[reminder.id] = reminder
        return collection

    def _load(self) -> Collection:
        try:
            return self._read()
        except StoreReadError as e:
            logger.error(f"{e}, treating as empty")
            return {}

    @staticmethod
    def _document(collection: Collection) -> dict:
        return {
            owner_id: {rid: r.to_record() for rid, r in reminders.items()}
            for owner_id, reminders in collection.items()
            if reminders
        }

    def _save(self, collection: Collection) -> bool:
        document = self._document(collection)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(document, indent=2, ensure_ascii=False), encoding="utf-8")
            return True
        except (OSError, TypeError, ValueError) as e:
            logger.error(f"Failed to write reminder store {self.path}: {e}")
            return False

    async def read_all(self) -> Collection:
        """Load the full collection, creating an empty store on first use.

        An unreadable store is logged and treated as empty.
        """
        async with self._lock:
            return await asyncio.to_thread(self._load)

    async def write_all(self, collection: Collection) -> bool:
        """Replace the persisted collection.

        Returns:
            False if the write failed (memory and disk now disagree)
        """
        async with self._lock:
            return await asyncio.to_thread(self._save, collection)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[Collection]:
        """Serialized read-modify-write of the whole collection.

        The collection is written back when the block exits normally and has
        changed it; nothing is written if it raises. If the file cannot be
        read the block gets an empty throwaway collection and the file is
        left untouched, so one bad read never overwrites every owner's
        reminders. Check `self.last_write_ok` afterwards to see whether the
        block's changes reached disk.
        """
        async with self._lock:
            try:
                collection = await asyncio.to_thread(self._read)
            except StoreReadError as e:
                logger.error(f"{e}, not writing")
                yield {}
                self.last_write_ok = False
                return

            before = self._document(collection)
            yield collection
            if self._document(collection) == before:
                self.last_write_ok = True
            else:
                self.last_write_ok = await asyncio.to_thread(self._save, collection)

    # ------------------------------------------------------------------
    # Record-level helpers (each one a full transaction)
    # ------------------------------------------------------------------

    async def get(self, owner_id: str, reminder_id: str) -> Optional[Reminder]:
        """Fetch the current record, or None if it no longer exists."""
        collection = await self.read_all()
        return collection.get(owner_id, {}).get(reminder_id)

    async def insert(self, reminder: Reminder) -> bool:
        """Insert a new reminder, bumping its id until it is free for the owner.

        The reminder's id is updated in place.

        Returns:
            True if persisted
        """
        async with self.transaction() as collection:
            owned = collection.setdefault(reminder.owner_id, {})
            reminder.id = free_id(owned, reminder.id)
            owned[reminder.id] = reminder
        return self.last_write_ok

    async def update(self, reminder: Reminder) -> bool:
        """Overwrite an existing record. Returns False if it is gone or the write failed."""
        async with self.transaction() as collection:
            owned = collection.get(reminder.owner_id, {})
            if reminder.id not in owned:
                return False
            owned[reminder.id] = reminder
        return self.last_write_ok

    async def delete(self, owner_id: str, reminder_id: str) -> bool:
        """Remove a record. Returns True if it existed and the removal was persisted."""
        async with self.transaction() as collection:
            owned = collection.get(owner_id, {})
            if owned.pop(reminder_id, None) is None:
                return False
        return self.last_write_ok

    async def list_for_owner(self, owner_id: str) -> list[Reminder]:
        """Active reminders for an owner, soonest first."""
        collection = await self.read_all()
        active = [r for r in collection.get(owner_id, {}).values() if not r.completed]
        return sorted(active, key=lambda r: r.due_at)


def new_reminder_id(created_at: datetime) -> str:
    """Creation timestamp in milliseconds."""
    return str(int(created_at.timestamp() * 1000))


def free_id(owned: dict[str, Reminder], reminder_id: str) -> str:
    """Return reminder_id, or the next id after it not taken within the owner's set."""
    if reminder_id not in owned:
        return reminder_id

    if reminder_id.isdigit():
        candidate = int(reminder_id)
        while str(candidate) in owned:
            candidate += 1
        return str(candidate)

    suffix = 1
    while f"{reminder_id}-{suffix}" in owned:
        suffix += 1
    return f"{reminder_id}-{suffix}"
