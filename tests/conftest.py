"""Pytest configuration and fixtures."""

import os
import sys
import tempfile
from datetime import datetime, timedelta

# Keep log files out of the working tree; must run before config is imported
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="reminder-logs-"))

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
from unittest.mock import Mock, AsyncMock

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from domains.reminders.profiles import StaticProfileLookup
from domains.reminders.scheduler import ReminderScheduler
from domains.reminders.service import ReminderService
from domains.reminders.store import ReminderStore


def local(*args) -> datetime:
    """Aware datetime for a local wall-clock reading."""
    return datetime(*args).astimezone()


class FakeClock:
    """Settable clock shared by the service and the scheduler."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    """Clock frozen at 2024-01-10 08:00 local time."""
    return FakeClock(local(2024, 1, 10, 8, 0))


@pytest.fixture
def store(tmp_path):
    """Reminder store backed by a fresh temp file."""
    return ReminderStore(tmp_path / "reminders.json")


@pytest.fixture
def reminder_scheduler(clock):
    """Timer table on a scheduler that is never started, so jobs stay pending."""
    return ReminderScheduler(AsyncIOScheduler(), clock=clock)


@pytest.fixture
def mock_sink():
    """Notification sink that accepts everything."""
    sink = Mock()
    sink.send = AsyncMock(return_value=True)
    return sink


@pytest.fixture
def service(store, reminder_scheduler, mock_sink, clock):
    """Reminder service wired to temp storage and a mock sink."""
    return ReminderService(
        store=store,
        scheduler=reminder_scheduler,
        sink=mock_sink,
        profiles=StaticProfileLookup({"userName": "Sam", "companionName": "Nova"}),
        clock=clock,
    )
