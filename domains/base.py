"""Interfaces for the collaborators the reminder domain talks to."""

from abc import ABC, abstractmethod
from typing import Optional


class NotificationSink(ABC):
    """Delivers notification text to an owner (channel or user)."""

    @abstractmethod
    async def send(self, owner_id: str, text: str) -> bool:
        """Send text to the owner.

        Returns:
            True if the transport accepted the message
        """
        pass


class ProfileLookup(ABC):
    """Read-only access to owner profiles."""

    @abstractmethod
    async def get_profile(self, owner_id: str) -> Optional[dict]:
        """Return the owner's profile, or None if the owner has none."""
        pass
