"""Domain modules for the companion reminder bot."""

from .base import NotificationSink, ProfileLookup

__all__ = ["NotificationSink", "ProfileLookup"]
