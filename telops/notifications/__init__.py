"""Per-user notification rows for lifecycle events."""

from telops.notifications.dispatcher import NotificationDispatcher

__all__ = ["NotificationDispatcher"]
