"""Notification expiry, delivery and scheduling."""

from skillswap.notifications.scheduler import NotificationScheduler
from skillswap.notifications.service import NotificationService

__all__ = ["NotificationScheduler", "NotificationService"]
