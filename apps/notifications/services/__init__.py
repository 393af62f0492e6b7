"""Notification dispatch used by the credits and auctions services."""

from .exceptions import NotificationsServiceError, NotificationNotFoundError
from .dispatch import notify, notify_on_commit, mark_read

__all__ = [
    'NotificationsServiceError',
    'NotificationNotFoundError',
    'notify',
    'notify_on_commit',
    'mark_read',
]
