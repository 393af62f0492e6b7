"""
Fire-and-forget notification dispatch.

Callers never learn whether a notification was stored: a failure here
is logged and dropped so it cannot undo a committed bid or finalization.
"""

import logging
from uuid import UUID

from django.db import transaction, DatabaseError

from apps.notifications.models import Notification

from .exceptions import NotificationNotFoundError

logger = logging.getLogger(__name__)


def notify(user_id: UUID, title: str, message: str, kind: str) -> None:
    """Store an in-app notification for the user."""
    try:
        Notification.objects.create(
            user_id=user_id,
            title=title,
            message=message,
            kind=kind,
        )
    except DatabaseError:
        logger.exception("Failed to notify user %s (%s)", user_id, kind)


def notify_on_commit(user_id: UUID, title: str, message: str, kind: str) -> None:
    """
    Schedule ``notify`` for after the current transaction commits.

    Nothing is sent when the transaction rolls back. Outside a transaction
    the notification is sent immediately.
    """
    transaction.on_commit(lambda: notify(user_id, title, message, kind))


def mark_read(*, notification_id: int, user) -> Notification:
    """
    Mark one of the user's notifications as read.

    Raises:
        NotificationNotFoundError: If it doesn't exist or belongs to someone else
    """
    try:
        notification = Notification.objects.get(id=notification_id, user=user)
    except Notification.DoesNotExist:
        raise NotificationNotFoundError(f"Notification {notification_id} not found")

    if not notification.is_read:
        notification.is_read = True
        notification.save(update_fields=['is_read'])
    return notification
