"""
Account blocking.

A winner who abandons a purchase is blocked from bidding and publishing
until staff lift the block.
"""

import logging
from uuid import UUID

from django.db import transaction

from apps.accounts.models import User
from apps.notifications.models import NotificationKind
from apps.notifications.services import notify_on_commit

from .exceptions import UserNotFoundError

logger = logging.getLogger(__name__)


def is_blocked(user) -> bool:
    """Return whether the user is blocked. Accepts a User or a user id."""
    user_id = user.pk if isinstance(user, User) else user
    return User.objects.filter(pk=user_id, blocked=True).exists()


def _lock_user(user_id: UUID) -> User:
    try:
        return User.objects.select_for_update().get(pk=user_id)
    except User.DoesNotExist:
        raise UserNotFoundError(f"User with ID {user_id} not found")


@transaction.atomic
def block_user(*, user_id: UUID, reason: str = 'incumplimiento de las normas de uso') -> User:
    """
    Block a user and tell them why.

    Blocking an already blocked user changes nothing and sends nothing.

    Raises:
        UserNotFoundError: If the user doesn't exist
    """
    user = _lock_user(user_id)
    if user.blocked:
        return user

    user.mark_blocked()
    notify_on_commit(
        user.id,
        'Cuenta bloqueada',
        f"Tu cuenta ha sido bloqueada por {reason}. Para más información, contacta al soporte.",
        NotificationKind.ACCOUNT_BLOCKED,
    )
    logger.info("User %s blocked: %s", user.id, reason)
    return user


@transaction.atomic
def unblock_user(*, user_id: UUID) -> User:
    """
    Lift a block.

    Raises:
        UserNotFoundError: If the user doesn't exist
    """
    user = _lock_user(user_id)
    if user.blocked:
        user.blocked = False
        user.blocked_at = None
        user.save(update_fields=['blocked', 'blocked_at'])
        logger.info("User %s unblocked", user.id)
    return user
