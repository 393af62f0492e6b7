"""
Identity verification lookups.

The document review workflow lives outside this service; bidding only
consumes the outcome through ``is_verified``.
"""

from uuid import UUID

from django.db import transaction

from apps.accounts.models import User

from .exceptions import UserNotFoundError


def is_verified(user) -> bool:
    """
    Return whether the user passed identity verification.

    Accepts a User instance or a user id. The flag is always read from
    the database so a revocation applies to the very next bid.
    """
    user_id = user.pk if isinstance(user, User) else user
    return User.objects.filter(pk=user_id, identity_verified=True, is_active=True).exists()


@transaction.atomic
def set_identity_verified(*, user_id: UUID, verified: bool = True) -> User:
    """
    Record the outcome of an identity review.

    Raises:
        UserNotFoundError: If the user doesn't exist
    """
    try:
        user = User.objects.select_for_update().get(pk=user_id)
    except User.DoesNotExist:
        raise UserNotFoundError(f"User with ID {user_id} not found")

    if verified:
        user.mark_identity_verified()
    else:
        user.identity_verified = False
        user.identity_verified_at = None
        user.save(update_fields=['identity_verified', 'identity_verified_at'])
    return user
