"""Services for accounts business logic."""

from .exceptions import (
    AccountsServiceError,
    UserNotFoundError,
)
from .identity import is_verified, set_identity_verified
from .blocking import is_blocked, block_user, unblock_user

__all__ = [
    # Exceptions
    'AccountsServiceError',
    'UserNotFoundError',
    # Services
    'is_verified',
    'set_identity_verified',
    'is_blocked',
    'block_user',
    'unblock_user',
]
