"""
Bounded retry of transient write conflicts.

Deadlocks, serialization failures and a locked SQLite database all
surface as ``OperationalError``. The decorated operation is re-run in a
fresh transaction a limited number of times before giving up with
``WriteConflictError``.
"""

import functools
import logging
import time

from django.conf import settings
from django.db import transaction, OperationalError

from .exceptions import WriteConflictError

logger = logging.getLogger(__name__)


def retry_on_conflict(func):
    """
    Retry ``func`` on ``OperationalError`` with exponential backoff.

    Must wrap the outermost ``transaction.atomic`` of the operation. When
    called inside an outer atomic block the error propagates unchanged;
    only the owner of the outer transaction can safely re-run it.
    """

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        if transaction.get_connection().in_atomic_block:
            return func(*args, **kwargs)

        max_retries = settings.CREDITS_WRITE_MAX_RETRIES
        backoff = settings.CREDITS_WRITE_RETRY_BACKOFF

        for attempt in range(max_retries + 1):
            try:
                return func(*args, **kwargs)
            except OperationalError as e:
                if attempt == max_retries:
                    logger.error(
                        "%s gave up after %d attempts: %s",
                        func.__name__, attempt + 1, e
                    )
                    raise WriteConflictError(
                        "The operation conflicted with a concurrent write, please retry"
                    ) from e
                delay = backoff * (2 ** attempt)
                logger.warning(
                    "%s hit a write conflict (attempt %d/%d), retrying in %.2fs: %s",
                    func.__name__, attempt + 1, max_retries + 1, delay, e
                )
                time.sleep(delay)

    return wrapper
