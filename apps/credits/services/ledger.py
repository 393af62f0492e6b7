"""
Credit ledger service.

The only code allowed to change a ``CreditAccount.balance``. Every change
is a ``CreditMovement`` written in the same transaction as the balance,
under a row lock on the account, so concurrent debits serialize and the
balance always equals the sum of its movements.
"""

import logging
from uuid import UUID

from django.db import transaction, IntegrityError
from django.db.models import QuerySet, Sum

from apps.accounts.models import User
from apps.credits.catalog import get_credit_pack
from apps.credits.models import CreditAccount, CreditMovement, MovementKind
from apps.notifications.models import NotificationKind
from apps.notifications.services import notify_on_commit

from .concurrency import retry_on_conflict
from .exceptions import (
    AccountNotFoundError,
    InsufficientCreditsError,
    InvalidMovementError,
    LedgerIntegrityError,
    UnknownCreditPackError,
)

logger = logging.getLogger(__name__)

ADJUSTMENT_KINDS = (MovementKind.BONUS, MovementKind.ADMIN_ADJUSTMENT)


def _validate_movement(kind: str, amount: int) -> None:
    if kind not in MovementKind.values:
        raise InvalidMovementError(f"Unknown movement kind: {kind!r}")
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise InvalidMovementError("Movement amount must be an integer")
    if amount == 0:
        raise InvalidMovementError("Movement amount cannot be zero")


def _lock_account(user_id: UUID) -> CreditAccount:
    """Return the user's account locked for update, creating it on first use."""
    if not User.objects.filter(pk=user_id).exists():
        raise AccountNotFoundError(f"User with ID {user_id} not found")

    account, _ = CreditAccount.objects.get_or_create(user_id=user_id)
    return CreditAccount.objects.select_for_update().get(pk=account.pk)


@retry_on_conflict
@transaction.atomic
def apply_movement(*, user_id: UUID, kind: str, amount: int, description: str = '') -> int:
    """
    Apply a signed credit movement to the user's account.

    Args:
        user_id: Owner of the account
        kind: A ``MovementKind`` value
        amount: Signed, non-zero number of credits
        description: Human readable reason shown in the movement history

    Returns:
        The new balance

    Raises:
        InvalidMovementError: If kind or amount are invalid
        AccountNotFoundError: If the user doesn't exist
        InsufficientCreditsError: If a debit exceeds the current balance
        LedgerIntegrityError: If the database rejects the resulting balance
    """
    _validate_movement(kind, amount)

    account = _lock_account(user_id)
    new_balance = account.balance + amount

    if new_balance < 0:
        raise InsufficientCreditsError(balance=account.balance, required=-amount)

    CreditMovement.objects.create(
        account=account,
        kind=kind,
        amount=amount,
        description=description,
        resulting_balance=new_balance,
    )

    account.balance = new_balance
    try:
        with transaction.atomic():
            account.save(update_fields=['balance', 'updated_at'])
    except IntegrityError as e:
        logger.critical(
            "Balance constraint rejected %s %+d for user %s", kind, amount, user_id
        )
        raise LedgerIntegrityError(
            f"Account of user {user_id} would reach balance {new_balance}"
        ) from e

    logger.info(
        "Ledger %s %+d for user %s, balance %d", kind, amount, user_id, new_balance
    )
    return new_balance


def get_balance(*, user_id: UUID) -> int:
    """Return the committed balance, 0 for users without an account yet."""
    balance = (
        CreditAccount.objects
        .filter(user_id=user_id)
        .values_list('balance', flat=True)
        .first()
    )
    return balance or 0


def get_movements(*, user_id: UUID) -> QuerySet:
    """Return the user's movements, newest first."""
    return CreditMovement.objects.filter(account__user_id=user_id).order_by('-created_at', '-id')


@retry_on_conflict
@transaction.atomic
def purchase_credit_pack(*, user_id: UUID, pack_id: str) -> int:
    """
    Credit a pack from the catalogue to the user.

    Payment is simulated: the pack is credited immediately.

    Raises:
        UnknownCreditPackError: If the pack doesn't exist
    """
    pack = get_credit_pack(pack_id)
    if pack is None:
        raise UnknownCreditPackError(f"Credit pack {pack_id!r} does not exist")

    balance = apply_movement(
        user_id=user_id,
        kind=MovementKind.PURCHASE,
        amount=pack.credits,
        description=f"Compra paquete {pack.name} ({pack.credits} créditos)",
    )
    notify_on_commit(
        user_id,
        'Créditos agregados',
        f"Se agregaron {pack.credits} créditos a tu cuenta. Saldo: {balance}.",
        NotificationKind.CREDITS_ADDED,
    )
    return balance


@retry_on_conflict
@transaction.atomic
def adjust_balance(
    *,
    user_id: UUID,
    amount: int,
    description: str,
    kind: str = MovementKind.ADMIN_ADJUSTMENT
) -> int:
    """
    Operator adjustment of a user's balance.

    Only ``bonus`` and ``admin_adjustment`` movements are allowed here;
    the user is notified when credits are added.
    """
    if kind not in ADJUSTMENT_KINDS:
        raise InvalidMovementError(f"Adjustments cannot use kind {kind!r}")

    balance = apply_movement(
        user_id=user_id,
        kind=kind,
        amount=amount,
        description=description,
    )
    if amount > 0:
        notify_on_commit(
            user_id,
            'Créditos agregados',
            f"Se agregaron {amount} créditos a tu cuenta: {description}",
            NotificationKind.CREDITS_ADDED,
        )
    return balance


def audit_account(*, user_id: UUID) -> int:
    """
    Check the ledger invariants of one account.

    Returns:
        The verified balance

    Raises:
        LedgerIntegrityError: If the balance doesn't match its movements
    """
    try:
        account = CreditAccount.objects.get(user_id=user_id)
    except CreditAccount.DoesNotExist:
        return 0

    movements = CreditMovement.objects.filter(account=account)
    total = movements.aggregate(total=Sum('amount'))['total'] or 0
    last = movements.order_by('-created_at', '-id').first()
    last_balance = last.resulting_balance if last else 0

    if total != account.balance or last_balance != account.balance:
        logger.critical(
            "Ledger mismatch for user %s: balance %d, movements sum %d, last %d",
            user_id, account.balance, total, last_balance
        )
        raise LedgerIntegrityError(
            f"Account of user {user_id} has balance {account.balance} "
            f"but movements sum to {total}"
        )
    return account.balance


@retry_on_conflict
@transaction.atomic
def apply_capped_debit(*, user_id: UUID, kind: str, amount: int, description: str = '') -> int:
    """
    Debit up to ``amount`` credits, never more than the current balance.

    Used for penalties, which must not fail on a short balance.

    Returns:
        The number of credits actually debited (0 when the balance is empty)
    """
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        raise InvalidMovementError("Capped debit amount must be a positive integer")

    account = _lock_account(user_id)
    debited = min(amount, account.balance)
    if debited:
        apply_movement(user_id=user_id, kind=kind, amount=-debited, description=description)
    return debited
