"""
What happens after an auction closes with a winner.

The winner confirms the purchase; winners who let the grace period pass
without confirming lose credits once and are blocked from bidding and
publishing until staff lift the block.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional
from uuid import UUID

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from apps.accounts.models import User
from apps.accounts.services import block_user
from apps.auctions.models import Auction, AuctionStatus
from apps.credits.models import MovementKind
from apps.credits.services import apply_capped_debit, retry_on_conflict, WriteConflictError
from apps.notifications.models import NotificationKind
from apps.notifications.services import notify_on_commit

from .exceptions import InvalidTransitionError, NotAuctionWinnerError
from .lifecycle import lock_auction

logger = logging.getLogger(__name__)


@retry_on_conflict
@transaction.atomic
def confirm_purchase(*, auction_id: UUID, user: User) -> Auction:
    """
    Record that the winner will complete the purchase.

    Staff may confirm on the winner's behalf. Confirming twice is a no-op.

    Raises:
        InvalidTransitionError: If the auction isn't finished with a winner
        NotAuctionWinnerError: If the user is neither the winner nor staff
    """
    auction = lock_auction(auction_id)

    if auction.status != AuctionStatus.FINISHED or auction.winner_id is None:
        raise InvalidTransitionError("Only a finished auction with a winner can be confirmed")
    if auction.winner_id != user.pk and not user.is_staff:
        raise NotAuctionWinnerError("Only the winner can confirm this purchase")

    if auction.purchase_confirmed:
        return auction

    auction.purchase_confirmed = True
    auction.save(update_fields=['purchase_confirmed', 'updated_at'])

    notify_on_commit(
        auction.seller_id,
        'Compra confirmada',
        f"El ganador confirmó la compra por ${auction.winning_bid:,}.",
        NotificationKind.PURCHASE_CONFIRMED,
    )
    logger.info("Purchase of auction %s confirmed", auction.id)
    return auction


@retry_on_conflict
@transaction.atomic
def _penalize_winner(auction_id: UUID, cutoff: datetime) -> bool:
    auction = lock_auction(auction_id)

    # Re-check under the lock: the winner may have confirmed meanwhile
    if (
        auction.status != AuctionStatus.FINISHED
        or auction.winner_id is None
        or auction.purchase_confirmed
        or auction.penalized
        or auction.finalized_at is None
        or auction.finalized_at > cutoff
    ):
        return False

    debited = apply_capped_debit(
        user_id=auction.winner_id,
        kind=MovementKind.PENALTY,
        amount=settings.AUCTION_PENALTY_CREDITS,
        description=f"Penalización por abandono de subasta {auction.id}",
    )

    auction.penalized = True
    auction.save(update_fields=['penalized', 'updated_at'])

    if settings.AUCTION_BLOCK_ON_ABANDON:
        block_user(user_id=auction.winner_id, reason='incumplimiento de subasta')

    notify_on_commit(
        auction.winner_id,
        'Penalización aplicada',
        f"No confirmaste la compra a tiempo. Se descontaron {debited} créditos.",
        NotificationKind.PENALTY_APPLIED,
    )
    logger.info(
        "Winner %s of auction %s penalized %d credit(s)",
        auction.winner_id, auction.id, debited
    )
    return True


def get_abandoned_auctions(*, now: Optional[datetime] = None):
    """
    Finished auctions whose winner let the grace period pass.

    The grace period runs from finalization, so an auction finalized late
    still leaves the winner the full period to confirm.
    """
    now = now or timezone.now()
    cutoff = now - timedelta(hours=settings.AUCTION_PURCHASE_GRACE_HOURS)
    return Auction.objects.filter(
        status=AuctionStatus.FINISHED,
        winner__isnull=False,
        purchase_confirmed=False,
        penalized=False,
        finalized_at__lte=cutoff,
    )


def penalize_abandoned_auctions(*, now: Optional[datetime] = None) -> int:
    """
    Penalize every winner who didn't confirm within the grace period.

    Each winner is penalized at most once per auction, never below a zero
    balance, and blocked in the same transaction.

    Returns:
        Number of penalized winners
    """
    now = now or timezone.now()
    cutoff = now - timedelta(hours=settings.AUCTION_PURCHASE_GRACE_HOURS)
    auction_ids = list(get_abandoned_auctions(now=now).values_list('id', flat=True))

    penalized = 0
    for auction_id in auction_ids:
        try:
            if _penalize_winner(auction_id, cutoff):
                penalized += 1
        except WriteConflictError:
            logger.warning("Penalty for auction %s left for the next pass", auction_id)

    return penalized
