"""
Bid placement.

Validation, the credit debit, the bid row and any deadline extension
commit as one transaction under the auction row lock. A bid that loses a
race is re-validated against the winner's committed amount, never against
what it read before the lock.
"""

import logging
from datetime import timedelta
from typing import Optional
from uuid import UUID

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from apps.accounts.models import User
from apps.accounts.services import is_blocked, is_verified
from apps.auctions.models import Auction, AuctionStatus, Bid
from apps.credits.models import MovementKind
from apps.credits.services import apply_movement, retry_on_conflict
from apps.notifications.models import NotificationKind
from apps.notifications.services import notify_on_commit

from .exceptions import (
    AccountBlockedError,
    AuctionNotActiveError,
    BidExceedsMaxError,
    BidTooLowError,
    NotVerifiedError,
)
from .lifecycle import lock_auction
from .results import BidPlacement

logger = logging.getLogger(__name__)


def hold_amount_for(amount: int) -> int:
    """Guarantee stored with a bid, rounded half up."""
    return (amount * settings.AUCTION_HOLD_PERCENT + 50) // 100


def get_top_bid(auction: Auction) -> Optional[Bid]:
    """Current leader: highest amount, earliest bid on ties."""
    return auction.bids.order_by('-amount', 'created_at').first()


def get_minimum_bid(auction: Auction) -> int:
    """Smallest amount the next bid must reach."""
    top = get_top_bid(auction)
    leader = max(top.amount, auction.start_price) if top else auction.start_price
    return leader + auction.min_increment


@retry_on_conflict
@transaction.atomic
def place_bid(*, auction_id: UUID, bidder: User, amount: int) -> BidPlacement:
    """
    Place a bid, paying one credit for it.

    A bid accepted less than the extension window before the deadline
    moves the deadline to acceptance time plus the window.

    Returns:
        BidPlacement with the stored bid and the resulting end date

    Raises:
        AuctionNotFoundError: If the auction doesn't exist
        AuctionNotActiveError: If the auction is not active or has ended
        NotVerifiedError: If the bidder hasn't passed identity review
        AccountBlockedError: If the bidder is blocked
        BidTooLowError: If below the current leader plus the increment
        BidExceedsMaxError: If above the platform ceiling
        InsufficientCreditsError: If the bidder can't pay for the bid
    """
    auction = lock_auction(auction_id)
    now = timezone.now()

    if auction.status != AuctionStatus.ACTIVE or auction.has_ended(now):
        raise AuctionNotActiveError("Auction is not accepting bids")

    if not is_verified(bidder):
        raise NotVerifiedError("Identity verification is required to bid")

    if is_blocked(bidder):
        raise AccountBlockedError("Blocked accounts can't bid")

    minimum = get_minimum_bid(auction)
    if amount < minimum:
        raise BidTooLowError(amount=amount, minimum=minimum)

    maximum = settings.AUCTION_MAX_BID_AMOUNT
    if amount > maximum:
        raise BidExceedsMaxError(amount=amount, maximum=maximum)

    apply_movement(
        user_id=bidder.id,
        kind=MovementKind.BID,
        amount=-settings.AUCTION_BID_CREDIT_COST,
        description=f"Puja de ${amount:,} en subasta {auction.id}",
    )

    bid = Bid.objects.create(
        auction=auction,
        bidder=bidder,
        amount=amount,
        hold_amount=hold_amount_for(amount),
        created_at=now,
    )

    extended = False
    window = timedelta(seconds=settings.AUCTION_EXTENSION_WINDOW_SECONDS)
    if auction.end_date - now < window:
        new_end = max(auction.end_date, now + window)
        if new_end > auction.end_date:
            auction.end_date = new_end
            auction.save(update_fields=['end_date', 'updated_at'])
            extended = True
            logger.info("Auction %s extended to %s", auction.id, new_end.isoformat())

    notify_on_commit(
        auction.seller_id,
        'Nueva oferta',
        f"Tu subasta recibió una oferta de ${amount:,}.",
        NotificationKind.BID_RECEIVED,
    )
    logger.info("Bid %s of %d accepted on auction %s", bid.id, amount, auction.id)

    return BidPlacement(bid=bid, end_date=auction.end_date, extended=extended)
