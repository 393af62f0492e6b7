"""
Auction finalization.

Finalizing is idempotent: the first call under the row lock moves the
auction to ``finished`` and records the winner in one write; any later
call sees ``finished`` and returns the stored outcome without writing.
"""

import logging
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from django.db import transaction
from django.utils import timezone

from apps.auctions.models import Auction, AuctionStatus
from apps.credits.services import retry_on_conflict, WriteConflictError
from apps.notifications.models import NotificationKind
from apps.notifications.services import notify_on_commit

from .bidding import get_top_bid
from .exceptions import (
    AuctionIntegrityError,
    AuctionNotEndedError,
)
from .lifecycle import lock_auction
from .results import FinalizationResult

logger = logging.getLogger(__name__)


def _notify_outcome(auction: Auction, top_bid) -> None:
    if auction.winner_id is not None:
        notify_on_commit(
            auction.winner_id,
            '¡Ganaste la subasta!',
            f"Ganaste con una oferta de ${auction.winning_bid:,}. Confirma la compra.",
            NotificationKind.AUCTION_WON,
        )
        notify_on_commit(
            auction.seller_id,
            'Subasta finalizada',
            f"Tu vehículo se adjudicó por ${auction.winning_bid:,}.",
            NotificationKind.AUCTION_SOLD,
        )
    elif top_bid is not None:
        notify_on_commit(
            auction.seller_id,
            'Subasta finalizada',
            f"La oferta más alta (${top_bid.amount:,}) no alcanzó el precio de reserva.",
            NotificationKind.AUCTION_RESERVE_NOT_MET,
        )
    else:
        notify_on_commit(
            auction.seller_id,
            'Subasta finalizada',
            "Tu subasta terminó sin ofertas.",
            NotificationKind.AUCTION_NO_OFFERS,
        )


@retry_on_conflict
@transaction.atomic
def finalize_auction(*, auction_id: UUID) -> FinalizationResult:
    """
    Close an expired auction and determine its winner.

    The winner is the highest bid (earliest on ties), provided it reaches
    the reserve price.

    Any status other than active is a no-op: a finished auction returns its
    stored outcome with ``already_finalized`` set; a draft, pending or
    paused auction returns a non-final result (``is_final`` is False) and
    nothing is written.

    Raises:
        AuctionNotFoundError: If the auction doesn't exist
        AuctionNotEndedError: If the end date hasn't been reached
        AuctionIntegrityError: If an active auction already has a winner
    """
    auction = lock_auction(auction_id)

    if auction.status == AuctionStatus.FINISHED:
        return FinalizationResult.from_auction(auction, already_finalized=True)

    if auction.status != AuctionStatus.ACTIVE:
        logger.info("Auction %s is %s, nothing to finalize", auction.id, auction.status)
        return FinalizationResult.from_auction(auction, already_finalized=False)

    now = timezone.now()
    if not auction.has_ended(now):
        raise AuctionNotEndedError(f"Auction ends at {auction.end_date.isoformat()}")

    if auction.winner_id is not None or auction.winning_bid is not None:
        logger.critical("Active auction %s already has a winner", auction.id)
        raise AuctionIntegrityError(f"Auction {auction.id} has a winner but is still active")

    top_bid = get_top_bid(auction)
    reserve_met = top_bid is not None and top_bid.amount >= auction.reserve_price

    auction.status = AuctionStatus.FINISHED
    auction.finalized_at = now
    if reserve_met:
        auction.winner_id = top_bid.bidder_id
        auction.winning_bid = top_bid.amount
    auction.save(update_fields=['status', 'finalized_at', 'winner', 'winning_bid', 'updated_at'])

    _notify_outcome(auction, top_bid)
    logger.info(
        "Auction %s finalized: winner=%s winning_bid=%s",
        auction.id, auction.winner_id, auction.winning_bid
    )

    return FinalizationResult(
        auction_id=auction.id,
        winner_id=auction.winner_id,
        winning_bid=auction.winning_bid,
        reserve_met=reserve_met,
    )


def finalize_expired_auctions(*, now: Optional[datetime] = None) -> List[FinalizationResult]:
    """
    Finalize every active auction whose end date has passed.

    Each auction is finalized in its own transaction. One that was
    extended, paused or finalized elsewhere since the query is skipped;
    one that keeps conflicting is left for the next sweep.
    """
    now = now or timezone.now()
    auction_ids = list(
        Auction.objects
        .filter(status=AuctionStatus.ACTIVE, end_date__lte=now)
        .order_by('end_date')
        .values_list('id', flat=True)
    )

    results = []
    for auction_id in auction_ids:
        try:
            result = finalize_auction(auction_id=auction_id)
        except AuctionNotEndedError as e:
            logger.info("Skipping auction %s: %s", auction_id, e)
            continue
        except WriteConflictError:
            logger.warning("Auction %s left for the next sweep after write conflicts", auction_id)
            continue

        if result.is_final and not result.already_finalized:
            results.append(result)

    if auction_ids:
        logger.info("Finalization sweep closed %d of %d expired auction(s)", len(results), len(auction_ids))
    return results
