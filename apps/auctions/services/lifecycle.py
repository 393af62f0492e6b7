"""
Auction state machine.

    draft -> pending_approval -> active -> finished
                                 active <-> paused

Every transition locks the auction row first, so it serializes with
bidding and finalization on the same auction.
"""

import logging
from datetime import timedelta
from typing import Iterable, Optional
from uuid import UUID

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from apps.accounts.models import User
from apps.accounts.services import is_blocked
from apps.auctions.models import Auction, AuctionStatus
from apps.credits.models import MovementKind
from apps.credits.services import (
    apply_movement,
    get_price_table,
    retry_on_conflict,
    total_cost,
    BASIC_SERVICE_CODE,
    HIGHLIGHT_SERVICE_CODE,
)
from apps.notifications.models import NotificationKind
from apps.notifications.services import notify_on_commit

from .exceptions import (
    AccountBlockedError,
    AuctionNotFoundError,
    InvalidAuctionError,
    InvalidTransitionError,
    NotAuctionOwnerError,
)

logger = logging.getLogger(__name__)

DELETABLE_STATUSES = (AuctionStatus.DRAFT, AuctionStatus.PENDING_APPROVAL)


def lock_auction(auction_id: UUID) -> Auction:
    """Fetch the auction with a row lock. Must run inside a transaction."""
    try:
        return Auction.objects.select_for_update().get(id=auction_id)
    except Auction.DoesNotExist:
        raise AuctionNotFoundError(f"Auction with ID {auction_id} not found")


def get_auction_by_id(*, auction_id: UUID) -> Auction:
    try:
        return Auction.objects.select_related('seller', 'winner').get(id=auction_id)
    except Auction.DoesNotExist:
        raise AuctionNotFoundError(f"Auction with ID {auction_id} not found")


def _require_status(auction: Auction, *allowed: str, action: str) -> None:
    if auction.status not in allowed:
        raise InvalidTransitionError(
            f"Cannot {action} an auction in status '{auction.status}'"
        )


def _require_owner(auction: Auction, user: User) -> None:
    if not auction.is_seller(user):
        raise NotAuctionOwnerError("Only the seller can manage this auction")


def create_auction(
    *,
    seller: User,
    vehicle_id: UUID,
    start_price: int,
    reserve_price: int,
    min_increment: int,
    duration_days: int = 7
) -> Auction:
    """
    Create a draft auction. No credits are committed until submission.

    Raises:
        InvalidAuctionError: If prices, increment or duration are out of range
    """
    if start_price <= 0:
        raise InvalidAuctionError("Start price must be positive")
    if reserve_price < 0:
        raise InvalidAuctionError("Reserve price cannot be negative")
    if min_increment <= 0:
        raise InvalidAuctionError("Minimum increment must be positive")
    if start_price > settings.AUCTION_MAX_BID_AMOUNT:
        raise InvalidAuctionError("Start price exceeds the maximum bid amount")

    max_days = settings.AUCTION_MAX_DURATION_DAYS
    if not 1 <= duration_days <= max_days:
        raise InvalidAuctionError(f"Duration must be between 1 and {max_days} days")

    auction = Auction.objects.create(
        seller=seller,
        vehicle_id=vehicle_id,
        start_price=start_price,
        reserve_price=reserve_price,
        min_increment=min_increment,
        duration_days=duration_days,
    )
    logger.info("Auction %s created by %s", auction.id, seller.id)
    return auction


@retry_on_conflict
@transaction.atomic
def submit_auction(*, auction_id: UUID, seller: User, services: Iterable[str] = ()) -> Auction:
    """
    Submit a draft for approval and charge its publication cost.

    Unknown service codes are dropped; the basic publication is always
    included. The debit and the transition commit together.

    Raises:
        NotAuctionOwnerError: If the user is not the seller
        InvalidTransitionError: If the auction is not a draft
        AccountBlockedError: If the seller is blocked
        InsufficientCreditsError: If the seller can't pay the publication
    """
    auction = lock_auction(auction_id)
    _require_owner(auction, seller)
    _require_status(auction, AuctionStatus.DRAFT, action='submit')
    if is_blocked(seller):
        raise AccountBlockedError("Blocked accounts can't publish auctions")

    price_table = get_price_table()
    selected = [BASIC_SERVICE_CODE] + [
        code for code in dict.fromkeys(services)
        if code != BASIC_SERVICE_CODE and code in price_table
    ]
    cost = total_cost(selected, price_table)

    if cost > 0:
        apply_movement(
            user_id=seller.id,
            kind=MovementKind.PUBLICATION,
            amount=-cost,
            description=f"Publicación de subasta {auction.id}",
        )

    auction.services = selected
    auction.publication_credits = cost
    auction.is_highlighted = HIGHLIGHT_SERVICE_CODE in selected
    auction.status = AuctionStatus.PENDING_APPROVAL
    auction.save(update_fields=[
        'services', 'publication_credits', 'is_highlighted', 'status', 'updated_at'
    ])

    logger.info("Auction %s submitted for approval (%d credits)", auction.id, cost)
    return auction


@retry_on_conflict
@transaction.atomic
def approve_auction(*, auction_id: UUID) -> Auction:
    """
    Open a pending auction for bidding.

    The clock starts now, not at creation: ``end_date = now + duration_days``.
    """
    auction = lock_auction(auction_id)
    _require_status(auction, AuctionStatus.PENDING_APPROVAL, action='approve')

    now = timezone.now()
    auction.status = AuctionStatus.ACTIVE
    auction.is_approved = True
    auction.start_date = now
    auction.end_date = now + timedelta(days=auction.duration_days)
    auction.save(update_fields=['status', 'is_approved', 'start_date', 'end_date', 'updated_at'])

    notify_on_commit(
        auction.seller_id,
        'Subasta aprobada',
        f"Tu subasta fue aprobada y cierra el {auction.end_date:%d-%m-%Y %H:%M} UTC.",
        NotificationKind.AUCTION_APPROVED,
    )
    logger.info("Auction %s approved, ends at %s", auction.id, auction.end_date.isoformat())
    return auction


@retry_on_conflict
@transaction.atomic
def pause_auction(*, auction_id: UUID) -> Auction:
    """Suspend bidding on an active auction."""
    auction = lock_auction(auction_id)
    _require_status(auction, AuctionStatus.ACTIVE, action='pause')

    auction.status = AuctionStatus.PAUSED
    auction.save(update_fields=['status', 'updated_at'])
    logger.info("Auction %s paused", auction.id)
    return auction


@retry_on_conflict
@transaction.atomic
def resume_auction(*, auction_id: UUID) -> Auction:
    """
    Reopen a paused auction.

    ``end_date`` is left as it was; an auction resumed after its end date
    is picked up by the next finalization sweep.
    """
    auction = lock_auction(auction_id)
    _require_status(auction, AuctionStatus.PAUSED, action='resume')

    auction.status = AuctionStatus.ACTIVE
    auction.save(update_fields=['status', 'updated_at'])
    logger.info("Auction %s resumed", auction.id)
    return auction


@retry_on_conflict
@transaction.atomic
def delete_auction(*, auction_id: UUID, user: Optional[User] = None) -> None:
    """
    Delete a draft or pending auction.

    A pending auction already paid its publication; those credits are
    refunded to the seller in the same transaction.

    Raises:
        NotAuctionOwnerError: If ``user`` is neither the seller nor staff
        InvalidTransitionError: If the auction is already approved
    """
    auction = lock_auction(auction_id)
    if user is not None and not user.is_staff:
        _require_owner(auction, user)
    _require_status(auction, *DELETABLE_STATUSES, action='delete')

    if auction.status == AuctionStatus.PENDING_APPROVAL and auction.publication_credits:
        apply_movement(
            user_id=auction.seller_id,
            kind=MovementKind.ADMIN_ADJUSTMENT,
            amount=auction.publication_credits,
            description=f"Reembolso publicación de subasta {auction.id}",
        )

    logger.info("Auction %s deleted from status %s", auction.id, auction.status)
    auction.delete()


@retry_on_conflict
@transaction.atomic
def highlight_auction(*, auction_id: UUID, seller: User) -> Auction:
    """
    Pay to feature an auction.

    Raises:
        NotAuctionOwnerError: If the user is not the seller
        InvalidTransitionError: If finished or already highlighted
        InsufficientCreditsError: If the seller can't pay
    """
    auction = lock_auction(auction_id)
    _require_owner(auction, seller)
    if auction.status == AuctionStatus.FINISHED:
        raise InvalidTransitionError("Cannot highlight a finished auction")
    if auction.is_highlighted:
        raise InvalidTransitionError("Auction is already highlighted")

    apply_movement(
        user_id=seller.id,
        kind=MovementKind.HIGHLIGHT,
        amount=-settings.AUCTION_HIGHLIGHT_CREDITS,
        description=f"Destacar subasta {auction.id}",
    )

    auction.is_highlighted = True
    auction.save(update_fields=['is_highlighted', 'updated_at'])
    logger.info("Auction %s highlighted", auction.id)
    return auction
