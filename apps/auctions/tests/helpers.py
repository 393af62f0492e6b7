"""Builders shared by the auction tests."""

import uuid
from datetime import timedelta

from django.utils import timezone
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from apps.accounts.models import User
from apps.auctions.models import Auction, AuctionStatus, Bid
from apps.credits.models import MovementKind
from apps.credits.services import apply_movement


def fund(user, credits):
    """Give a user credits through the ledger."""
    return apply_movement(
        user_id=user.id,
        kind=MovementKind.PURCHASE,
        amount=credits,
        description='Test top-up',
    )


def make_user(email, verified=True, **extra):
    user = User.objects.create_user(email=email, password='TestPass123!', **extra)
    if verified:
        user.mark_identity_verified()
    return user


def make_auction(seller, **overrides):
    """Create an auction row directly, active and closing in one day by default."""
    now = timezone.now()
    fields = {
        'vehicle_id': uuid.uuid4(),
        'start_price': 1_000_000,
        'reserve_price': 1_000_000,
        'min_increment': 50_000,
        'duration_days': 7,
        'status': AuctionStatus.ACTIVE,
        'is_approved': True,
        'start_date': now - timedelta(days=6),
        'end_date': now + timedelta(days=1),
    }
    fields.update(overrides)
    return Auction.objects.create(seller=seller, **fields)


def make_bid(auction, bidder, amount, created_at=None):
    """Insert a bid row without going through bidding (for closed auctions)."""
    return Bid.objects.create(
        auction=auction,
        bidder=bidder,
        amount=amount,
        hold_amount=(amount * 5 + 50) // 100,
        created_at=created_at or timezone.now(),
    )


def client_for(user):
    client = APIClient()
    refresh = RefreshToken.for_user(user)
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return client
