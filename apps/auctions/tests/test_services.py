"""
Tests for the auction services.

Covers:
- Bid validation order, the credit debit and deadline extension
- The auction state machine and publication charges
- Idempotent finalization and the expiry sweep
- Purchase confirmation and abandonment penalties
- Concurrent bidding and finalization (TransactionTestCase)
"""

import threading
import uuid
from datetime import timedelta
from io import StringIO

import pytest
from django.core.management import call_command
from django.db import connection
from django.test import TransactionTestCase
from django.utils import timezone

from apps.accounts.services import is_blocked, unblock_user
from apps.auctions.models import Auction, AuctionStatus, Bid
from apps.auctions.services import (
    approve_auction,
    confirm_purchase,
    create_auction,
    delete_auction,
    finalize_auction,
    finalize_expired_auctions,
    get_minimum_bid,
    get_top_bid,
    highlight_auction,
    hold_amount_for,
    pause_auction,
    penalize_abandoned_auctions,
    place_bid,
    resume_auction,
    submit_auction,
    # Exceptions
    AccountBlockedError,
    AuctionIntegrityError,
    AuctionNotActiveError,
    AuctionNotEndedError,
    AuctionNotFoundError,
    BidExceedsMaxError,
    BidTooLowError,
    InvalidAuctionError,
    InvalidTransitionError,
    NotAuctionOwnerError,
    NotAuctionWinnerError,
    NotVerifiedError,
)
from apps.credits.models import CreditMovement, MovementKind
from apps.credits.services import InsufficientCreditsError, audit_account, get_balance
from apps.notifications.models import Notification, NotificationKind

from .helpers import fund, make_auction, make_bid, make_user


# =============================================================================
# Bidding
# =============================================================================

@pytest.mark.django_db
class TestPlaceBid:

    def test_bid_above_increment_is_accepted(self, active_auction, bidder):
        """A bid of 1,050,000 on a 1,000,000 start with 50,000 increment wins."""
        placement = place_bid(auction_id=active_auction.id, bidder=bidder, amount=1_050_000)

        assert placement.bid.amount == 1_050_000
        assert placement.extended is False
        assert get_top_bid(active_auction) == placement.bid

    def test_bid_below_increment_is_rejected(self, active_auction, bidder):
        with pytest.raises(BidTooLowError) as exc_info:
            place_bid(auction_id=active_auction.id, bidder=bidder, amount=1_040_000)

        assert exc_info.value.minimum == 1_050_000
        assert exc_info.value.code == 'bid_too_low'
        assert active_auction.bids.count() == 0

    def test_rejected_bid_costs_nothing(self, active_auction, bidder):
        with pytest.raises(BidTooLowError):
            place_bid(auction_id=active_auction.id, bidder=bidder, amount=1_040_000)

        assert get_balance(user_id=bidder.id) == 10

    def test_accepted_bid_costs_one_credit(self, active_auction, bidder):
        place_bid(auction_id=active_auction.id, bidder=bidder, amount=1_050_000)

        assert get_balance(user_id=bidder.id) == 9
        movement = CreditMovement.objects.filter(account__user=bidder).first()
        assert movement.kind == MovementKind.BID
        assert movement.amount == -1

    def test_next_bid_measured_from_leader(self, active_auction, bidder, other_bidder):
        place_bid(auction_id=active_auction.id, bidder=bidder, amount=1_200_000)

        with pytest.raises(BidTooLowError) as exc_info:
            place_bid(auction_id=active_auction.id, bidder=other_bidder, amount=1_240_000)

        assert exc_info.value.minimum == 1_250_000
        placement = place_bid(auction_id=active_auction.id, bidder=other_bidder, amount=1_250_000)
        assert get_top_bid(active_auction) == placement.bid

    def test_accepted_bids_are_monotonic(self, active_auction, bidder, other_bidder):
        amounts = [1_050_000, 1_100_000, 1_300_000, 1_350_000]
        bidders = [bidder, other_bidder]
        for i, amount in enumerate(amounts):
            place_bid(auction_id=active_auction.id, bidder=bidders[i % 2], amount=amount)

        accepted = list(active_auction.bids.order_by('created_at').values_list('amount', flat=True))
        assert accepted == amounts
        for previous, current in zip(accepted, accepted[1:]):
            assert current >= previous + active_auction.min_increment

    def test_one_credit_allows_exactly_one_bid(self, active_auction):
        user = make_user('onecredit@example.com')
        fund(user, 1)

        place_bid(auction_id=active_auction.id, bidder=user, amount=1_050_000)
        with pytest.raises(InsufficientCreditsError):
            place_bid(auction_id=active_auction.id, bidder=user, amount=1_100_000)

        assert get_balance(user_id=user.id) == 0
        assert active_auction.bids.count() == 1

    def test_no_bid_recorded_without_credits(self, active_auction):
        user = make_user('broke@example.com')

        with pytest.raises(InsufficientCreditsError):
            place_bid(auction_id=active_auction.id, bidder=user, amount=1_050_000)

        assert not Bid.objects.filter(bidder=user).exists()

    def test_unverified_bidder(self, active_auction, unverified_bidder):
        with pytest.raises(NotVerifiedError):
            place_bid(auction_id=active_auction.id, bidder=unverified_bidder, amount=1_050_000)

        assert get_balance(user_id=unverified_bidder.id) == 10

    def test_blocked_bidder(self, active_auction, bidder):
        bidder.mark_blocked()

        with pytest.raises(AccountBlockedError) as exc_info:
            place_bid(auction_id=active_auction.id, bidder=bidder, amount=1_050_000)

        assert exc_info.value.code == 'account_blocked'
        assert get_balance(user_id=bidder.id) == 10
        assert active_auction.bids.count() == 0

    def test_exceeds_max(self, active_auction, bidder, settings):
        settings.AUCTION_MAX_BID_AMOUNT = 2_000_000

        with pytest.raises(BidExceedsMaxError) as exc_info:
            place_bid(auction_id=active_auction.id, bidder=bidder, amount=2_000_001)

        assert exc_info.value.maximum == 2_000_000
        assert get_balance(user_id=bidder.id) == 10

    def test_paused_auction(self, active_auction, bidder):
        pause_auction(auction_id=active_auction.id)

        with pytest.raises(AuctionNotActiveError):
            place_bid(auction_id=active_auction.id, bidder=bidder, amount=1_050_000)

    def test_expired_auction(self, seller, bidder):
        auction = make_auction(seller, end_date=timezone.now() - timedelta(seconds=1))

        with pytest.raises(AuctionNotActiveError):
            place_bid(auction_id=auction.id, bidder=bidder, amount=1_050_000)

    def test_draft_auction(self, draft_auction, bidder):
        with pytest.raises(AuctionNotActiveError):
            place_bid(auction_id=draft_auction.id, bidder=bidder, amount=1_050_000)

    def test_not_active_checked_before_verification(self, draft_auction, unverified_bidder):
        with pytest.raises(AuctionNotActiveError):
            place_bid(auction_id=draft_auction.id, bidder=unverified_bidder, amount=1_050_000)

    def test_unknown_auction(self, bidder):
        with pytest.raises(AuctionNotFoundError):
            place_bid(auction_id=uuid.uuid4(), bidder=bidder, amount=1_050_000)

    def test_hold_amount(self, active_auction, bidder):
        placement = place_bid(auction_id=active_auction.id, bidder=bidder, amount=1_050_000)

        assert placement.bid.hold_amount == 52_500

    def test_hold_amount_rounds_half_up(self):
        assert hold_amount_for(10) == 1
        assert hold_amount_for(9) == 0

    def test_notifies_seller_after_commit(self, active_auction, bidder, django_capture_on_commit_callbacks):
        with django_capture_on_commit_callbacks(execute=True):
            place_bid(auction_id=active_auction.id, bidder=bidder, amount=1_050_000)

        assert Notification.objects.filter(
            user=active_auction.seller, kind=NotificationKind.BID_RECEIVED
        ).count() == 1

    def test_minimum_bid_uses_start_price_without_bids(self, active_auction):
        assert get_minimum_bid(active_auction) == 1_050_000


@pytest.mark.django_db
class TestExtension:

    def test_late_bid_extends_deadline(self, seller, bidder):
        """A bid 30 seconds before the end pushes it to two minutes after the bid."""
        auction = make_auction(seller, end_date=timezone.now() + timedelta(seconds=30))

        placement = place_bid(auction_id=auction.id, bidder=bidder, amount=1_050_000)

        assert placement.extended is True
        assert placement.end_date == placement.bid.created_at + timedelta(seconds=120)
        auction.refresh_from_db()
        assert auction.end_date == placement.end_date

    def test_early_bid_keeps_deadline(self, seller, bidder):
        """A bid five minutes before the end leaves it unchanged."""
        end_date = timezone.now() + timedelta(minutes=5)
        auction = make_auction(seller, end_date=end_date)

        placement = place_bid(auction_id=auction.id, bidder=bidder, amount=1_050_000)

        assert placement.extended is False
        assert placement.end_date == end_date
        auction.refresh_from_db()
        assert auction.end_date == end_date

    def test_successive_late_bids_never_move_deadline_back(self, seller, bidder, other_bidder):
        auction = make_auction(seller, end_date=timezone.now() + timedelta(seconds=10))

        first = place_bid(auction_id=auction.id, bidder=bidder, amount=1_050_000)
        second = place_bid(auction_id=auction.id, bidder=other_bidder, amount=1_100_000)

        assert second.end_date >= first.end_date
        assert second.end_date == second.bid.created_at + timedelta(seconds=120)

    def test_window_is_configurable(self, seller, bidder, settings):
        settings.AUCTION_EXTENSION_WINDOW_SECONDS = 600
        auction = make_auction(seller, end_date=timezone.now() + timedelta(minutes=5))

        placement = place_bid(auction_id=auction.id, bidder=bidder, amount=1_050_000)

        assert placement.extended is True
        assert placement.end_date == placement.bid.created_at + timedelta(seconds=600)


# =============================================================================
# State machine
# =============================================================================

@pytest.mark.django_db
class TestCreateAuction:

    def test_creates_draft(self, seller):
        auction = create_auction(
            seller=seller,
            vehicle_id=uuid.uuid4(),
            start_price=1_000_000,
            reserve_price=5_000_000,
            min_increment=50_000,
            duration_days=7,
        )

        assert auction.status == AuctionStatus.DRAFT
        assert auction.end_date is None
        assert auction.is_approved is False

    @pytest.mark.parametrize('overrides', [
        {'start_price': 0},
        {'min_increment': 0},
        {'reserve_price': -1},
        {'duration_days': 0},
        {'duration_days': 31},
    ])
    def test_invalid_parameters(self, seller, overrides):
        params = {
            'vehicle_id': uuid.uuid4(),
            'start_price': 1_000_000,
            'reserve_price': 1_000_000,
            'min_increment': 50_000,
            'duration_days': 7,
        }
        params.update(overrides)

        with pytest.raises(InvalidAuctionError):
            create_auction(seller=seller, **params)

        assert not Auction.objects.exists()


@pytest.mark.django_db
class TestSubmitAuction:

    def test_charges_publication(self, seller, draft_auction, publication_services):
        fund(seller, 100)

        auction = submit_auction(
            auction_id=draft_auction.id,
            seller=seller,
            services=['destacado', 'fotografia_profesional', 'lavado'],
        )

        assert auction.status == AuctionStatus.PENDING_APPROVAL
        assert auction.publication_credits == 50
        assert auction.services == ['publicacion_basica', 'destacado', 'fotografia_profesional']
        assert auction.is_highlighted is True
        assert get_balance(user_id=seller.id) == 50
        movement = CreditMovement.objects.filter(account__user=seller).first()
        assert movement.kind == MovementKind.PUBLICATION
        assert movement.amount == -50

    def test_basic_only(self, seller, draft_auction, publication_services):
        fund(seller, 10)

        auction = submit_auction(auction_id=draft_auction.id, seller=seller)

        assert auction.publication_credits == 10
        assert auction.is_highlighted is False
        assert get_balance(user_id=seller.id) == 0

    def test_insufficient_credits_keeps_draft(self, seller, draft_auction, publication_services):
        fund(seller, 5)

        with pytest.raises(InsufficientCreditsError):
            submit_auction(auction_id=draft_auction.id, seller=seller, services=['destacado'])

        draft_auction.refresh_from_db()
        assert draft_auction.status == AuctionStatus.DRAFT
        assert get_balance(user_id=seller.id) == 5

    def test_blocked_seller(self, seller, draft_auction, publication_services):
        fund(seller, 10)
        seller.mark_blocked()

        with pytest.raises(AccountBlockedError):
            submit_auction(auction_id=draft_auction.id, seller=seller)

        draft_auction.refresh_from_db()
        assert draft_auction.status == AuctionStatus.DRAFT
        assert get_balance(user_id=seller.id) == 10

    def test_only_seller(self, draft_auction, bidder, publication_services):
        with pytest.raises(NotAuctionOwnerError):
            submit_auction(auction_id=draft_auction.id, seller=bidder)

    def test_cannot_submit_twice(self, seller, draft_auction, publication_services):
        fund(seller, 20)
        submit_auction(auction_id=draft_auction.id, seller=seller)

        with pytest.raises(InvalidTransitionError):
            submit_auction(auction_id=draft_auction.id, seller=seller)

        assert get_balance(user_id=seller.id) == 10


@pytest.mark.django_db
class TestApproveAuction:

    def test_approval_starts_the_clock(self, seller, draft_auction, publication_services,
                                       django_capture_on_commit_callbacks):
        fund(seller, 10)
        submit_auction(auction_id=draft_auction.id, seller=seller)
        before = timezone.now()

        with django_capture_on_commit_callbacks(execute=True):
            auction = approve_auction(auction_id=draft_auction.id)

        assert auction.status == AuctionStatus.ACTIVE
        assert auction.is_approved is True
        assert auction.start_date >= before
        assert auction.end_date - auction.start_date == timedelta(days=7)
        assert Notification.objects.filter(
            user=seller, kind=NotificationKind.AUCTION_APPROVED
        ).exists()

    def test_cannot_approve_draft(self, draft_auction):
        with pytest.raises(InvalidTransitionError):
            approve_auction(auction_id=draft_auction.id)

    def test_cannot_approve_active(self, active_auction):
        with pytest.raises(InvalidTransitionError):
            approve_auction(auction_id=active_auction.id)


@pytest.mark.django_db
class TestPauseResume:

    def test_pause_and_resume(self, active_auction):
        end_date = active_auction.end_date

        assert pause_auction(auction_id=active_auction.id).status == AuctionStatus.PAUSED
        resumed = resume_auction(auction_id=active_auction.id)

        assert resumed.status == AuctionStatus.ACTIVE
        assert resumed.end_date == end_date

    def test_cannot_pause_paused(self, active_auction):
        pause_auction(auction_id=active_auction.id)

        with pytest.raises(InvalidTransitionError):
            pause_auction(auction_id=active_auction.id)

    def test_cannot_resume_active(self, active_auction):
        with pytest.raises(InvalidTransitionError):
            resume_auction(auction_id=active_auction.id)

    def test_cannot_pause_draft(self, draft_auction):
        with pytest.raises(InvalidTransitionError):
            pause_auction(auction_id=draft_auction.id)


@pytest.mark.django_db
class TestDeleteAuction:

    def test_delete_draft(self, seller, draft_auction):
        delete_auction(auction_id=draft_auction.id, user=seller)

        assert not Auction.objects.filter(id=draft_auction.id).exists()

    def test_delete_pending_refunds(self, seller, draft_auction, publication_services):
        fund(seller, 40)
        submit_auction(auction_id=draft_auction.id, seller=seller, services=['destacado'])
        assert get_balance(user_id=seller.id) == 5

        delete_auction(auction_id=draft_auction.id, user=seller)

        assert get_balance(user_id=seller.id) == 40
        refund = CreditMovement.objects.filter(account__user=seller).first()
        assert refund.kind == MovementKind.ADMIN_ADJUSTMENT
        assert refund.amount == 35
        assert audit_account(user_id=seller.id) == 40

    def test_cannot_delete_active(self, active_auction):
        with pytest.raises(InvalidTransitionError):
            delete_auction(auction_id=active_auction.id)

    def test_only_seller_or_staff(self, draft_auction, bidder, staff_user):
        with pytest.raises(NotAuctionOwnerError):
            delete_auction(auction_id=draft_auction.id, user=bidder)

        delete_auction(auction_id=draft_auction.id, user=staff_user)
        assert not Auction.objects.filter(id=draft_auction.id).exists()


@pytest.mark.django_db
class TestHighlightAuction:

    def test_highlight(self, seller, active_auction):
        fund(seller, 30)

        auction = highlight_auction(auction_id=active_auction.id, seller=seller)

        assert auction.is_highlighted is True
        assert get_balance(user_id=seller.id) == 5
        assert CreditMovement.objects.filter(
            account__user=seller, kind=MovementKind.HIGHLIGHT, amount=-25
        ).exists()

    def test_cannot_highlight_twice(self, seller, active_auction):
        fund(seller, 60)
        highlight_auction(auction_id=active_auction.id, seller=seller)

        with pytest.raises(InvalidTransitionError):
            highlight_auction(auction_id=active_auction.id, seller=seller)

        assert get_balance(user_id=seller.id) == 35

    def test_cannot_highlight_finished(self, seller):
        fund(seller, 30)
        auction = make_auction(seller, status=AuctionStatus.FINISHED)

        with pytest.raises(InvalidTransitionError):
            highlight_auction(auction_id=auction.id, seller=seller)

    def test_insufficient_credits(self, seller, active_auction):
        fund(seller, 24)

        with pytest.raises(InsufficientCreditsError):
            highlight_auction(auction_id=active_auction.id, seller=seller)

        active_auction.refresh_from_db()
        assert active_auction.is_highlighted is False

    def test_only_seller(self, active_auction, bidder):
        with pytest.raises(NotAuctionOwnerError):
            highlight_auction(auction_id=active_auction.id, seller=bidder)


# =============================================================================
# Finalization
# =============================================================================

def expired_auction(seller, **overrides):
    overrides.setdefault('end_date', timezone.now() - timedelta(minutes=1))
    return make_auction(seller, **overrides)


@pytest.mark.django_db
class TestFinalizeAuction:

    def test_reserve_not_met(self, seller, bidder, django_capture_on_commit_callbacks):
        """Highest bid 4,800,000 against a 5,000,000 reserve: finished, no winner."""
        auction = expired_auction(seller, reserve_price=5_000_000)
        make_bid(auction, bidder, 4_800_000)

        with django_capture_on_commit_callbacks(execute=True):
            result = finalize_auction(auction_id=auction.id)

        assert result.winner_id is None
        assert result.winning_bid is None
        assert result.reserve_met is False
        auction.refresh_from_db()
        assert auction.status == AuctionStatus.FINISHED
        assert auction.winner_id is None
        assert Notification.objects.filter(
            user=seller, kind=NotificationKind.AUCTION_RESERVE_NOT_MET
        ).exists()

    def test_winner(self, seller, bidder, other_bidder, django_capture_on_commit_callbacks):
        auction = expired_auction(seller, reserve_price=5_000_000)
        make_bid(auction, other_bidder, 5_000_000)
        make_bid(auction, bidder, 5_200_000)

        with django_capture_on_commit_callbacks(execute=True):
            result = finalize_auction(auction_id=auction.id)

        assert result.winner_id == bidder.id
        assert result.winning_bid == 5_200_000
        assert result.has_winner is True
        auction.refresh_from_db()
        assert auction.winner_id == bidder.id
        assert auction.finalized_at is not None
        assert Notification.objects.filter(user=bidder, kind=NotificationKind.AUCTION_WON).exists()
        assert Notification.objects.filter(user=seller, kind=NotificationKind.AUCTION_SOLD).exists()

    def test_tie_goes_to_earliest_bid(self, seller, bidder, other_bidder):
        auction = expired_auction(seller)
        now = timezone.now()
        make_bid(auction, other_bidder, 2_000_000, created_at=now - timedelta(seconds=5))
        make_bid(auction, bidder, 2_000_000, created_at=now - timedelta(seconds=10))

        result = finalize_auction(auction_id=auction.id)

        assert result.winner_id == bidder.id

    def test_no_bids(self, seller, django_capture_on_commit_callbacks):
        auction = expired_auction(seller)

        with django_capture_on_commit_callbacks(execute=True):
            result = finalize_auction(auction_id=auction.id)

        assert result.has_winner is False
        assert Notification.objects.filter(
            user=seller, kind=NotificationKind.AUCTION_NO_OFFERS
        ).exists()

    def test_second_call_is_a_no_op(self, seller, bidder, django_capture_on_commit_callbacks):
        auction = expired_auction(seller)
        make_bid(auction, bidder, 1_500_000)
        first = finalize_auction(auction_id=auction.id)
        auction.refresh_from_db()
        updated_at = auction.updated_at

        with django_capture_on_commit_callbacks(execute=True) as callbacks:
            second = finalize_auction(auction_id=auction.id)

        assert second.already_finalized is True
        assert first.already_finalized is False
        assert (second.winner_id, second.winning_bid) == (first.winner_id, first.winning_bid)
        assert callbacks == []
        auction.refresh_from_db()
        assert auction.updated_at == updated_at

    def test_not_ended(self, active_auction):
        with pytest.raises(AuctionNotEndedError):
            finalize_auction(auction_id=active_auction.id)

        active_auction.refresh_from_db()
        assert active_auction.status == AuctionStatus.ACTIVE

    def test_paused_auction_is_a_no_op(self, seller, bidder):
        auction = expired_auction(seller, status=AuctionStatus.PAUSED)
        make_bid(auction, bidder, 1_500_000)

        result = finalize_auction(auction_id=auction.id)

        assert result.is_final is False
        assert result.already_finalized is False
        assert result.status == AuctionStatus.PAUSED
        assert result.winner_id is None
        auction.refresh_from_db()
        assert auction.status == AuctionStatus.PAUSED
        assert auction.finalized_at is None

    @pytest.mark.parametrize('auction_status', [AuctionStatus.DRAFT, AuctionStatus.PENDING_APPROVAL])
    def test_unpublished_auction_is_a_no_op(self, seller, auction_status):
        auction = expired_auction(seller, status=auction_status)

        result = finalize_auction(auction_id=auction.id)

        assert result.is_final is False
        auction.refresh_from_db()
        assert auction.status == auction_status

    def test_active_auction_with_winner_is_fatal(self, seller, bidder):
        auction = expired_auction(seller, winner=bidder, winning_bid=1_500_000)

        with pytest.raises(AuctionIntegrityError):
            finalize_auction(auction_id=auction.id)

    def test_bids_then_finalize(self, seller, bidder, other_bidder):
        auction = make_auction(seller, reserve_price=1_100_000)
        place_bid(auction_id=auction.id, bidder=bidder, amount=1_050_000)
        place_bid(auction_id=auction.id, bidder=other_bidder, amount=1_150_000)
        Auction.objects.filter(id=auction.id).update(end_date=timezone.now() - timedelta(seconds=1))

        result = finalize_auction(auction_id=auction.id)

        assert result.winner_id == other_bidder.id
        assert result.winning_bid == 1_150_000


@pytest.mark.django_db
class TestFinalizeExpiredAuctions:

    def test_sweep(self, seller, bidder):
        first = expired_auction(seller)
        second = expired_auction(seller)
        make_bid(second, bidder, 1_200_000)
        future = make_auction(seller)
        paused = expired_auction(seller, status=AuctionStatus.PAUSED)

        results = finalize_expired_auctions()

        assert {r.auction_id for r in results} == {first.id, second.id}
        future.refresh_from_db()
        paused.refresh_from_db()
        assert future.status == AuctionStatus.ACTIVE
        assert paused.status == AuctionStatus.PAUSED

    def test_sweep_is_repeatable(self, seller):
        expired_auction(seller)

        assert len(finalize_expired_auctions()) == 1
        assert finalize_expired_auctions() == []

    def test_command_dry_run(self, seller):
        auction = expired_auction(seller)
        out = StringIO()

        call_command('finalize_auctions', '--dry-run', stdout=out)

        assert str(auction.id) in out.getvalue()
        auction.refresh_from_db()
        assert auction.status == AuctionStatus.ACTIVE

    def test_command(self, seller):
        auction = expired_auction(seller)
        out = StringIO()

        call_command('finalize_auctions', stdout=out)

        assert 'Finalized 1 auction(s).' in out.getvalue()
        auction.refresh_from_db()
        assert auction.status == AuctionStatus.FINISHED


# =============================================================================
# Settlement
# =============================================================================

def won_auction(seller, winner, hours_ago=49, **overrides):
    ended = timezone.now() - timedelta(hours=hours_ago)
    return make_auction(
        seller,
        status=AuctionStatus.FINISHED,
        end_date=ended,
        finalized_at=ended,
        winner=winner,
        winning_bid=1_500_000,
        **overrides
    )


@pytest.mark.django_db
class TestConfirmPurchase:

    def test_winner_confirms(self, seller, bidder, django_capture_on_commit_callbacks):
        auction = won_auction(seller, bidder, hours_ago=1)

        with django_capture_on_commit_callbacks(execute=True):
            result = confirm_purchase(auction_id=auction.id, user=bidder)

        assert result.purchase_confirmed is True
        assert Notification.objects.filter(
            user=seller, kind=NotificationKind.PURCHASE_CONFIRMED
        ).exists()

    def test_staff_confirms(self, seller, bidder, staff_user):
        auction = won_auction(seller, bidder, hours_ago=1)

        assert confirm_purchase(auction_id=auction.id, user=staff_user).purchase_confirmed

    def test_other_user(self, seller, bidder, other_bidder):
        auction = won_auction(seller, bidder, hours_ago=1)

        with pytest.raises(NotAuctionWinnerError):
            confirm_purchase(auction_id=auction.id, user=other_bidder)

    def test_not_finished(self, active_auction, bidder):
        with pytest.raises(InvalidTransitionError):
            confirm_purchase(auction_id=active_auction.id, user=bidder)


@pytest.mark.django_db
class TestPenalizeAbandoned:

    def test_penalizes_once(self, seller, bidder, django_capture_on_commit_callbacks):
        fund(bidder, 15)
        auction = won_auction(seller, bidder)

        with django_capture_on_commit_callbacks(execute=True):
            assert penalize_abandoned_auctions() == 1
        assert penalize_abandoned_auctions() == 0

        assert get_balance(user_id=bidder.id) == 15
        auction.refresh_from_db()
        assert auction.penalized is True
        assert Notification.objects.filter(
            user=bidder, kind=NotificationKind.PENALTY_APPLIED
        ).exists()
        assert CreditMovement.objects.filter(
            account__user=bidder, kind=MovementKind.PENALTY, amount=-10
        ).count() == 1

    def test_penalty_capped_at_balance(self, seller):
        winner = make_user('poor@example.com')
        fund(winner, 4)
        auction = won_auction(seller, winner)

        assert penalize_abandoned_auctions() == 1

        assert get_balance(user_id=winner.id) == 0
        auction.refresh_from_db()
        assert auction.penalized is True

    def test_within_grace_period(self, seller, bidder):
        won_auction(seller, bidder, hours_ago=47)

        assert penalize_abandoned_auctions() == 0
        assert get_balance(user_id=bidder.id) == 10

    def test_confirmed_purchase(self, seller, bidder):
        won_auction(seller, bidder, purchase_confirmed=True)

        assert penalize_abandoned_auctions() == 0

    def test_grace_period_starts_at_finalization(self, seller, bidder):
        """An auction finalized days after its end date still gets the full period."""
        auction = make_auction(seller, end_date=timezone.now() - timedelta(days=3))
        make_bid(auction, bidder, 1_500_000)
        pause_auction(auction_id=auction.id)
        resume_auction(auction_id=auction.id)
        result = finalize_auction(auction_id=auction.id)
        assert result.winner_id == bidder.id

        assert penalize_abandoned_auctions(now=timezone.now() + timedelta(minutes=1)) == 0
        assert get_balance(user_id=bidder.id) == 10

        assert penalize_abandoned_auctions(now=timezone.now() + timedelta(hours=49)) == 1
        assert get_balance(user_id=bidder.id) == 0

    def test_command(self, seller, bidder):
        won_auction(seller, bidder)
        out = StringIO()

        call_command('penalize_abandoned', stdout=out)

        assert 'Penalized 1 winner(s).' in out.getvalue()

    def test_blocks_winner(self, seller, bidder, active_auction, django_capture_on_commit_callbacks):
        won_auction(seller, bidder)

        with django_capture_on_commit_callbacks(execute=True):
            penalize_abandoned_auctions()

        assert is_blocked(bidder) is True
        assert Notification.objects.filter(
            user=bidder, kind=NotificationKind.ACCOUNT_BLOCKED
        ).exists()
        with pytest.raises(AccountBlockedError):
            place_bid(auction_id=active_auction.id, bidder=bidder, amount=1_050_000)

    def test_unblocked_winner_can_bid_again(self, seller, bidder, active_auction):
        won_auction(seller, bidder)
        fund(bidder, 1)
        penalize_abandoned_auctions()

        unblock_user(user_id=bidder.id)

        placement = place_bid(auction_id=active_auction.id, bidder=bidder, amount=1_050_000)
        assert placement.bid.bidder_id == bidder.id

    def test_blocking_disabled(self, seller, bidder, settings):
        settings.AUCTION_BLOCK_ON_ABANDON = False
        won_auction(seller, bidder)

        assert penalize_abandoned_auctions() == 1

        assert is_blocked(bidder) is False
        assert get_balance(user_id=bidder.id) == 0

    def test_confirmed_winner_not_blocked(self, seller, bidder):
        won_auction(seller, bidder, purchase_confirmed=True)

        penalize_abandoned_auctions()

        assert is_blocked(bidder) is False


# =============================================================================
# Concurrency
# =============================================================================

class TestConcurrentBidding(TransactionTestCase):
    """
    Racing bids and finalizations.

    TransactionTestCase lets every thread commit on its own connection;
    each thread closes its connection when done.
    """

    def setUp(self):
        self.seller = make_user('seller@test.com')
        self.bidders = []
        for i in range(5):
            user = make_user(f'bidder{i}@test.com')
            fund(user, 5)
            self.bidders.append(user)

    def _race(self, calls):
        """Run the callables at the same time; return (results, errors)."""
        barrier = threading.Barrier(len(calls))
        results, errors = [], []

        def run(call):
            try:
                barrier.wait()
                results.append(call())
            except Exception as e:
                errors.append(e)
            finally:
                connection.close()

        threads = [threading.Thread(target=run, args=(call,)) for call in calls]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        return results, errors

    def _bid(self, auction, bidder, amount):
        return lambda: place_bid(auction_id=auction.id, bidder=bidder, amount=amount)

    def test_racing_bids_end_with_highest_leader(self):
        """2,000,000 and 2,100,000 at once: 2,100,000 leads, no lost update."""
        auction = make_auction(self.seller, start_price=1_900_000, min_increment=50_000)

        results, errors = self._race([
            self._bid(auction, self.bidders[0], 2_000_000),
            self._bid(auction, self.bidders[1], 2_100_000),
        ])

        assert all(isinstance(e, BidTooLowError) for e in errors), errors
        assert get_top_bid(auction).amount == 2_100_000
        accepted = list(auction.bids.order_by('created_at').values_list('amount', flat=True))
        assert accepted[-1] == 2_100_000
        for previous, current in zip(accepted, accepted[1:]):
            assert current >= previous + 50_000
        # Every accepted bid paid exactly one credit, rejected ones nothing
        spent = sum(5 - get_balance(user_id=b.id) for b in self.bidders[:2])
        assert spent == len(accepted) == len(results)

    def test_slower_bid_revalidated_against_leader(self):
        auction = make_auction(self.seller, start_price=1_900_000, min_increment=50_000)

        place_bid(auction_id=auction.id, bidder=self.bidders[1], amount=2_100_000)
        with pytest.raises(BidTooLowError):
            place_bid(auction_id=auction.id, bidder=self.bidders[0], amount=2_000_000)

        assert auction.bids.count() == 1
        assert get_balance(user_id=self.bidders[0].id) == 5

    def test_equal_bids_accept_exactly_one(self):
        auction = make_auction(self.seller, start_price=1_000_000, min_increment=50_000)

        results, errors = self._race([
            self._bid(auction, bidder, 1_050_000) for bidder in self.bidders
        ])

        assert len(results) == 1
        assert len(errors) == 4
        assert all(isinstance(e, BidTooLowError) for e in errors)
        assert auction.bids.count() == 1
        total_balance = sum(get_balance(user_id=b.id) for b in self.bidders)
        assert total_balance == 5 * 5 - 1

    def test_concurrent_late_bids_keep_latest_extension(self):
        auction = make_auction(
            self.seller,
            start_price=1_000_000,
            min_increment=1,
            end_date=timezone.now() + timedelta(seconds=20),
        )
        original_end = auction.end_date

        results, errors = self._race([
            self._bid(auction, bidder, 1_100_000 + i * 100_000)
            for i, bidder in enumerate(self.bidders)
        ])

        assert all(isinstance(e, BidTooLowError) for e in errors), errors
        auction.refresh_from_db()
        latest_bid = auction.bids.order_by('-created_at').first()
        assert auction.end_date >= original_end
        assert auction.end_date == latest_bid.created_at + timedelta(seconds=120)

    def test_racing_finalizations_pay_one_win(self):
        auction = make_auction(self.seller, end_date=timezone.now() - timedelta(seconds=1))
        make_bid(auction, self.bidders[0], 1_500_000)

        results, errors = self._race([
            lambda: finalize_auction(auction_id=auction.id) for _ in range(4)
        ])

        assert errors == []
        assert len(results) == 4
        assert sum(1 for r in results if not r.already_finalized) == 1
        assert {(r.winner_id, r.winning_bid) for r in results} == {(self.bidders[0].id, 1_500_000)}
        assert Notification.objects.filter(
            user=self.bidders[0], kind=NotificationKind.AUCTION_WON
        ).count() == 1
