from django.db import models
from django.conf import settings
from django.db.models import Q
from django.utils import timezone
import uuid


class AuctionStatus(models.TextChoices):
    DRAFT = 'draft', 'Draft'
    PENDING_APPROVAL = 'pending_approval', 'Pending Approval'
    ACTIVE = 'active', 'Active'
    PAUSED = 'paused', 'Paused'
    FINISHED = 'finished', 'Finished'


class Auction(models.Model):
    """
    Time-boxed auction of one vehicle.

    ``end_date`` only moves forward once the auction is active: late bids
    push it out, nothing pulls it back. Winner fields are written once,
    together with the transition to ``finished``.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    vehicle_id = models.UUIDField(db_index=True)
    seller = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name='auctions'
    )

    # Pricing (CLP)
    start_price = models.PositiveBigIntegerField()
    reserve_price = models.PositiveBigIntegerField()
    min_increment = models.PositiveBigIntegerField()

    # Timing
    duration_days = models.PositiveSmallIntegerField(default=7)
    start_date = models.DateTimeField(null=True, blank=True)
    end_date = models.DateTimeField(null=True, blank=True)

    status = models.CharField(
        max_length=20,
        choices=AuctionStatus.choices,
        default=AuctionStatus.DRAFT
    )
    is_approved = models.BooleanField(default=False)

    # Outcome
    winner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='won_auctions'
    )
    winning_bid = models.PositiveBigIntegerField(null=True, blank=True)
    finalized_at = models.DateTimeField(null=True, blank=True)

    # Publication
    services = models.JSONField(default=list, blank=True)
    publication_credits = models.PositiveIntegerField(default=0)
    is_highlighted = models.BooleanField(default=False)

    # Settlement
    purchase_confirmed = models.BooleanField(default=False)
    penalized = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'auctions'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status', 'end_date'], name='auction_status_end_idx'),
            models.Index(fields=['seller', '-created_at'], name='auction_seller_idx'),
        ]
        constraints = [
            models.CheckConstraint(
                condition=(
                    Q(winner__isnull=True, winning_bid__isnull=True)
                    | Q(winner__isnull=False, winning_bid__isnull=False)
                ),
                name='auction_winner_and_bid_together'
            ),
        ]

    def __str__(self):
        return f"Auction {self.id} ({self.status})"

    def is_seller(self, user):
        return user is not None and self.seller_id == user.pk

    def has_ended(self, now=None):
        if self.end_date is None:
            return False
        return (now or timezone.now()) >= self.end_date


class Bid(models.Model):
    """Immutable offer on an auction."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    auction = models.ForeignKey(Auction, on_delete=models.CASCADE, related_name='bids')
    bidder = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name='bids'
    )
    amount = models.PositiveBigIntegerField()

    # Guarantee shown to the bidder, not charged anywhere
    hold_amount = models.PositiveBigIntegerField()

    # Server clock of the placing transaction, never client supplied
    created_at = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        db_table = 'bids'
        ordering = ['-amount', 'created_at']
        indexes = [
            models.Index(fields=['auction', '-amount', 'created_at'], name='bid_auction_leader_idx'),
            models.Index(fields=['bidder', '-created_at'], name='bid_bidder_idx'),
        ]

    def __str__(self):
        return f"{self.amount} on {self.auction_id}"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValueError("Bids are immutable")
        super().save(*args, **kwargs)
