from django.db import models
from django.conf import settings


class NotificationKind(models.TextChoices):
    BID_RECEIVED = 'bid_received', 'Bid Received'
    AUCTION_APPROVED = 'auction_approved', 'Auction Approved'
    AUCTION_WON = 'auction_won', 'Auction Won'
    AUCTION_SOLD = 'auction_sold', 'Auction Sold'
    AUCTION_RESERVE_NOT_MET = 'auction_reserve_not_met', 'Reserve Not Met'
    AUCTION_NO_OFFERS = 'auction_no_offers', 'No Offers'
    PURCHASE_CONFIRMED = 'purchase_confirmed', 'Purchase Confirmed'
    PENALTY_APPLIED = 'penalty_applied', 'Penalty Applied'
    CREDITS_ADDED = 'credits_added', 'Credits Added'
    ACCOUNT_BLOCKED = 'account_blocked', 'Account Blocked'


class Notification(models.Model):
    """In-app message for a user. Delivery channels consume these rows."""

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='notifications'
    )
    title = models.CharField(max_length=200)
    message = models.TextField()
    kind = models.CharField(max_length=40, choices=NotificationKind.choices, db_index=True)
    is_read = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'notifications'
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['user', 'is_read'], name='notif_user_read_idx'),
        ]

    def __str__(self):
        return f"{self.kind} -> {self.user_id}"
