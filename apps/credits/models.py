from django.db import models
from django.conf import settings
from django.db.models import Q


class MovementKind(models.TextChoices):
    PURCHASE = 'purchase', 'Purchase'
    BID = 'bid', 'Bid'
    PUBLICATION = 'publication', 'Publication'
    HIGHLIGHT = 'highlight', 'Highlight'
    RENEWAL = 'renewal', 'Renewal'
    PENALTY = 'penalty', 'Penalty'
    BONUS = 'bonus', 'Bonus'
    ADMIN_ADJUSTMENT = 'admin_adjustment', 'Admin Adjustment'


class CreditAccount(models.Model):
    """
    Credit balance of a single user.

    The balance is only ever written by the ledger service, together with
    the movement that explains the change.
    """

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='credit_account'
    )
    balance = models.IntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'credit_accounts'
        constraints = [
            models.CheckConstraint(
                condition=Q(balance__gte=0),
                name='credit_account_balance_non_negative'
            ),
        ]

    def __str__(self):
        return f"{self.user_id}: {self.balance}"


class CreditMovement(models.Model):
    """Append-only ledger entry. Rows are never updated or deleted."""

    account = models.ForeignKey(
        CreditAccount,
        on_delete=models.PROTECT,
        related_name='movements'
    )
    kind = models.CharField(max_length=20, choices=MovementKind.choices)
    amount = models.IntegerField()
    description = models.CharField(max_length=255, blank=True)
    resulting_balance = models.IntegerField()
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        db_table = 'credit_movements'
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['account', '-created_at'], name='movement_account_created_idx'),
            models.Index(fields=['kind'], name='movement_kind_idx'),
        ]
        constraints = [
            models.CheckConstraint(
                condition=~Q(amount=0),
                name='credit_movement_amount_non_zero'
            ),
        ]

    def __str__(self):
        return f"{self.kind} {self.amount:+d} -> {self.resulting_balance}"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValueError("Credit movements are immutable")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValueError("Credit movements cannot be deleted")


class PublicationService(models.Model):
    """Optional service a seller can add when publishing an auction."""

    code = models.SlugField(max_length=50, unique=True)
    credit_cost = models.PositiveIntegerField()
    description = models.CharField(max_length=255, blank=True)
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = 'publication_services'
        ordering = ['credit_cost', 'code']

    def __str__(self):
        return f"{self.code} ({self.credit_cost})"
