from django.contrib import admin, messages

from .models import Auction, AuctionStatus, Bid
from .services import (
    approve_auction,
    pause_auction,
    resume_auction,
    finalize_auction,
    AuctionsServiceError,
)


class BidInline(admin.TabularInline):
    model = Bid
    fields = ['created_at', 'bidder', 'amount', 'hold_amount']
    readonly_fields = fields
    ordering = ['-amount', 'created_at']
    extra = 0
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Auction)
class AuctionAdmin(admin.ModelAdmin):
    """
    Operator back-office for auctions.

    State changes go through the auction services so they lock the row
    and respect the allowed transitions.
    """

    list_display = [
        'id',
        'seller',
        'status',
        'start_price',
        'reserve_price',
        'end_date',
        'winner',
        'winning_bid',
        'is_highlighted',
    ]
    list_filter = ['status', 'is_approved', 'is_highlighted', 'purchase_confirmed', 'penalized']
    search_fields = ['id', 'vehicle_id', 'seller__email']
    date_hierarchy = 'created_at'
    raw_id_fields = ['seller', 'winner']
    readonly_fields = [
        'status', 'is_approved', 'start_date', 'end_date', 'winner', 'winning_bid',
        'finalized_at', 'services', 'publication_credits', 'is_highlighted',
        'purchase_confirmed', 'penalized', 'created_at', 'updated_at',
    ]
    inlines = [BidInline]
    actions = ['approve_selected', 'pause_selected', 'resume_selected', 'finalize_selected']

    def _run(self, request, queryset, operation, verb):
        done = 0
        for auction in queryset:
            try:
                operation(auction_id=auction.id)
                done += 1
            except AuctionsServiceError as e:
                self.message_user(request, f'{auction.id}: {e}', level=messages.WARNING)
        self.message_user(request, f'{verb} {done} auction(s).')

    @admin.action(description='Approve selected auctions')
    def approve_selected(self, request, queryset):
        self._run(request, queryset, approve_auction, 'Approved')

    @admin.action(description='Pause selected auctions')
    def pause_selected(self, request, queryset):
        self._run(request, queryset, pause_auction, 'Paused')

    @admin.action(description='Resume selected auctions')
    def resume_selected(self, request, queryset):
        self._run(request, queryset, resume_auction, 'Resumed')

    @admin.action(description='Finalize selected expired auctions')
    def finalize_selected(self, request, queryset):
        self._run(request, queryset.filter(status=AuctionStatus.ACTIVE), finalize_auction, 'Finalized')


@admin.register(Bid)
class BidAdmin(admin.ModelAdmin):
    list_display = ['auction', 'bidder', 'amount', 'hold_amount', 'created_at']
    search_fields = ['auction__id', 'bidder__email']
    date_hierarchy = 'created_at'

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
