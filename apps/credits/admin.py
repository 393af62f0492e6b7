from django.contrib import admin
from .models import CreditAccount, CreditMovement, PublicationService


class CreditMovementInline(admin.TabularInline):
    model = CreditMovement
    fields = ['created_at', 'kind', 'amount', 'resulting_balance', 'description']
    readonly_fields = fields
    ordering = ['-created_at', '-id']
    extra = 0
    can_delete = False
    show_change_link = False

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(CreditAccount)
class CreditAccountAdmin(admin.ModelAdmin):
    """
    Read-only view of balances.

    Balances change only through the ledger (POST /api/credits/adjust/
    for operator corrections), never by editing rows here.
    """

    list_display = ['user', 'balance', 'updated_at']
    search_fields = ['user__email']
    readonly_fields = ['user', 'balance', 'created_at', 'updated_at']
    inlines = [CreditMovementInline]

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(CreditMovement)
class CreditMovementAdmin(admin.ModelAdmin):
    list_display = ['account', 'kind', 'amount', 'resulting_balance', 'created_at']
    list_filter = ['kind', 'created_at']
    search_fields = ['account__user__email', 'description']
    date_hierarchy = 'created_at'

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(PublicationService)
class PublicationServiceAdmin(admin.ModelAdmin):
    list_display = ['code', 'credit_cost', 'is_active', 'description']
    list_filter = ['is_active']
    list_editable = ['credit_cost', 'is_active']
