from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.utils.html import format_html
from .models import User
from .services import block_user, unblock_user


def _badge(label, background, color='white'):
    return format_html(
        '<span style="background: {}; color: {}; padding: 3px 8px; '
        'border-radius: 10px; font-size: 11px;">{}</span>',
        background, color, label,
    )


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """
    Admin interface for marketplace users.

    Staff record identity review outcomes here; bidding reads the flag
    on every bid, so revoking it takes effect immediately.
    """

    list_display = [
        'email',
        'display_name',
        'is_active_badge',
        'identity_badge',
        'blocked_badge',
        'created_at',
        'last_login',
    ]

    list_filter = [
        'is_active',
        'is_staff',
        'identity_verified',
        'blocked',
        'created_at',
    ]

    search_fields = [
        'email',
        'display_name',
    ]

    ordering = ['-created_at']
    date_hierarchy = 'created_at'

    fieldsets = (
        ('Basic Information', {
            'fields': ('email', 'display_name', 'password')
        }),
        ('Permissions', {
            'fields': ('is_active', 'is_staff', 'is_superuser', 'groups', 'user_permissions'),
        }),
        ('Identity', {
            'fields': ('identity_verified', 'identity_verified_at'),
        }),
        ('Blocking', {
            'fields': ('blocked', 'blocked_at'),
        }),
        ('Timestamps', {
            'fields': ('created_at', 'last_login'),
            'classes': ('collapse',),
        }),
    )

    add_fieldsets = (
        ('Create User', {
            'classes': ('wide',),
            'fields': ('email', 'display_name', 'password1', 'password2'),
        }),
        ('Permissions', {
            'fields': ('is_active', 'is_staff', 'is_superuser'),
        }),
    )

    readonly_fields = [
        'created_at',
        'last_login',
        'identity_verified_at',
        'blocked_at',
    ]

    filter_horizontal = ['groups', 'user_permissions']

    def is_active_badge(self, obj):
        if obj.is_active:
            return _badge('Active', '#6B8E5E')
        return _badge('Inactive', '#B85C5C')
    is_active_badge.short_description = 'Status'
    is_active_badge.admin_order_field = 'is_active'

    def identity_badge(self, obj):
        if obj.identity_verified:
            return _badge('Verified', '#6B8E5E')
        return _badge('Pending', '#E5C49A', '#2C1810')
    identity_badge.short_description = 'Identity'
    identity_badge.admin_order_field = 'identity_verified'

    def blocked_badge(self, obj):
        if obj.blocked:
            return _badge('Blocked', '#B85C5C')
        return ''
    blocked_badge.short_description = 'Blocked'
    blocked_badge.admin_order_field = 'blocked'

    actions = [
        'verify_identities',
        'revoke_identities',
        'block_users',
        'unblock_users',
        'deactivate_users',
    ]

    @admin.action(description='Mark identity as verified')
    def verify_identities(self, request, queryset):
        count = 0
        for user in queryset.filter(identity_verified=False):
            user.mark_identity_verified()
            count += 1
        self.message_user(request, f'Verified {count} user(s).')

    @admin.action(description='Revoke identity verification')
    def revoke_identities(self, request, queryset):
        count = queryset.update(identity_verified=False, identity_verified_at=None)
        self.message_user(request, f'Revoked verification for {count} user(s).')

    @admin.action(description='Block selected users')
    def block_users(self, request, queryset):
        count = 0
        for user in queryset.filter(blocked=False, is_superuser=False):
            block_user(user_id=user.id)
            count += 1
        self.message_user(request, f'Blocked {count} user(s).')

    @admin.action(description='Lift block on selected users')
    def unblock_users(self, request, queryset):
        count = 0
        for user in queryset.filter(blocked=True):
            unblock_user(user_id=user.id)
            count += 1
        self.message_user(request, f'Unblocked {count} user(s).')

    @admin.action(description='Deactivate selected users')
    def deactivate_users(self, request, queryset):
        """Deactivate selected users (excludes superusers)."""
        safe_queryset = queryset.filter(is_superuser=False)
        count = safe_queryset.update(is_active=False)
        skipped = queryset.count() - count
        msg = f'Deactivated {count} user(s).'
        if skipped:
            msg += f' Skipped {skipped} superuser(s).'
        self.message_user(request, msg)
