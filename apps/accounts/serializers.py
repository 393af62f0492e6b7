from rest_framework import serializers
from .models import User


class UserSerializer(serializers.ModelSerializer):
    """Basic user serializer for profile display."""

    class Meta:
        model = User
        fields = [
            'id',
            'email',
            'display_name',
            'identity_verified',
            'blocked',
            'blocked_at',
            'created_at',
            'last_login',
        ]
        read_only_fields = fields


class UserPublicSerializer(serializers.ModelSerializer):
    """Public user info shown next to bids and auctions."""

    display_name = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = ['id', 'display_name']
        read_only_fields = fields

    def get_display_name(self, obj):
        return obj.get_display_name()


class IdentityVerificationSerializer(serializers.Serializer):
    verified = serializers.BooleanField(default=True)


class AccountBlockSerializer(serializers.Serializer):
    blocked = serializers.BooleanField()
    reason = serializers.CharField(max_length=200, required=False)
