from rest_framework import serializers

from apps.accounts.models import User
from .models import CreditMovement, MovementKind, PublicationService


class CreditMovementSerializer(serializers.ModelSerializer):
    class Meta:
        model = CreditMovement
        fields = ['id', 'kind', 'amount', 'description', 'resulting_balance', 'created_at']
        read_only_fields = fields


class PublicationServiceSerializer(serializers.ModelSerializer):
    class Meta:
        model = PublicationService
        fields = ['code', 'credit_cost', 'description']
        read_only_fields = fields


class CreditPackSerializer(serializers.Serializer):
    id = serializers.CharField()
    name = serializers.CharField()
    credits = serializers.IntegerField()
    price_clp = serializers.IntegerField()


class BalanceSerializer(serializers.Serializer):
    balance = serializers.IntegerField()


class PurchasePackSerializer(serializers.Serializer):
    pack_id = serializers.CharField(max_length=50)


class PublicationCostSerializer(serializers.Serializer):
    services = serializers.ListField(
        child=serializers.CharField(max_length=50),
        required=False,
        default=list
    )


class AdjustBalanceSerializer(serializers.Serializer):
    user_id = serializers.UUIDField()
    amount = serializers.IntegerField()
    description = serializers.CharField(max_length=255)
    kind = serializers.ChoiceField(
        choices=[MovementKind.BONUS, MovementKind.ADMIN_ADJUSTMENT],
        default=MovementKind.ADMIN_ADJUSTMENT
    )

    def validate_amount(self, value):
        if value == 0:
            raise serializers.ValidationError("Amount cannot be zero.")
        return value

    def validate_user_id(self, value):
        if not User.objects.filter(pk=value).exists():
            raise serializers.ValidationError("User not found.")
        return value
