from django.conf import settings
from rest_framework import serializers

from apps.accounts.serializers import UserPublicSerializer
from .models import Auction, Bid


class BidSerializer(serializers.ModelSerializer):
    bidder = UserPublicSerializer(read_only=True)

    class Meta:
        model = Bid
        fields = ['id', 'bidder', 'amount', 'hold_amount', 'created_at']
        read_only_fields = fields


class PlaceBidSerializer(serializers.Serializer):
    amount = serializers.IntegerField(min_value=1)


class AuctionSerializer(serializers.ModelSerializer):
    """
    Auction detail.

    The reserve price is hidden from everyone but the seller and staff.
    """

    seller = UserPublicSerializer(read_only=True)
    winner = UserPublicSerializer(read_only=True)
    current_price = serializers.SerializerMethodField()
    bid_count = serializers.SerializerMethodField()

    class Meta:
        model = Auction
        fields = [
            'id',
            'vehicle_id',
            'seller',
            'start_price',
            'reserve_price',
            'min_increment',
            'current_price',
            'bid_count',
            'duration_days',
            'start_date',
            'end_date',
            'status',
            'is_approved',
            'is_highlighted',
            'services',
            'publication_credits',
            'winner',
            'winning_bid',
            'purchase_confirmed',
            'finalized_at',
            'created_at',
        ]
        read_only_fields = fields

    def get_current_price(self, obj):
        top = obj.bids.order_by('-amount', 'created_at').values_list('amount', flat=True).first()
        return top if top is not None else obj.start_price

    def get_bid_count(self, obj):
        return obj.bids.count()

    def to_representation(self, instance):
        data = super().to_representation(instance)
        request = self.context.get('request')
        user = getattr(request, 'user', None)
        if not (user and (user.is_staff or instance.is_seller(user))):
            data.pop('reserve_price', None)
        return data


class AuctionCreateSerializer(serializers.Serializer):
    vehicle_id = serializers.UUIDField()
    start_price = serializers.IntegerField(min_value=1)
    reserve_price = serializers.IntegerField(min_value=0)
    min_increment = serializers.IntegerField(min_value=1)
    duration_days = serializers.IntegerField(
        min_value=1,
        max_value=settings.AUCTION_MAX_DURATION_DAYS,
        default=7
    )


class SubmitAuctionSerializer(serializers.Serializer):
    services = serializers.ListField(
        child=serializers.CharField(max_length=50),
        required=False,
        default=list
    )


class BidPlacementSerializer(serializers.Serializer):
    bid = BidSerializer()
    end_date = serializers.DateTimeField()
    extended = serializers.BooleanField()


class FinalizationResultSerializer(serializers.Serializer):
    auction_id = serializers.UUIDField()
    winner_id = serializers.UUIDField(allow_null=True)
    winning_bid = serializers.IntegerField(allow_null=True)
    reserve_met = serializers.BooleanField()
    already_finalized = serializers.BooleanField()
    status = serializers.CharField()
