from dataclasses import asdict

from django.db.models import Q
from rest_framework import mixins, viewsets, status
from rest_framework.decorators import action
from rest_framework.exceptions import NotFound
from rest_framework.permissions import IsAuthenticated, IsAdminUser, AllowAny
from rest_framework.response import Response
from rest_framework.pagination import PageNumberPagination
from drf_spectacular.utils import extend_schema

from apps.credits.services import (
    CreditsServiceError,
    InsufficientCreditsError,
    WriteConflictError,
)
from .models import Auction, AuctionStatus
from .serializers import (
    AuctionCreateSerializer,
    AuctionSerializer,
    BidPlacementSerializer,
    BidSerializer,
    FinalizationResultSerializer,
    PlaceBidSerializer,
    SubmitAuctionSerializer,
)
from .services import (
    approve_auction,
    confirm_purchase,
    create_auction,
    delete_auction,
    finalize_auction,
    highlight_auction,
    pause_auction,
    place_bid,
    resume_auction,
    submit_auction,
    # Exceptions
    AccountBlockedError,
    AuctionsServiceError,
    AuctionNotFoundError,
    AuctionNotActiveError,
    AuctionNotEndedError,
    BidExceedsMaxError,
    BidTooLowError,
    InvalidAuctionError,
    InvalidTransitionError,
    NotAuctionOwnerError,
    NotAuctionWinnerError,
    NotVerifiedError,
)


ERROR_STATUS = (
    (InsufficientCreditsError, status.HTTP_402_PAYMENT_REQUIRED),
    (NotVerifiedError, status.HTTP_403_FORBIDDEN),
    (AccountBlockedError, status.HTTP_403_FORBIDDEN),
    (NotAuctionOwnerError, status.HTTP_403_FORBIDDEN),
    (NotAuctionWinnerError, status.HTTP_403_FORBIDDEN),
    (AuctionNotFoundError, status.HTTP_404_NOT_FOUND),
    (AuctionNotActiveError, status.HTTP_409_CONFLICT),
    (InvalidTransitionError, status.HTTP_409_CONFLICT),
    (AuctionNotEndedError, status.HTTP_409_CONFLICT),
    (BidTooLowError, status.HTTP_400_BAD_REQUEST),
    (BidExceedsMaxError, status.HTTP_400_BAD_REQUEST),
    (InvalidAuctionError, status.HTTP_400_BAD_REQUEST),
    (WriteConflictError, status.HTTP_503_SERVICE_UNAVAILABLE),
)

SERVICE_ERRORS = (AuctionsServiceError, CreditsServiceError)


def error_response(exc):
    """Translate a service exception into ``{"error", "code"}``."""
    for exc_class, status_code in ERROR_STATUS:
        if isinstance(exc, exc_class):
            break
    else:
        status_code = status.HTTP_400_BAD_REQUEST

    body = {'error': str(exc), 'code': exc.code}
    if isinstance(exc, BidTooLowError):
        body['minimum'] = exc.minimum
    elif isinstance(exc, InsufficientCreditsError):
        body['balance'] = exc.balance
    return Response(body, status=status_code)


class AuctionPagination(PageNumberPagination):
    page_size = 20
    page_size_query_param = 'page_size'
    max_page_size = 100


class AuctionViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.CreateModelMixin,
    mixins.DestroyModelMixin,
    viewsets.GenericViewSet
):
    """
    Vehicle auctions.

    All business logic is handled by services; views translate service
    exceptions into HTTP responses.

    list: Active auctions, highlighted first, closing soonest first
    create: Create a draft auction
    retrieve: Auction detail (drafts only for their seller and staff)
    destroy: Delete a draft or pending auction
    """

    serializer_class = AuctionSerializer
    pagination_class = AuctionPagination
    lookup_value_regex = '[0-9a-f-]{36}'

    def get_queryset(self):
        queryset = Auction.objects.select_related('seller', 'winner')
        if self.action == 'list':
            return queryset.filter(status=AuctionStatus.ACTIVE).order_by('-is_highlighted', 'end_date')

        user = self.request.user
        if user.is_authenticated and user.is_staff:
            return queryset
        public = Q(status__in=[AuctionStatus.ACTIVE, AuctionStatus.PAUSED, AuctionStatus.FINISHED])
        if user.is_authenticated:
            return queryset.filter(public | Q(seller=user))
        return queryset.filter(public)

    def get_permissions(self):
        if self.action in ['approve', 'pause', 'resume', 'finalize']:
            return [IsAdminUser()]
        if self.action in ['list', 'retrieve']:
            return [AllowAny()]
        if self.action == 'bids' and self.request.method == 'GET':
            return [AllowAny()]
        return [IsAuthenticated()]

    def _auction_response(self, auction, status_code=status.HTTP_200_OK):
        serializer = AuctionSerializer(auction, context={'request': self.request})
        return Response(serializer.data, status=status_code)

    def _check_visible(self, pk):
        if not self.get_queryset().filter(pk=pk).exists():
            raise NotFound('Auction not found.')

    @extend_schema(request=AuctionCreateSerializer, responses={201: AuctionSerializer})
    def create(self, request, *args, **kwargs):
        """Create a draft auction."""
        serializer = AuctionCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            auction = create_auction(seller=request.user, **serializer.validated_data)
        except SERVICE_ERRORS as e:
            return error_response(e)

        return self._auction_response(auction, status.HTTP_201_CREATED)

    def destroy(self, request, *args, **kwargs):
        """Delete a draft or pending auction (pending ones are refunded)."""
        try:
            delete_auction(auction_id=self.kwargs['pk'], user=request.user)
        except SERVICE_ERRORS as e:
            return error_response(e)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=False, methods=['get'])
    def mine(self, request):
        """Auctions created by the authenticated user, in any status."""
        queryset = Auction.objects.filter(seller=request.user).select_related('seller', 'winner')
        page = self.paginate_queryset(queryset)
        serializer = AuctionSerializer(page, many=True, context={'request': request})
        return self.get_paginated_response(serializer.data)

    @extend_schema(request=SubmitAuctionSerializer, responses={200: AuctionSerializer})
    @action(detail=True, methods=['post'])
    def submit(self, request, pk=None):
        """Submit a draft for approval, paying the publication cost."""
        serializer = SubmitAuctionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            auction = submit_auction(
                auction_id=pk,
                seller=request.user,
                services=serializer.validated_data['services']
            )
        except SERVICE_ERRORS as e:
            return error_response(e)
        return self._auction_response(auction)

    @extend_schema(request=None, responses={200: AuctionSerializer})
    @action(detail=True, methods=['post'])
    def approve(self, request, pk=None):
        try:
            auction = approve_auction(auction_id=pk)
        except SERVICE_ERRORS as e:
            return error_response(e)
        return self._auction_response(auction)

    @extend_schema(request=None, responses={200: AuctionSerializer})
    @action(detail=True, methods=['post'])
    def pause(self, request, pk=None):
        try:
            auction = pause_auction(auction_id=pk)
        except SERVICE_ERRORS as e:
            return error_response(e)
        return self._auction_response(auction)

    @extend_schema(request=None, responses={200: AuctionSerializer})
    @action(detail=True, methods=['post'])
    def resume(self, request, pk=None):
        try:
            auction = resume_auction(auction_id=pk)
        except SERVICE_ERRORS as e:
            return error_response(e)
        return self._auction_response(auction)

    @extend_schema(request=None, responses={200: FinalizationResultSerializer})
    @action(detail=True, methods=['post'])
    def finalize(self, request, pk=None):
        """Finalize an expired auction. Repeated calls return the same outcome."""
        try:
            result = finalize_auction(auction_id=pk)
        except SERVICE_ERRORS as e:
            return error_response(e)
        return Response(FinalizationResultSerializer(asdict(result)).data)

    @extend_schema(
        methods=['POST'],
        request=PlaceBidSerializer,
        responses={201: BidPlacementSerializer},
    )
    @extend_schema(methods=['GET'], responses={200: BidSerializer(many=True)})
    @action(detail=True, methods=['get', 'post'])
    def bids(self, request, pk=None):
        """Bid history (leader first) or place a new bid."""
        if request.method == 'GET':
            self._check_visible(pk)
            queryset = (
                Auction.objects.get(pk=pk).bids
                .select_related('bidder')
                .order_by('-amount', 'created_at')
            )
            page = self.paginate_queryset(queryset)
            return self.get_paginated_response(BidSerializer(page, many=True).data)

        serializer = PlaceBidSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            placement = place_bid(
                auction_id=pk,
                bidder=request.user,
                amount=serializer.validated_data['amount']
            )
        except SERVICE_ERRORS as e:
            return error_response(e)

        output = BidPlacementSerializer({
            'bid': placement.bid,
            'end_date': placement.end_date,
            'extended': placement.extended,
        })
        return Response(output.data, status=status.HTTP_201_CREATED)

    @extend_schema(request=None, responses={200: AuctionSerializer})
    @action(detail=True, methods=['post'])
    def highlight(self, request, pk=None):
        """Feature the auction for a fixed number of credits."""
        try:
            auction = highlight_auction(auction_id=pk, seller=request.user)
        except SERVICE_ERRORS as e:
            return error_response(e)
        return self._auction_response(auction)

    @extend_schema(request=None, responses={200: AuctionSerializer})
    @action(detail=True, methods=['post'])
    def confirm_purchase(self, request, pk=None):
        try:
            auction = confirm_purchase(auction_id=pk, user=request.user)
        except SERVICE_ERRORS as e:
            return error_response(e)
        return self._auction_response(auction)
