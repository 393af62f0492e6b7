from dataclasses import asdict

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated, IsAdminUser, AllowAny
from rest_framework.response import Response
from rest_framework.pagination import PageNumberPagination
from drf_spectacular.utils import extend_schema

from .catalog import CREDIT_PACKS
from .models import PublicationService
from .serializers import (
    AdjustBalanceSerializer,
    BalanceSerializer,
    CreditMovementSerializer,
    CreditPackSerializer,
    PublicationCostSerializer,
    PublicationServiceSerializer,
    PurchasePackSerializer,
)
from .services import (
    adjust_balance,
    get_balance,
    get_movements,
    purchase_credit_pack,
    quote_publication,
    # Exceptions
    InsufficientCreditsError,
    InvalidMovementError,
    UnknownCreditPackError,
    WriteConflictError,
)


class MovementPagination(PageNumberPagination):
    page_size = 20
    page_size_query_param = 'page_size'
    max_page_size = 100


def _error(exc, status_code):
    return Response({'error': str(exc), 'code': exc.code}, status=status_code)


@extend_schema(responses={200: BalanceSerializer}, tags=['credits'])
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def balance(request):
    """Current credit balance of the authenticated user."""
    return Response({'balance': get_balance(user_id=request.user.id)})


@extend_schema(responses={200: CreditMovementSerializer(many=True)}, tags=['credits'])
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def movements(request):
    """Paginated movement history, newest first."""
    paginator = MovementPagination()
    page = paginator.paginate_queryset(get_movements(user_id=request.user.id), request)
    serializer = CreditMovementSerializer(page, many=True)
    return paginator.get_paginated_response(serializer.data)


@extend_schema(responses={200: CreditPackSerializer(many=True)}, tags=['credits'])
@api_view(['GET'])
@permission_classes([AllowAny])
def packs(request):
    return Response(CreditPackSerializer([asdict(p) for p in CREDIT_PACKS], many=True).data)


@extend_schema(
    request=PurchasePackSerializer,
    responses={201: BalanceSerializer},
    description="Buy a credit pack. Payment is simulated and credited immediately.",
    tags=['credits'],
)
@api_view(['POST'])
@permission_classes([IsAuthenticated])
def purchase(request):
    serializer = PurchasePackSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        new_balance = purchase_credit_pack(
            user_id=request.user.id,
            pack_id=serializer.validated_data['pack_id']
        )
    except UnknownCreditPackError as e:
        return _error(e, status.HTTP_404_NOT_FOUND)
    except WriteConflictError as e:
        return _error(e, status.HTTP_503_SERVICE_UNAVAILABLE)

    return Response({'balance': new_balance}, status=status.HTTP_201_CREATED)


@extend_schema(responses={200: PublicationServiceSerializer(many=True)}, tags=['credits'])
@api_view(['GET'])
@permission_classes([AllowAny])
def services(request):
    """Active publication services and their credit cost."""
    queryset = PublicationService.objects.filter(is_active=True)
    return Response(PublicationServiceSerializer(queryset, many=True).data)


@extend_schema(
    request=PublicationCostSerializer,
    description="Total credits needed to publish with the selected services.",
    tags=['credits'],
)
@api_view(['POST'])
@permission_classes([AllowAny])
def publication_cost(request):
    serializer = PublicationCostSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    selected = serializer.validated_data['services']
    return Response({
        'services': selected,
        'total_cost': quote_publication(selected),
    })


@extend_schema(
    request=AdjustBalanceSerializer,
    responses={200: BalanceSerializer},
    description="Operator bonus or adjustment (staff only).",
    tags=['credits'],
)
@api_view(['POST'])
@permission_classes([IsAdminUser])
def adjust(request):
    serializer = AdjustBalanceSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    try:
        new_balance = adjust_balance(
            user_id=data['user_id'],
            amount=data['amount'],
            description=data['description'],
            kind=data['kind'],
        )
    except InsufficientCreditsError as e:
        return _error(e, status.HTTP_402_PAYMENT_REQUIRED)
    except InvalidMovementError as e:
        return _error(e, status.HTTP_400_BAD_REQUEST)
    except WriteConflictError as e:
        return _error(e, status.HTTP_503_SERVICE_UNAVAILABLE)

    return Response({'balance': new_balance})
