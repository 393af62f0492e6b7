from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAdminUser, IsAuthenticated
from rest_framework.response import Response
from drf_spectacular.utils import extend_schema

from .serializers import UserSerializer, IdentityVerificationSerializer, AccountBlockSerializer
from .services import set_identity_verified, block_user, unblock_user, UserNotFoundError


@extend_schema(
    responses={200: UserSerializer},
    description="Get the authenticated user's profile and verification status.",
    tags=['auth'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def get_current_user(request):
    """Get current user profile."""
    return Response(UserSerializer(request.user).data)


@extend_schema(
    request=IdentityVerificationSerializer,
    responses={200: UserSerializer},
    description="Record the outcome of an identity review (staff only).",
    tags=['auth'],
)
@api_view(['POST'])
@permission_classes([IsAdminUser])
def verify_identity(request, pk):
    """Mark a user's identity as verified or revoke it."""
    serializer = IdentityVerificationSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        user = set_identity_verified(
            user_id=pk,
            verified=serializer.validated_data['verified']
        )
    except UserNotFoundError as e:
        return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)

    return Response(UserSerializer(user).data)


@extend_schema(
    request=AccountBlockSerializer,
    responses={200: UserSerializer},
    description="Block a user or lift a block (staff only).",
    tags=['auth'],
)
@api_view(['POST'])
@permission_classes([IsAdminUser])
def set_account_block(request, pk):
    """Block or unblock a user's account."""
    serializer = AccountBlockSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    try:
        if data['blocked']:
            kwargs = {'reason': data['reason']} if 'reason' in data else {}
            user = block_user(user_id=pk, **kwargs)
        else:
            user = unblock_user(user_id=pk)
    except UserNotFoundError as e:
        return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)

    return Response(UserSerializer(user).data)
