from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.pagination import PageNumberPagination

from .models import Notification
from .serializers import NotificationSerializer
from .services import mark_read, NotificationNotFoundError


class NotificationPagination(PageNumberPagination):
    page_size = 20
    page_size_query_param = 'page_size'
    max_page_size = 100


class NotificationViewSet(viewsets.ReadOnlyModelViewSet):
    """
    The authenticated user's inbox.

    list: Newest first, optionally ?unread=true
    read: Mark a notification as read
    """

    serializer_class = NotificationSerializer
    permission_classes = [IsAuthenticated]
    pagination_class = NotificationPagination

    def get_queryset(self):
        queryset = Notification.objects.filter(user=self.request.user)
        if self.request.query_params.get('unread') == 'true':
            queryset = queryset.filter(is_read=False)
        return queryset

    @action(detail=True, methods=['post'])
    def read(self, request, pk=None):
        """Mark notification as read."""
        try:
            notification = mark_read(notification_id=pk, user=request.user)
        except NotificationNotFoundError as e:
            return Response(
                {'error': str(e), 'code': 'not_found'},
                status=status.HTTP_404_NOT_FOUND
            )
        return Response(NotificationSerializer(notification).data)
