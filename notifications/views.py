"""
Notifications — Views

List the caller's facility notifications and mark them read.

@file notifications/views.py
"""

from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from users.permissions import IsFacilityMember

from .serializers import NotificationReadSerializer
from .services import NotificationDispatcher


class NotificationViewSet(mixins.ListModelMixin, viewsets.GenericViewSet):
    permission_classes = [IsAuthenticated, IsFacilityMember]
    serializer_class = NotificationReadSerializer
    filterset_fields = ['type', 'is_read', 'priority']
    ordering_fields = ['created_at', 'priority']
    ordering = ['-created_at']

    def get_queryset(self):
        return NotificationDispatcher.for_user(self.request.user)

    @action(detail=True, methods=['post'], url_path='read')
    def read(self, request, pk=None):
        notification = NotificationDispatcher.mark_read(notification_id=pk, user=request.user)
        return Response(
            NotificationReadSerializer(notification, context={'request': request}).data,
            status=status.HTTP_200_OK,
        )

    @action(detail=False, methods=['post'], url_path='read-all')
    def read_all(self, request):
        updated = NotificationDispatcher.mark_all_read(user=request.user)
        return Response({'updated': updated}, status=status.HTTP_200_OK)
