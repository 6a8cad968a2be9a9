"""
Core — Views

Read-only activity log of the caller's facility, newest first.

@file core/views.py
"""

from rest_framework import viewsets
from rest_framework.permissions import IsAuthenticated

from users.permissions import IsFacilityMember

from .filters import AuditLogFilter
from .models import AuditLog
from .serializers import AuditLogSerializer


class AuditLogViewSet(viewsets.ReadOnlyModelViewSet):
    """
    Filter by ``user`` (actor id), ``module``, ``action`` and a timestamp
    range given as ISO-8601 ``after`` / ``before``.
    """

    permission_classes = [IsAuthenticated, IsFacilityMember]
    serializer_class = AuditLogSerializer
    filterset_class = AuditLogFilter
    search_fields = ['message']
    ordering_fields = ['timestamp', 'module']
    ordering = ['-timestamp']

    def get_queryset(self):
        return (
            AuditLog.objects
            .filter(facility_id=self.request.user.facility_id)
            .select_related('actor')
        )
