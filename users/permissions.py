"""
Users — DRF Permission Classes

Facility-scoped permission checks for ViewSets.

@file users/permissions.py
"""

from rest_framework.permissions import BasePermission


class IsFacilityMember(BasePermission):
    """Requires an authenticated, active user attached to a facility."""

    message = 'Your account is not attached to a facility.'

    def has_permission(self, request, view):
        user = request.user
        return bool(
            user
            and user.is_authenticated
            and user.is_active
            and getattr(user, 'facility_id', None)
        )
