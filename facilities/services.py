"""
Facilities — Directory

Read-only facility lookups used for destination validation and
authorization. Facility CRUD lives outside this project.

@file facilities/services.py
"""

from core.exceptions import ResourceNotFoundError

from .models import Facility


class FacilityDirectory:
    """Lookups against the facility registry."""

    @staticmethod
    def get_active(facility_id) -> Facility:
        facility = Facility.objects.filter(pk=facility_id, is_active=True).first()
        if facility is None:
            raise ResourceNotFoundError(detail='Facility not found.')
        return facility
