"""
Tests — Facility directory lookups.

@file facilities/tests/test_services.py
"""

import uuid

import pytest

from core.exceptions import ResourceNotFoundError
from facilities.services import FacilityDirectory
from tests.factories import FacilityFactory


pytestmark = pytest.mark.django_db


class TestFacilityDirectory:
    def test_get_active(self):
        facility = FacilityFactory()
        assert FacilityDirectory.get_active(facility.pk) == facility

    def test_inactive_facility_is_not_found(self):
        facility = FacilityFactory(is_active=False)
        with pytest.raises(ResourceNotFoundError):
            FacilityDirectory.get_active(facility.pk)

    def test_unknown_facility(self):
        with pytest.raises(ResourceNotFoundError, match='Facility not found'):
            FacilityDirectory.get_active(uuid.uuid4())
