"""
RxBridge — Root conftest for pytest

Shared fixtures available to all test modules: two facilities with a
pharmacist each, and API clients authenticated as either of them.

@file conftest.py
"""

import pytest
from rest_framework.test import APIClient

from tests.factories import FacilityFactory, InventoryLotFactory, SuperuserFactory, UserFactory


@pytest.fixture
def api_client():
    """Unauthenticated DRF test client."""
    return APIClient()


@pytest.fixture
def facility_a(db):
    return FacilityFactory(name='Facility A')


@pytest.fixture
def facility_b(db):
    return FacilityFactory(name='Facility B')


@pytest.fixture
def user_a(facility_a):
    """Pharmacist at facility A, default password TestPass2026!"""
    return UserFactory(facility=facility_a)


@pytest.fixture
def user_b(facility_b):
    """Pharmacist at facility B, default password TestPass2026!"""
    return UserFactory(facility=facility_b)


@pytest.fixture
def admin_user(db):
    """Superuser without a facility."""
    return SuperuserFactory()


@pytest.fixture
def lot_a(facility_a):
    """100 units of Amoxicillin 500mg, batch B1, at facility A."""
    return InventoryLotFactory(
        facility=facility_a,
        drug_name='Amoxicillin 500mg',
        batch_number='B1',
        current_stock=100,
        reorder_level=10,
    )


@pytest.fixture
def client_a(user_a):
    client = APIClient()
    client.force_authenticate(user=user_a)
    return client


@pytest.fixture
def client_b(user_b):
    client = APIClient()
    client.force_authenticate(user=user_b)
    return client
