"""
RxBridge — Test Factories

Factory Boy factories for generating test data. Used across all test
modules.

@file tests/factories.py
"""

import uuid
from datetime import timedelta

import factory
from django.utils import timezone

from core.models import AuditLog
from facilities.models import Facility
from inventory.models import InventoryLot, derive_status
from notifications.models import Notification
from redistribution.models import RedistributionRequest
from users.models import User


# ---------------------------------------------------------------------------
# Facilities & users
# ---------------------------------------------------------------------------

class FacilityFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = Facility

    name = factory.Sequence(lambda n: f'Facility-{n}')
    address = factory.Faker('address')
    contact_email = factory.Sequence(lambda n: f'facility-{n}@test.rx')
    is_active = True


class UserFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = User
        skip_postgeneration_save = True

    email = factory.Sequence(lambda n: f'user-{n}@test.rx')
    name = factory.Faker('name')
    facility = factory.SubFactory(FacilityFactory)
    role = User.RoleChoices.PHARMACIST
    is_active = True

    @factory.post_generation
    def password(self, create, extracted, **kwargs):
        password = extracted or 'TestPass2026!'
        self.set_password(password)
        if create:
            self.save(update_fields=['password'])


class SuperuserFactory(UserFactory):
    facility = None
    role = User.RoleChoices.ADMIN
    is_staff = True
    is_superuser = True


# ---------------------------------------------------------------------------
# Inventory
# ---------------------------------------------------------------------------

class InventoryLotFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = InventoryLot

    facility = factory.SubFactory(FacilityFactory)
    drug_name = factory.Sequence(lambda n: f'Drug-{n}')
    batch_number = factory.Sequence(lambda n: f'BATCH-{n:05d}')
    current_stock = 100
    reorder_level = 10
    supplier = factory.Faker('company')
    expiry_date = factory.LazyFunction(lambda: (timezone.now() + timedelta(days=365)).date())
    received_date = factory.LazyFunction(lambda: timezone.now().date())
    location = 'Main Store'
    status = factory.LazyAttribute(lambda o: derive_status(o.current_stock, o.reorder_level))


# ---------------------------------------------------------------------------
# Redistribution
# ---------------------------------------------------------------------------

class RedistributionRequestFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = RedistributionRequest

    drug = factory.SubFactory(InventoryLotFactory)
    from_facility = factory.LazyAttribute(lambda o: o.drug.facility)
    to_facility = factory.SubFactory(FacilityFactory)
    quantity = 10
    reason = factory.Faker('sentence')
    expiry_date = factory.LazyAttribute(lambda o: o.drug.expiry_date)
    status = RedistributionRequest.StatusChoices.PENDING
    requested_by = factory.SubFactory(UserFactory, facility=factory.SelfAttribute('..from_facility'))


# ---------------------------------------------------------------------------
# Notifications & audit
# ---------------------------------------------------------------------------

class NotificationFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = Notification

    type = Notification.TypeChoices.LOW_STOCK
    title = 'Low Stock Alert'
    message = factory.Faker('sentence')
    priority = Notification.PriorityChoices.HIGH
    facility = factory.SubFactory(FacilityFactory)
    drug_name = factory.Sequence(lambda n: f'Drug-{n}')
    batch_number = factory.Sequence(lambda n: f'BATCH-{n:05d}')


class AuditLogFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = AuditLog

    actor = factory.SubFactory(UserFactory)
    facility = factory.LazyAttribute(lambda o: o.actor.facility if o.actor else None)
    action = AuditLog.ActionChoices.CREATE
    module = 'Inventory'
    object_id = factory.LazyFunction(lambda: str(uuid.uuid4()))
    message = factory.Faker('sentence')
