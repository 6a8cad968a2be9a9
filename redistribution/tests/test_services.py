"""
Tests — RedistributionService: create (check order), list, decline.

@file redistribution/tests/test_services.py
"""

import uuid

import pytest

from core.exceptions import (
    AuthorizationError,
    InsufficientStockError,
    InvalidStateTransition,
    RequestValidationError,
    ResourceNotFoundError,
    SelfTransferError,
)
from core.models import AuditLog
from notifications.models import Notification
from redistribution.models import RedistributionLog, RedistributionRequest
from redistribution.services import RedistributionService
from tests.factories import (
    FacilityFactory,
    InventoryLotFactory,
    RedistributionRequestFactory,
    UserFactory,
)


pytestmark = pytest.mark.django_db

Status = RedistributionRequest.StatusChoices


def _create(actor, lot, to_facility, quantity=30, reason='surplus'):
    return RedistributionService.create_request(
        drug_id=lot.pk if lot else None,
        quantity=quantity,
        to_facility_id=to_facility.pk if to_facility else None,
        reason=reason,
        actor=actor,
    )


class TestCreateRequest:
    def test_creates_pending_request(self, user_a, lot_a, facility_b):
        request = _create(user_a, lot_a, facility_b)
        assert request.status == Status.PENDING
        assert request.from_facility_id == user_a.facility_id
        assert request.to_facility_id == facility_b.pk
        assert request.requested_by == user_a
        assert request.expiry_date == lot_a.expiry_date
        assert AuditLog.objects.filter(object_id=str(request.pk), action='CREATE').exists()
        lot_a.refresh_from_db()
        assert lot_a.current_stock == 100  # nothing moves until approval

    def test_notifies_destination_after_commit(
        self, user_a, lot_a, facility_b, django_capture_on_commit_callbacks,
    ):
        with django_capture_on_commit_callbacks(execute=True):
            request = _create(user_a, lot_a, facility_b)
        notification = Notification.objects.get(redistribution=request)
        assert notification.type == Notification.TypeChoices.REDISTRIBUTION_CREATED
        assert notification.facility_id == facility_b.pk
        assert notification.user_id is None

    def test_insufficient_stock_persists_nothing(self, user_a, facility_a, facility_b):
        lot = InventoryLotFactory(facility=facility_a, current_stock=5)
        with pytest.raises(InsufficientStockError):
            _create(user_a, lot, facility_b, quantity=10)
        assert not RedistributionRequest.objects.exists()

    @pytest.mark.parametrize('field', ['drug', 'quantity', 'to_facility', 'reason'])
    def test_missing_fields(self, user_a, lot_a, facility_b, field):
        kwargs = {
            'drug_id': lot_a.pk,
            'quantity': 5,
            'to_facility_id': facility_b.pk,
            'reason': 'surplus',
            'actor': user_a,
        }
        kwargs[{'drug': 'drug_id', 'to_facility': 'to_facility_id'}.get(field, field)] = None
        with pytest.raises(RequestValidationError, match=field):
            RedistributionService.create_request(**kwargs)

    @pytest.mark.parametrize('quantity', [0, -1, 2.5, True])
    def test_quantity_must_be_positive_integer(self, user_a, lot_a, facility_b, quantity):
        with pytest.raises(RequestValidationError):
            _create(user_a, lot_a, facility_b, quantity=quantity)

    def test_malformed_ids_rejected_before_lookup(self, user_a):
        with pytest.raises(RequestValidationError):
            RedistributionService.create_request(
                drug_id='not-a-uuid', quantity=1, to_facility_id='also-not', reason='x', actor=user_a,
            )

    def test_validation_precedes_authorization(self, admin_user, lot_a, facility_b):
        with pytest.raises(RequestValidationError):
            _create(admin_user, lot_a, facility_b, reason='  ')

    def test_actor_without_facility(self, admin_user, lot_a, facility_b):
        with pytest.raises(AuthorizationError):
            _create(admin_user, lot_a, facility_b)

    def test_self_transfer(self, user_a, lot_a, facility_a):
        with pytest.raises(SelfTransferError):
            _create(user_a, lot_a, facility_a)

    def test_self_transfer_precedes_not_found(self, user_a, facility_a):
        with pytest.raises(SelfTransferError):
            RedistributionService.create_request(
                drug_id=uuid.uuid4(), quantity=1, to_facility_id=facility_a.pk, reason='x', actor=user_a,
            )

    def test_unknown_destination(self, user_a, lot_a):
        with pytest.raises(ResourceNotFoundError, match='Facility'):
            RedistributionService.create_request(
                drug_id=lot_a.pk, quantity=1, to_facility_id=uuid.uuid4(), reason='x', actor=user_a,
            )

    def test_inactive_destination(self, user_a, lot_a):
        closed = FacilityFactory(is_active=False)
        with pytest.raises(ResourceNotFoundError):
            _create(user_a, lot_a, closed, quantity=1)

    def test_lot_of_another_facility_is_not_found(self, user_b, lot_a, facility_a):
        with pytest.raises(ResourceNotFoundError, match='Drug'):
            _create(user_b, lot_a, facility_a, quantity=1)


class TestListForFacility:
    def test_source_and_destination_both_see_request(self, facility_a, facility_b, lot_a):
        request = RedistributionRequestFactory(drug=lot_a, to_facility=facility_b)
        RedistributionRequestFactory()
        assert list(RedistributionService.list_for_facility(facility_a.pk)) == [request]
        assert list(RedistributionService.list_for_facility(facility_b.pk)) == [request]

    def test_direction_filter(self, facility_a, facility_b, lot_a):
        outgoing = RedistributionRequestFactory(drug=lot_a, to_facility=facility_b)
        lot_b = InventoryLotFactory(facility=facility_b)
        incoming = RedistributionRequestFactory(drug=lot_b, to_facility=facility_a)
        assert list(RedistributionService.list_for_facility(facility_a.pk, direction='outgoing')) == [outgoing]
        assert list(RedistributionService.list_for_facility(facility_a.pk, direction='incoming')) == [incoming]

    def test_status_filter(self, facility_a, facility_b, lot_a):
        RedistributionRequestFactory(drug=lot_a, to_facility=facility_b)
        declined = RedistributionRequestFactory(drug=lot_a, to_facility=facility_b, status=Status.DECLINED)
        assert list(RedistributionService.list_for_facility(facility_a.pk, status='DECLINED')) == [declined]

    def test_unknown_filters_rejected(self, facility_a):
        with pytest.raises(RequestValidationError):
            RedistributionService.list_for_facility(facility_a.pk, direction='sideways')
        with pytest.raises(RequestValidationError):
            RedistributionService.list_for_facility(facility_a.pk, status='LOST')


class TestDeclineRequest:
    def test_decline(self, user_a, user_b, lot_a, facility_b, django_capture_on_commit_callbacks):
        request = RedistributionRequestFactory(drug=lot_a, to_facility=facility_b, requested_by=user_a)
        with django_capture_on_commit_callbacks(execute=True):
            declined = RedistributionService.decline_request(request_id=request.pk, actor=user_b)

        assert declined.status == Status.DECLINED
        assert declined.declined_by == user_b
        assert declined.declined_at is not None
        lot_a.refresh_from_db()
        assert lot_a.current_stock == 100
        log = RedistributionLog.objects.get(request=request)
        assert log.status == Status.DECLINED
        notification = Notification.objects.get(redistribution=request)
        assert notification.type == Notification.TypeChoices.REDISTRIBUTION_DECLINED
        assert notification.facility_id == lot_a.facility_id
        assert notification.user_id == user_a.pk

    def test_source_facility_cannot_decline(self, user_a, lot_a, facility_b):
        request = RedistributionRequestFactory(drug=lot_a, to_facility=facility_b)
        with pytest.raises(AuthorizationError):
            RedistributionService.decline_request(request_id=request.pk, actor=user_a)
        request.refresh_from_db()
        assert request.status == Status.PENDING

    def test_unknown_request(self, user_b):
        with pytest.raises(ResourceNotFoundError):
            RedistributionService.decline_request(request_id=uuid.uuid4(), actor=user_b)

    def test_declined_request_is_terminal(self, user_b, lot_a, facility_b):
        request = RedistributionRequestFactory(drug=lot_a, to_facility=facility_b)
        RedistributionService.decline_request(request_id=request.pk, actor=user_b)
        with pytest.raises(InvalidStateTransition):
            RedistributionService.decline_request(request_id=request.pk, actor=user_b)
        with pytest.raises(InvalidStateTransition):
            RedistributionService.approve_request(request_id=request.pk, actor=user_b)
        assert RedistributionLog.objects.filter(request=request).count() == 1

    def test_other_member_of_destination_can_decline(self, lot_a, facility_b):
        request = RedistributionRequestFactory(drug=lot_a, to_facility=facility_b)
        colleague = UserFactory(facility=facility_b)
        declined = RedistributionService.decline_request(request_id=request.pk, actor=colleague)
        assert declined.status == Status.DECLINED
