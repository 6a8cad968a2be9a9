"""
Tests — RedistributionRequest state machine and RedistributionLog immutability.

@file redistribution/tests/test_models.py
"""

from datetime import timedelta

import pytest
from django.db import IntegrityError, transaction
from django.utils import timezone

from core.exceptions import InvalidStateTransition
from redistribution.models import (
    REQUEST_TRANSITIONS,
    RedistributionLog,
    RedistributionRequest,
    assert_transition,
)
from tests.factories import InventoryLotFactory, RedistributionRequestFactory, UserFactory

Status = RedistributionRequest.StatusChoices


class TestTransitions:
    def test_pending_can_resolve_either_way(self):
        assert REQUEST_TRANSITIONS[Status.PENDING] == {Status.COMPLETED, Status.DECLINED}

    @pytest.mark.parametrize('terminal', [Status.COMPLETED, Status.DECLINED])
    @pytest.mark.parametrize('target', [Status.PENDING, Status.COMPLETED, Status.DECLINED])
    def test_resolved_requests_are_terminal(self, terminal, target):
        request = RedistributionRequest(status=terminal)
        with pytest.raises(InvalidStateTransition):
            assert_transition(request, target)


@pytest.mark.django_db
class TestRedistributionRequest:
    def test_defaults_to_pending(self):
        request = RedistributionRequestFactory()
        assert request.status == Status.PENDING
        assert request.is_pending
        assert request.from_facility_id == request.drug.facility_id

    def test_same_facility_rejected_by_database(self):
        lot = InventoryLotFactory()
        with pytest.raises(IntegrityError), transaction.atomic():
            RedistributionRequestFactory(drug=lot, to_facility=lot.facility)

    def test_zero_quantity_rejected_by_database(self):
        with pytest.raises(IntegrityError), transaction.atomic():
            RedistributionRequestFactory(quantity=0)


@pytest.mark.django_db
class TestRedistributionLog:
    def _log(self):
        request = RedistributionRequestFactory(status=Status.DECLINED)
        return RedistributionLog.record(request, UserFactory(facility=request.to_facility))

    def test_record_mirrors_request(self):
        log = self._log()
        assert log.status == Status.DECLINED
        assert log.drug_name == log.request.drug.drug_name
        assert log.quantity == log.request.quantity
        assert log.expiry_date == log.request.expiry_date
        assert log.requested_by_id == log.request.requested_by_id
        assert log.requested_at == log.request.created_at
        assert log.resolved_at is not None

    def test_resolution_time_taken_from_request(self):
        resolved = timezone.now() - timedelta(minutes=5)
        request = RedistributionRequestFactory(status=Status.COMPLETED, received_at=resolved)
        log = RedistributionLog.record(request, UserFactory(facility=request.to_facility))
        assert log.resolved_at == resolved

    def test_cannot_be_updated(self):
        log = self._log()
        log.reason = 'changed'
        with pytest.raises(NotImplementedError):
            log.save()

    def test_cannot_be_deleted(self):
        with pytest.raises(NotImplementedError):
            self._log().delete()
