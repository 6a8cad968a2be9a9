"""
Core — Model Tests

Tests for AuditLog and the audit service.

@file core/tests/test_models.py
"""

from unittest import mock

import pytest
from django.db import DatabaseError

from core.constants import AUDIT_ACTION_CREATE, AUDIT_MODULE_INVENTORY
from core.models import AuditLog
from core.services import AuditService
from tests.factories import AuditLogFactory, InventoryLotFactory, UserFactory


@pytest.mark.django_db
class TestAuditLog:
    def test_record_audit_entry(self):
        user = UserFactory()
        log = AuditService.record(
            actor=user,
            action=AUDIT_ACTION_CREATE,
            module=AUDIT_MODULE_INVENTORY,
            target_id='test-123',
            message='Paracetamol added to inventory',
            new_values={'key': 'value'},
        )
        assert log.pk is not None
        assert log.action == 'CREATE'
        assert log.module == 'Inventory'
        assert log.object_id == 'test-123'
        assert log.facility_id == user.facility_id

    def test_explicit_facility_wins_over_actor_facility(self):
        user = UserFactory()
        other = UserFactory()
        log = AuditService.record(
            actor=user,
            action=AUDIT_ACTION_CREATE,
            module=AUDIT_MODULE_INVENTORY,
            target_id='x',
            facility=other.facility,
        )
        assert log.facility_id == other.facility_id

    def test_audit_log_cannot_be_updated(self):
        log = AuditLogFactory()
        log.message = 'changed'
        with pytest.raises(NotImplementedError):
            log.save()

    def test_audit_log_cannot_be_deleted(self):
        log = AuditLogFactory()
        with pytest.raises(NotImplementedError):
            log.delete()
        assert AuditLog.objects.filter(pk=log.pk).exists()

    def test_failed_write_is_swallowed(self):
        user = UserFactory()
        with mock.patch.object(AuditLog.objects, 'using') as using:
            using.return_value.create.side_effect = DatabaseError('disk full')
            result = AuditService.record(
                actor=user,
                action=AUDIT_ACTION_CREATE,
                module=AUDIT_MODULE_INVENTORY,
                target_id='x',
            )
        assert result is None
        # The surrounding transaction is still usable.
        assert UserFactory().pk is not None

    def test_snapshot_serialises_dates_and_keys(self):
        lot = InventoryLotFactory()
        snapshot = AuditService.snapshot(lot, fields=['facility', 'expiry_date', 'current_stock'])
        assert snapshot['facility'] == str(lot.facility_id)
        assert snapshot['expiry_date'] == lot.expiry_date.isoformat()
        assert snapshot['current_stock'] == lot.current_stock
