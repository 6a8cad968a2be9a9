"""
Tests — NotificationDispatcher: after-commit delivery and de-duplication,
including two deliveries of one event racing each other.

@file notifications/tests/test_services.py
"""

import threading
from datetime import timedelta

import pytest
from django.db import connections, transaction
from django.utils import timezone

from notifications.models import Notification
from notifications.services import NotificationDispatcher, NotificationEvent
from tests.factories import InventoryLotFactory, NotificationFactory, UserFactory


pytestmark = pytest.mark.django_db


def _event(facility, lot=None, **overrides):
    data = {
        'type': Notification.TypeChoices.LOW_STOCK,
        'facility_id': str(facility.pk),
        'title': 'Low Stock Alert',
        'message': 'Amoxicillin (Batch: B1) has low stock: 5 units remaining',
        'drug_name': 'Amoxicillin',
        'batch_number': 'B1',
        'priority': Notification.PriorityChoices.HIGH,
        'lot_id': str(lot.pk) if lot else None,
    }
    data.update(overrides)
    return NotificationEvent(**data)


class TestNotify:
    def test_delivered_after_commit(self, facility_a, lot_a, django_capture_on_commit_callbacks):
        with django_capture_on_commit_callbacks(execute=True) as callbacks:
            NotificationDispatcher.notify(_event(facility_a, lot=lot_a))
            assert not Notification.objects.exists()
        assert len(callbacks) == 1
        notification = Notification.objects.get()
        assert notification.facility_id == facility_a.pk
        assert notification.lot_id == lot_a.pk

    def test_rolled_back_change_never_notifies(self, facility_a, django_capture_on_commit_callbacks):
        with django_capture_on_commit_callbacks(execute=True) as callbacks:
            try:
                with transaction.atomic():
                    NotificationDispatcher.notify(_event(facility_a))
                    raise RuntimeError('abort')
            except RuntimeError:
                pass
        assert callbacks == []
        assert not Notification.objects.exists()


class TestDeliver:
    def test_duplicate_inside_window_is_dropped(self, facility_a, lot_a):
        payload = _event(facility_a, lot=lot_a).as_payload()
        assert NotificationDispatcher.deliver(payload) is not None
        assert NotificationDispatcher.deliver(payload) is None
        assert Notification.objects.count() == 1

    def test_other_facility_is_not_a_duplicate(self, facility_a, facility_b, lot_a):
        NotificationDispatcher.deliver(_event(facility_a, lot=lot_a).as_payload())
        NotificationDispatcher.deliver(_event(facility_b, lot=lot_a).as_payload())
        assert Notification.objects.count() == 2

    def test_other_type_is_not_a_duplicate(self, facility_a, lot_a):
        NotificationDispatcher.deliver(_event(facility_a, lot=lot_a).as_payload())
        NotificationDispatcher.deliver(
            _event(facility_a, lot=lot_a, type=Notification.TypeChoices.OUT_OF_STOCK).as_payload(),
        )
        assert Notification.objects.count() == 2

    def test_outside_window_is_delivered_again(self, facility_a, lot_a, settings):
        settings.NOTIFICATION_DEDUP_WINDOW_HOURS = 24
        payload = _event(facility_a, lot=lot_a).as_payload()
        first = NotificationDispatcher.deliver(payload)
        Notification.objects.filter(pk=first.pk).update(created_at=timezone.now() - timedelta(hours=25))
        assert NotificationDispatcher.deliver(payload) is not None


@pytest.mark.django_db(transaction=True)
class TestConcurrentDelivery:
    def test_same_event_delivered_twice_at_once_is_stored_once(self):
        lot = InventoryLotFactory()
        payload = _event(lot.facility, lot=lot).as_payload()
        barrier = threading.Barrier(2, timeout=30)
        results = []

        def deliver():
            try:
                barrier.wait()
                results.append(NotificationDispatcher.deliver(payload))
            finally:
                connections.close_all()

        threads = [threading.Thread(target=deliver) for _ in range(2)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(results) == 2
        assert sum(result is not None for result in results) == 1
        assert Notification.objects.filter(lot=lot).count() == 1


class TestReadState:
    def test_for_user_sees_broadcast_and_own(self, user_a, facility_a):
        broadcast = NotificationFactory(facility=facility_a)
        own = NotificationFactory(facility=facility_a, user=user_a)
        NotificationFactory(facility=facility_a, user=UserFactory(facility=facility_a))
        NotificationFactory()
        assert set(NotificationDispatcher.for_user(user_a)) == {broadcast, own}

    def test_mark_read(self, user_a, facility_a):
        notification = NotificationFactory(facility=facility_a)
        NotificationDispatcher.mark_read(notification_id=notification.pk, user=user_a)
        notification.refresh_from_db()
        assert notification.is_read

    def test_mark_all_read(self, user_a, facility_a):
        NotificationFactory.create_batch(3, facility=facility_a)
        assert NotificationDispatcher.mark_all_read(user=user_a) == 3
        assert not Notification.objects.filter(is_read=False).exists()
