"""
Notifications — Dispatcher

Best-effort publication of committed-state events. ``notify`` never touches
the caller's transaction: delivery is scheduled with ``on_commit`` and runs
in a Celery task, so a rolled-back change never notifies and a failing
delivery never undoes a committed one.

Identical notifications inside the trailing de-duplication window are
dropped. Identity is (drug lot, type, target facility, redistribution
request); stock and expiry alerts carry no request, so they collapse per
(lot, type). Delivery holds a lock on the facility row across the check
and the insert.

@file notifications/services.py
"""

import logging
from dataclasses import asdict, dataclass, field
from datetime import timedelta

from django.conf import settings
from django.db import DEFAULT_DB_ALIAS, transaction
from django.db.models import Q, QuerySet
from django.utils import timezone

from core.exceptions import ResourceNotFoundError
from facilities.models import Facility

from .models import Notification

logger = logging.getLogger('rxbridge')


@dataclass(frozen=True)
class NotificationEvent:
    """Transport-agnostic description of one notification to one facility."""

    type: str
    facility_id: str
    title: str
    message: str
    drug_name: str
    batch_number: str
    priority: str = Notification.PriorityChoices.MEDIUM
    lot_id: str | None = None
    expiry_date: str | None = None
    redistribution_id: str | None = None
    user_id: str | None = None
    metadata: dict = field(default_factory=dict)

    def as_payload(self) -> dict:
        return asdict(self)


class NotificationDispatcher:
    """Schedules delivery after commit and persists de-duplicated notifications."""

    @staticmethod
    def notify(event: NotificationEvent, *, using: str = DEFAULT_DB_ALIAS) -> None:
        payload = event.as_payload()

        def _send():
            from .tasks import deliver_notification

            deliver_notification.delay(payload)

        transaction.on_commit(_send, using=using, robust=True)

    @staticmethod
    def is_duplicate(payload: dict) -> bool:
        window_start = timezone.now() - timedelta(hours=settings.NOTIFICATION_DEDUP_WINDOW_HOURS)
        return Notification.objects.filter(
            type=payload['type'],
            facility_id=payload['facility_id'],
            lot_id=payload.get('lot_id'),
            redistribution_id=payload.get('redistribution_id'),
            created_at__gte=window_start,
        ).exists()

    @staticmethod
    def deliver(payload: dict) -> Notification | None:
        """
        Persist one notification unless an identical one is inside the
        window. The target facility row is locked first, so concurrent
        deliveries of the same event take turns at the duplicate check.
        """
        with transaction.atomic():
            Facility.objects.select_for_update().filter(pk=payload['facility_id']).first()
            if NotificationDispatcher.is_duplicate(payload):
                logger.debug(
                    'Suppressed duplicate %s notification for facility %s.',
                    payload['type'], payload['facility_id'],
                )
                return None
            notification = Notification.objects.create(
                type=payload['type'],
                title=payload['title'],
                message=payload['message'],
                priority=payload.get('priority') or Notification.PriorityChoices.MEDIUM,
                facility_id=payload['facility_id'],
                user_id=payload.get('user_id'),
                lot_id=payload.get('lot_id'),
                drug_name=payload['drug_name'],
                batch_number=payload['batch_number'],
                expiry_date=payload.get('expiry_date'),
                redistribution_id=payload.get('redistribution_id'),
                metadata=payload.get('metadata') or {},
            )
        logger.info(
            'Notification %s %s delivered to facility %s.',
            notification.type, notification.pk, notification.facility_id,
        )
        return notification

    @staticmethod
    def for_user(user) -> QuerySet[Notification]:
        """Notifications visible to a user: their facility's broadcast ones and their own."""
        return Notification.objects.filter(
            Q(user__isnull=True) | Q(user=user),
            facility_id=user.facility_id,
        )

    @staticmethod
    def mark_read(*, notification_id, user) -> Notification:
        notification = NotificationDispatcher.for_user(user).filter(pk=notification_id).first()
        if notification is None:
            raise ResourceNotFoundError(detail='Notification not found.')
        if not notification.is_read:
            notification.is_read = True
            notification.save(update_fields=['is_read'])
        return notification

    @staticmethod
    def mark_all_read(*, user) -> int:
        return NotificationDispatcher.for_user(user).filter(is_read=False).update(is_read=True)
