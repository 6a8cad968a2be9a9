"""
Redistribution — Service Layer

Request lifecycle: create (PENDING), approve (COMPLETED, stock moves via the
TransferCoordinator), decline (DECLINED, no stock moves). Both resolutions
are terminal and only the destination facility may resolve a request.

@file redistribution/services.py
"""

import logging
import uuid

from django.db import DEFAULT_DB_ALIAS, transaction
from django.db.models import Q, QuerySet
from django.utils import timezone

from core.constants import (
    AUDIT_ACTION_CREATE,
    AUDIT_ACTION_STATUS_CHANGE,
    AUDIT_MODULE_REDISTRIBUTION,
)
from core.exceptions import (
    AuthorizationError,
    InsufficientStockError,
    InvalidStateTransition,
    RequestValidationError,
    ResourceNotFoundError,
    SelfTransferError,
)
from core.retry import run_with_retry
from core.services import AuditService
from core.transactions import atomic_unit
from facilities.services import FacilityDirectory
from inventory.models import InventoryLot
from notifications.models import Notification
from notifications.services import NotificationDispatcher

from .events import redistribution_event
from .models import RedistributionLog, RedistributionRequest, assert_transition
from .transfer import TransferCoordinator

logger = logging.getLogger('rxbridge')

DIRECTION_INCOMING = 'incoming'
DIRECTION_OUTGOING = 'outgoing'


def _parse_uuid(value, field_name: str) -> uuid.UUID:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError):
        raise RequestValidationError(detail=f'Invalid {field_name}.')


def _validate_create_input(*, drug_id, quantity, to_facility_id, reason) -> tuple[uuid.UUID, uuid.UUID]:
    missing = [
        name for name, value in (
            ('drug', drug_id),
            ('quantity', quantity),
            ('to_facility', to_facility_id),
            ('reason', reason),
        )
        if value is None or (isinstance(value, str) and not value.strip())
    ]
    if missing:
        raise RequestValidationError(detail=f'Missing required fields: {", ".join(missing)}.')
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise RequestValidationError(detail='Quantity must be a positive integer.')
    return _parse_uuid(drug_id, 'drug'), _parse_uuid(to_facility_id, 'to_facility')


class RedistributionService:
    """Redistribution request lifecycle."""

    @staticmethod
    @transaction.atomic
    def create_request(
        *,
        drug_id,
        quantity: int,
        to_facility_id,
        reason: str,
        actor,
    ) -> RedistributionRequest:
        """
        Open a PENDING request to move ``quantity`` units of one of the
        actor's lots to ``to_facility_id``.

        The stock check here is advisory; approval re-checks under lock.
        """
        drug_uuid, to_facility_uuid = _validate_create_input(
            drug_id=drug_id, quantity=quantity, to_facility_id=to_facility_id, reason=reason,
        )
        if actor.facility_id is None:
            raise AuthorizationError(detail='Your account is not attached to a facility.')
        if to_facility_uuid == actor.facility_id:
            raise SelfTransferError()

        to_facility = FacilityDirectory.get_active(to_facility_uuid)
        lot = (
            InventoryLot.objects
            .select_related('facility')
            .filter(pk=drug_uuid, facility_id=actor.facility_id)
            .first()
        )
        if lot is None:
            raise ResourceNotFoundError(detail='Drug not found in your inventory.')
        if lot.current_stock < quantity:
            raise InsufficientStockError(
                detail=f'Insufficient stock: available={lot.current_stock}, requested={quantity}.',
            )

        request = RedistributionRequest.objects.create(
            drug=lot,
            quantity=quantity,
            from_facility_id=actor.facility_id,
            to_facility=to_facility,
            reason=reason.strip(),
            expiry_date=lot.expiry_date,
            requested_by=actor,
        )
        AuditService.record(
            actor=actor,
            action=AUDIT_ACTION_CREATE,
            module=AUDIT_MODULE_REDISTRIBUTION,
            target_id=request.pk,
            message=(
                f'{actor} requested redistribution of {quantity} × {lot.drug_name} '
                f'to {to_facility.name}'
            ),
            new_values={
                'drug': str(lot.pk),
                'quantity': quantity,
                'to_facility': str(to_facility.pk),
                'status': request.status,
            },
        )
        NotificationDispatcher.notify(
            redistribution_event(request, Notification.TypeChoices.REDISTRIBUTION_CREATED),
        )
        logger.info(
            'Redistribution %s requested: %s × %s %s → %s',
            request.pk, quantity, lot.drug_name, actor.facility_id, to_facility.pk,
        )
        return request

    @staticmethod
    def list_for_facility(
        facility_id,
        *,
        status: str | None = None,
        direction: str | None = None,
    ) -> QuerySet[RedistributionRequest]:
        """Requests the facility sends or receives, newest first."""
        if direction == DIRECTION_INCOMING:
            scope = Q(to_facility_id=facility_id)
        elif direction == DIRECTION_OUTGOING:
            scope = Q(from_facility_id=facility_id)
        elif direction in (None, ''):
            scope = Q(from_facility_id=facility_id) | Q(to_facility_id=facility_id)
        else:
            raise RequestValidationError(
                detail=f"direction must be '{DIRECTION_INCOMING}' or '{DIRECTION_OUTGOING}'.",
            )

        qs = RedistributionRequest.objects.filter(scope)
        if status:
            if status not in RedistributionRequest.StatusChoices.values:
                raise RequestValidationError(detail=f'Unknown status: {status}.')
            qs = qs.filter(status=status)
        return (
            qs.select_related('drug', 'from_facility', 'to_facility', 'requested_by')
            .order_by('-created_at')
        )

    @staticmethod
    def get_for_facility(*, request_id, facility_id) -> RedistributionRequest:
        request = (
            RedistributionService.list_for_facility(facility_id)
            .filter(pk=_parse_uuid(request_id, 'redistribution id'))
            .first()
        )
        if request is None:
            raise ResourceNotFoundError(detail='Redistribution request not found.')
        return request

    @staticmethod
    def approve_request(*, request_id, actor, using: str = DEFAULT_DB_ALIAS) -> RedistributionRequest:
        """Approve and execute the transfer, retrying on lock conflicts."""
        request_uuid = _parse_uuid(request_id, 'redistribution id')
        coordinator = TransferCoordinator(using=using)
        return run_with_retry(
            lambda: coordinator.execute(request_id=request_uuid, actor=actor),
            using=using,
        )

    @staticmethod
    def decline_request(*, request_id, actor, using: str = DEFAULT_DB_ALIAS) -> RedistributionRequest:
        """Decline a PENDING request; no stock moves."""
        request_uuid = _parse_uuid(request_id, 'redistribution id')
        return run_with_retry(
            lambda: RedistributionService._decline(request_id=request_uuid, actor=actor, using=using),
            using=using,
        )

    @staticmethod
    def _decline(*, request_id, actor, using: str) -> RedistributionRequest:
        statuses = RedistributionRequest.StatusChoices

        with atomic_unit(using=using, label=f'Redistribution {request_id} decline'):
            request = (
                RedistributionRequest.objects.using(using)
                .select_for_update()
                .filter(pk=request_id)
                .first()
            )
            if request is None:
                raise ResourceNotFoundError(detail='Redistribution request not found.')
            if not actor.belongs_to(request.to_facility_id):
                raise AuthorizationError(
                    detail='Only the receiving facility can decline this redistribution.',
                )
            assert_transition(request, statuses.DECLINED)

            now = timezone.now()
            updated = (
                RedistributionRequest.objects.using(using)
                .filter(pk=request.pk, status=statuses.PENDING)
                .update(status=statuses.DECLINED, declined_by=actor, declined_at=now, updated_at=now)
            )
            if updated != 1:
                raise InvalidStateTransition(
                    detail='Redistribution request is no longer pending.',
                )
            request.refresh_from_db(using=using)

            RedistributionLog.record(request, actor, using=using)
            AuditService.record(
                actor=actor,
                action=AUDIT_ACTION_STATUS_CHANGE,
                module=AUDIT_MODULE_REDISTRIBUTION,
                target_id=request.pk,
                message=f'{actor} declined redistribution of {request.quantity} × {request.drug.drug_name}',
                new_values={'status': request.status},
                using=using,
            )
            NotificationDispatcher.notify(
                redistribution_event(request, Notification.TypeChoices.REDISTRIBUTION_DECLINED),
                using=using,
            )

        logger.info('Redistribution %s declined by %s', request.pk, actor.pk)
        return request
