"""
Redistribution — Transfer Coordinator

Approval of a redistribution as one atomic unit:

  1. lock the request row, check it exists, the actor belongs to the
     destination facility, and it is still PENDING
  2. lock source and destination lots (primary-key order), check stock
  3. debit the source lot
  4. credit the destination lot, creating it when the facility has never
     stocked this batch
  5. mark the request COMPLETED
  6. write the RedistributionLog
  7. audit and register notifications for after commit, with an expiry
     alert when step 4 created the destination lot

An exception at any step rolls everything back, including notifications
registered in step 7. Lock and serialization failures leave as
TransactionError and may be retried by the caller: step 1 re-validates the
PENDING status on every attempt.

@file redistribution/transfer.py
"""

import logging
from dataclasses import dataclass
from datetime import datetime

from django.db import DEFAULT_DB_ALIAS
from django.utils import timezone

from core.constants import (
    AUDIT_ACTION_STATUS_CHANGE,
    AUDIT_MODULE_REDISTRIBUTION,
    DEFAULT_REORDER_LEVEL,
    REDISTRIBUTED_LOCATION,
    REDISTRIBUTED_SUPPLIER,
)
from core.exceptions import (
    AuthorizationError,
    InsufficientStockError,
    ResourceNotFoundError,
)
from core.services import AuditService
from core.transactions import atomic_unit
from inventory.models import InventoryLot
from inventory.services import InventoryLedger, publish_expiry_alert, publish_stock_alert
from notifications.models import Notification
from notifications.services import NotificationDispatcher

from .events import redistribution_event
from .models import RedistributionLog, RedistributionRequest, assert_transition

logger = logging.getLogger('rxbridge')


@dataclass
class TransferContext:
    """State threaded through the steps of one approval attempt."""

    request_id: object
    actor: object
    using: str
    now: datetime
    request: RedistributionRequest | None = None
    source_lot: InventoryLot | None = None
    destination_lot: InventoryLot | None = None
    destination_created: bool = False


class TransferCoordinator:
    """Executes the approval of one redistribution request."""

    def __init__(self, *, using: str = DEFAULT_DB_ALIAS):
        self.using = using

    def execute(self, *, request_id, actor) -> RedistributionRequest:
        ctx = TransferContext(
            request_id=request_id,
            actor=actor,
            using=self.using,
            now=timezone.now(),
        )
        with atomic_unit(using=self.using, label=f'Redistribution {request_id} approval'):
            self._lock_pending_request(ctx)
            self._lock_lots(ctx)
            self._debit_source(ctx)
            self._credit_destination(ctx)
            self._mark_completed(ctx)
            self._write_log(ctx)
            self._emit_side_effects(ctx)

        logger.info(
            'Redistribution %s completed: %s × %s moved %s → %s (destination lot %s%s)',
            ctx.request.pk, ctx.request.quantity, ctx.source_lot.drug_name,
            ctx.request.from_facility_id, ctx.request.to_facility_id,
            ctx.destination_lot.pk, ', created' if ctx.destination_created else '',
        )
        return ctx.request

    # --- Steps ---

    def _lock_pending_request(self, ctx: TransferContext) -> None:
        request = (
            RedistributionRequest.objects.using(ctx.using)
            .select_for_update()
            .filter(pk=ctx.request_id)
            .first()
        )
        if request is None:
            raise ResourceNotFoundError(detail='Redistribution request not found.')
        if not ctx.actor.belongs_to(request.to_facility_id):
            raise AuthorizationError(
                detail='Only the receiving facility can approve this redistribution.',
            )
        assert_transition(request, RedistributionRequest.StatusChoices.COMPLETED)
        ctx.request = request

    def _lock_lots(self, ctx: TransferContext) -> None:
        request = ctx.request
        lots = InventoryLot.objects.using(ctx.using)
        source = lots.filter(pk=request.drug_id).first()
        if source is None:
            raise ResourceNotFoundError(detail='Source drug not found in inventory.')
        destination = InventoryLedger.find_lot(
            facility_id=request.to_facility_id,
            drug_name=source.drug_name,
            batch_number=source.batch_number,
            using=ctx.using,
        )

        lock_ids = sorted({source.pk} | ({destination.pk} if destination else set()))
        locked = {
            lot.pk: lot
            for lot in lots.select_for_update().filter(pk__in=lock_ids).order_by('pk')
        }
        ctx.source_lot = locked.get(source.pk)
        if ctx.source_lot is None:
            raise ResourceNotFoundError(detail='Source drug not found in inventory.')
        if destination is not None:
            ctx.destination_lot = locked.get(destination.pk)
        request.drug = ctx.source_lot

        if ctx.source_lot.current_stock < request.quantity:
            raise InsufficientStockError(
                detail=(
                    f'Insufficient stock at source facility: '
                    f'available={ctx.source_lot.current_stock}, requested={request.quantity}.'
                ),
            )

    def _debit_source(self, ctx: TransferContext) -> None:
        InventoryLedger.adjust_stock(ctx.source_lot, -ctx.request.quantity, using=ctx.using)

    def _credit_destination(self, ctx: TransferContext) -> None:
        quantity = ctx.request.quantity
        if ctx.destination_lot is not None:
            InventoryLedger.adjust_stock(ctx.destination_lot, quantity, using=ctx.using)
            return

        source = ctx.source_lot
        lot, created = InventoryLedger.get_or_create_lot(
            facility_id=ctx.request.to_facility_id,
            drug_name=source.drug_name,
            batch_number=source.batch_number,
            defaults={
                'current_stock': quantity,
                'reorder_level': DEFAULT_REORDER_LEVEL,
                'supplier': source.supplier or REDISTRIBUTED_SUPPLIER,
                'expiry_date': source.expiry_date,
                'received_date': timezone.localdate(ctx.now),
                'location': REDISTRIBUTED_LOCATION,
                'created_by': ctx.actor,
            },
            using=ctx.using,
        )
        if not created:
            # Another transaction created the lot after step 2 looked for it.
            InventoryLedger.adjust_stock(lot, quantity, using=ctx.using)
        ctx.destination_lot = lot
        ctx.destination_created = created

    def _mark_completed(self, ctx: TransferContext) -> None:
        request = ctx.request
        request.status = RedistributionRequest.StatusChoices.COMPLETED
        request.received_by = ctx.actor
        request.received_at = ctx.now
        request.save(
            using=ctx.using,
            update_fields=['status', 'received_by', 'received_at', 'updated_at'],
        )

    def _write_log(self, ctx: TransferContext) -> None:
        RedistributionLog.record(ctx.request, ctx.actor, using=ctx.using)

    def _emit_side_effects(self, ctx: TransferContext) -> None:
        request = ctx.request
        source = ctx.source_lot
        AuditService.record(
            actor=ctx.actor,
            action=AUDIT_ACTION_STATUS_CHANGE,
            module=AUDIT_MODULE_REDISTRIBUTION,
            target_id=request.pk,
            message=(
                f'{ctx.actor} approved redistribution of {request.quantity} × '
                f'{source.drug_name} ({source.batch_number})'
            ),
            new_values={
                'status': request.status,
                'source_lot': str(source.pk),
                'source_stock': source.current_stock,
                'destination_lot': str(ctx.destination_lot.pk),
                'destination_stock': ctx.destination_lot.current_stock,
            },
            using=ctx.using,
        )
        for notification_type in (
            Notification.TypeChoices.REDISTRIBUTION_APPROVED,
            Notification.TypeChoices.REDISTRIBUTION_COMPLETED,
        ):
            NotificationDispatcher.notify(
                redistribution_event(request, notification_type), using=ctx.using,
            )
        publish_stock_alert(source, using=ctx.using)
        if ctx.destination_created:
            publish_expiry_alert(ctx.destination_lot, using=ctx.using)
