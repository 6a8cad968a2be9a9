"""
Inventory — Service Layer

InventoryLedger: lot lookup, stock adjustment, lot creation, receipt of
new stock and lot edits. Stock-level and expiry alerts are published after
commit. DispensationService: dispensing from a lot. Every stock change
recomputes the lot status with ``derive_status`` and runs under a row lock
inside an atomic block, so a dispensation and a redistribution touching the
same lot serialise on that row.

@file inventory/services.py
"""

import logging
from datetime import date, timedelta

from django.conf import settings
from django.db import DEFAULT_DB_ALIAS, IntegrityError, transaction
from django.db.models import QuerySet
from django.utils import timezone

from core.constants import (
    AUDIT_ACTION_CREATE,
    AUDIT_ACTION_STOCK_CHANGE,
    AUDIT_ACTION_UPDATE,
    AUDIT_MODULE_DISPENSATION,
    AUDIT_MODULE_INVENTORY,
    DEFAULT_REORDER_LEVEL,
    EXPIRY_ALERT_HORIZON_DAYS,
)
from core.exceptions import (
    AuthorizationError,
    DuplicateResourceError,
    InsufficientStockError,
    RequestValidationError,
    ResourceNotFoundError,
    TransactionError,
)
from core.services import AuditService
from core.transactions import atomic_unit
from notifications.models import Notification
from notifications.services import NotificationDispatcher, NotificationEvent

from .models import Dispensation, InventoryLot, StockStatus, derive_status

logger = logging.getLogger('rxbridge')


def stock_alert_event(lot: InventoryLot) -> NotificationEvent | None:
    """Low/out-of-stock alert for the lot's facility, or None when stock is adequate."""
    if lot.status == StockStatus.OUT_OF_STOCK:
        notification_type = Notification.TypeChoices.OUT_OF_STOCK
        title = 'Drug Out of Stock'
        priority = Notification.PriorityChoices.CRITICAL
        message = f'{lot.drug_name} (Batch: {lot.batch_number}) is out of stock'
    elif lot.status == StockStatus.LOW_STOCK:
        notification_type = Notification.TypeChoices.LOW_STOCK
        title = 'Low Stock Alert'
        priority = Notification.PriorityChoices.HIGH
        message = (
            f'{lot.drug_name} (Batch: {lot.batch_number}) has low stock: '
            f'{lot.current_stock} units remaining'
        )
    else:
        return None
    return NotificationEvent(
        type=notification_type,
        facility_id=str(lot.facility_id),
        title=title,
        message=message,
        priority=priority,
        lot_id=str(lot.pk),
        drug_name=lot.drug_name,
        batch_number=lot.batch_number,
        expiry_date=lot.expiry_date.isoformat() if lot.expiry_date else None,
        metadata={'current_stock': lot.current_stock},
    )


def publish_stock_alert(lot: InventoryLot, *, using: str = DEFAULT_DB_ALIAS) -> None:
    event = stock_alert_event(lot)
    if event is not None:
        NotificationDispatcher.notify(event, using=using)


def expiry_alert_event(lot: InventoryLot, *, today: date | None = None) -> NotificationEvent | None:
    """
    Expiry alert tiered at 90, 30 and 7 days before expiry and on expiry.
    Empty lots and lots more than 90 days from expiry get none.
    """
    if lot.current_stock <= 0 or lot.expiry_date is None:
        return None
    today = today or timezone.localdate()
    days_to_expiry = (lot.expiry_date - today).days

    if days_to_expiry <= 0:
        notification_type = Notification.TypeChoices.DRUG_EXPIRED
        title = 'Drug Expired'
        priority = Notification.PriorityChoices.CRITICAL
    elif days_to_expiry <= 7:
        notification_type = Notification.TypeChoices.DRUG_EXPIRING
        title = 'Drug Expiring Soon'
        priority = Notification.PriorityChoices.HIGH
    elif days_to_expiry <= 30:
        notification_type = Notification.TypeChoices.DRUG_EXPIRING
        title = 'Drug Expiring in 30 Days'
        priority = Notification.PriorityChoices.MEDIUM
    elif days_to_expiry <= EXPIRY_ALERT_HORIZON_DAYS:
        notification_type = Notification.TypeChoices.DRUG_EXPIRING
        title = 'Drug Expiring in 3 Months'
        priority = Notification.PriorityChoices.LOW
    else:
        return None

    if days_to_expiry <= 0:
        message = (
            f'{lot.drug_name} (Batch: {lot.batch_number}) has expired. '
            f'Current stock: {lot.current_stock}'
        )
    else:
        message = (
            f'{lot.drug_name} (Batch: {lot.batch_number}) expires in {days_to_expiry} days. '
            f'Current stock: {lot.current_stock}'
        )
    return NotificationEvent(
        type=notification_type,
        facility_id=str(lot.facility_id),
        title=title,
        message=message,
        priority=priority,
        lot_id=str(lot.pk),
        drug_name=lot.drug_name,
        batch_number=lot.batch_number,
        expiry_date=lot.expiry_date.isoformat(),
        metadata={'days_to_expiry': days_to_expiry, 'current_stock': lot.current_stock},
    )


def publish_expiry_alert(lot: InventoryLot, *, using: str = DEFAULT_DB_ALIAS) -> None:
    event = expiry_alert_event(lot)
    if event is not None:
        NotificationDispatcher.notify(event, using=using)


def _validate_dates(*, expiry_date, received_date) -> None:
    if expiry_date < received_date:
        raise RequestValidationError(detail='Expiry date cannot be before received date.')
    if expiry_date < received_date + timedelta(days=settings.MIN_SHELF_LIFE_DAYS):
        raise RequestValidationError(
            detail=f'Expiry date must be at least {settings.MIN_SHELF_LIFE_DAYS} days after the received date.',
        )


class InventoryLedger:
    """Per-facility, per-batch stock records."""

    derive_status = staticmethod(derive_status)

    @staticmethod
    def list_lots(facility_id) -> QuerySet[InventoryLot]:
        return InventoryLot.objects.filter(facility_id=facility_id).select_related('facility')

    @staticmethod
    def find_lot(
        *,
        facility_id,
        drug_name: str,
        batch_number: str,
        for_update: bool = False,
        using: str = DEFAULT_DB_ALIAS,
    ) -> InventoryLot | None:
        qs = InventoryLot.objects.using(using)
        if for_update:
            qs = qs.select_for_update()
        return qs.filter(
            facility_id=facility_id,
            drug_name=drug_name,
            batch_number=batch_number,
        ).first()

    @staticmethod
    def adjust_stock(lot: InventoryLot, delta: int, *, using: str = DEFAULT_DB_ALIAS) -> InventoryLot:
        """
        Apply ``delta`` to a locked lot and recompute its status.

        Only valid inside the atomic block that locked the lot; the write is
        committed or discarded with the rest of that block.
        """
        if not transaction.get_connection(using).in_atomic_block:
            raise TransactionError(detail='Stock adjustments must run inside an atomic block.')
        new_stock = lot.current_stock + delta
        if new_stock < 0:
            raise InsufficientStockError(
                detail=f'Insufficient stock: available={lot.current_stock}, requested={-delta}.',
            )
        lot.current_stock = new_stock
        lot.refresh_status()
        lot.save(using=using, update_fields=['current_stock', 'status', 'updated_at'])
        return lot

    @staticmethod
    def create_lot(
        *,
        facility_id,
        drug_name: str,
        batch_number: str,
        current_stock: int,
        supplier: str,
        expiry_date,
        received_date,
        reorder_level: int = DEFAULT_REORDER_LEVEL,
        location: str = '',
        created_by=None,
        using: str = DEFAULT_DB_ALIAS,
    ) -> InventoryLot:
        lot = InventoryLot(
            facility_id=facility_id,
            drug_name=drug_name,
            batch_number=batch_number,
            current_stock=current_stock,
            reorder_level=reorder_level,
            supplier=supplier,
            expiry_date=expiry_date,
            received_date=received_date,
            location=location,
            created_by=created_by,
        )
        lot.refresh_status()
        lot.save(using=using, force_insert=True)
        return lot

    @staticmethod
    def get_or_create_lot(
        *,
        facility_id,
        drug_name: str,
        batch_number: str,
        defaults: dict,
        using: str = DEFAULT_DB_ALIAS,
    ) -> tuple[InventoryLot, bool]:
        """
        Lock the lot identified by (facility, drug_name, batch_number),
        creating it from ``defaults`` when absent. Two concurrent creators
        collide on the unique constraint; the loser re-reads and locks the
        winner's row.
        """
        values = dict(defaults)
        values['status'] = derive_status(
            values['current_stock'], values.get('reorder_level', DEFAULT_REORDER_LEVEL),
        )
        return InventoryLot.objects.using(using).select_for_update().get_or_create(
            facility_id=facility_id,
            drug_name=drug_name,
            batch_number=batch_number,
            defaults=values,
        )

    @staticmethod
    def receive_stock(
        *,
        actor,
        drug_name: str,
        batch_number: str,
        current_stock: int,
        supplier: str,
        expiry_date,
        received_date,
        reorder_level: int | None = None,
        location: str = '',
    ) -> InventoryLot:
        """Register a newly received lot at the actor's facility."""
        required = {
            'drug_name': drug_name,
            'batch_number': batch_number,
            'current_stock': current_stock,
            'supplier': supplier,
            'expiry_date': expiry_date,
            'received_date': received_date,
        }
        missing = sorted(name for name, value in required.items() if value is None or value == '')
        if missing:
            raise RequestValidationError(detail=f'Missing required fields: {", ".join(missing)}.')
        if current_stock < 0:
            raise RequestValidationError(detail='Current stock cannot be negative.')
        _validate_dates(expiry_date=expiry_date, received_date=received_date)
        if actor.facility_id is None:
            raise AuthorizationError(detail='Your account is not attached to a facility.')

        duplicate_detail = (
            f"Drug '{drug_name}' with batch number '{batch_number}' already exists for this facility."
        )
        with transaction.atomic():
            if InventoryLedger.find_lot(
                facility_id=actor.facility_id, drug_name=drug_name, batch_number=batch_number,
            ):
                raise DuplicateResourceError(detail=duplicate_detail)
            try:
                with transaction.atomic():
                    lot = InventoryLedger.create_lot(
                        facility_id=actor.facility_id,
                        drug_name=drug_name,
                        batch_number=batch_number,
                        current_stock=current_stock,
                        supplier=supplier,
                        expiry_date=expiry_date,
                        received_date=received_date,
                        reorder_level=DEFAULT_REORDER_LEVEL if reorder_level is None else reorder_level,
                        location=location,
                        created_by=actor,
                    )
            except IntegrityError:
                raise DuplicateResourceError(detail=duplicate_detail)

            AuditService.record(
                actor=actor,
                action=AUDIT_ACTION_CREATE,
                module=AUDIT_MODULE_INVENTORY,
                target_id=lot.pk,
                message=f'{drug_name} added to inventory by {actor}',
                new_values=AuditService.snapshot(
                    lot, fields=['drug_name', 'batch_number', 'current_stock', 'reorder_level', 'status'],
                ),
            )
            publish_stock_alert(lot)
            publish_expiry_alert(lot)
        logger.info(
            'Lot %s received at facility %s: %s %s qty=%s',
            lot.pk, lot.facility_id, drug_name, batch_number, current_stock,
        )
        return lot

    @staticmethod
    def update_lot(
        *,
        actor,
        lot_id,
        reorder_level: int | None = None,
        supplier: str | None = None,
        expiry_date=None,
        received_date=None,
        location: str | None = None,
    ) -> InventoryLot:
        """
        Edit the descriptive fields of one of the actor's lots.

        Stock itself only moves through receipt, dispensation and
        redistribution; a new reorder level re-derives the status.
        """
        changes = {
            name: value for name, value in (
                ('reorder_level', reorder_level),
                ('supplier', supplier),
                ('expiry_date', expiry_date),
                ('received_date', received_date),
                ('location', location),
            )
            if value is not None
        }
        if not changes:
            raise RequestValidationError(detail='No updatable fields provided.')
        if reorder_level is not None and reorder_level < 0:
            raise RequestValidationError(detail='Reorder level cannot be negative.')
        if supplier is not None and not supplier.strip():
            raise RequestValidationError(detail='Supplier cannot be blank.')

        with atomic_unit(label=f'Lot {lot_id} update'):
            lot = InventoryLot.objects.select_for_update().filter(pk=lot_id).first()
            if lot is None:
                raise ResourceNotFoundError(detail='Drug not found in inventory.')
            if not actor.belongs_to(lot.facility_id):
                raise AuthorizationError(
                    detail='Not authorized to update this inventory item.',
                )
            if 'expiry_date' in changes or 'received_date' in changes:
                _validate_dates(
                    expiry_date=changes.get('expiry_date', lot.expiry_date),
                    received_date=changes.get('received_date', lot.received_date),
                )

            for name, value in changes.items():
                setattr(lot, name, value)
            lot.refresh_status()
            lot.save(update_fields=[*changes, 'status', 'updated_at'])

            AuditService.record(
                actor=actor,
                action=AUDIT_ACTION_UPDATE,
                module=AUDIT_MODULE_INVENTORY,
                target_id=lot.pk,
                message=f'{actor} updated {lot.drug_name} batch {lot.batch_number}',
                new_values=AuditService.snapshot(lot, fields=[*changes, 'status']),
            )
            publish_stock_alert(lot)
            publish_expiry_alert(lot)

        logger.info('Lot %s updated: %s', lot.pk, ', '.join(sorted(changes)))
        return lot


class DispensationService:
    """Dispensing stock out of a facility's lot."""

    @staticmethod
    def list_dispensations(facility_id) -> QuerySet[Dispensation]:
        return Dispensation.objects.filter(facility_id=facility_id).select_related('lot', 'dispensed_by')

    @staticmethod
    def dispense(
        *,
        actor,
        lot_id,
        quantity: int,
        dispensed_to: str,
        note: str = '',
    ) -> Dispensation:
        """
        Debit ``quantity`` from the lot under a row lock and record the
        dispensation. Concurrent dispensations and redistribution approvals
        on the same lot are serialised; the later one re-reads the stock.
        """
        if not lot_id or not quantity or not dispensed_to:
            raise RequestValidationError(detail='Please fill in all required fields.')
        if quantity <= 0:
            raise RequestValidationError(detail='Quantity must be positive.')

        with atomic_unit(label='Dispensation'):
            lot = InventoryLot.objects.select_for_update().filter(pk=lot_id).first()
            if lot is None:
                raise ResourceNotFoundError(detail='Drug not found in inventory.')
            if not actor.belongs_to(lot.facility_id):
                raise AuthorizationError(
                    detail='Not authorized to dispense this drug from another facility.',
                )
            InventoryLedger.adjust_stock(lot, -quantity)
            dispensation = Dispensation.objects.create(
                lot=lot,
                facility_id=lot.facility_id,
                quantity=quantity,
                dispensed_to=dispensed_to,
                note=note or '',
                dispensed_by=actor,
            )
            AuditService.record(
                actor=actor,
                action=AUDIT_ACTION_STOCK_CHANGE,
                module=AUDIT_MODULE_DISPENSATION,
                target_id=dispensation.pk,
                message=f'{actor} dispensed {quantity} of {lot.drug_name} to {dispensed_to}',
                new_values={
                    'lot_id': str(lot.pk),
                    'quantity': quantity,
                    'current_stock': lot.current_stock,
                    'status': lot.status,
                },
            )
            publish_stock_alert(lot)

        logger.info(
            'Dispensation %s qty=%s lot=%s facility=%s remaining=%s',
            dispensation.pk, quantity, lot.pk, lot.facility_id, lot.current_stock,
        )
        return dispensation
