"""
Inventory — Models

Per-facility, per-batch stock records. Each InventoryLot holds a running
balance whose status is always derived from (current_stock, reorder_level)
by ``derive_status``; no code path assigns a status by hand.
Dispensations are INSERT ONLY — never update or delete.

@file inventory/models.py
"""

import uuid

from django.conf import settings
from django.db import models
from django.utils.translation import gettext_lazy as _

from core.constants import DEFAULT_REORDER_LEVEL
from core.models import BaseModel


class StockStatus(models.TextChoices):
    ADEQUATE = 'ADEQUATE', _('Adequate')
    LOW_STOCK = 'LOW_STOCK', _('Low stock')
    OUT_OF_STOCK = 'OUT_OF_STOCK', _('Out of stock')


def derive_status(current_stock: int, reorder_level: int) -> str:
    """
    Stock-level status for a lot.

    0 units is OUT_OF_STOCK, anything strictly below the reorder level is
    LOW_STOCK, everything else ADEQUATE.
    """
    if current_stock <= 0:
        return StockStatus.OUT_OF_STOCK
    if current_stock < reorder_level:
        return StockStatus.LOW_STOCK
    return StockStatus.ADEQUATE


class InventoryLot(BaseModel):
    """
    One stocked batch of one drug at one facility.

    (facility, drug_name, batch_number) is unique; current_stock can never
    go negative (enforced in the ledger and by a check constraint).
    """

    facility = models.ForeignKey(
        'facilities.Facility',
        on_delete=models.PROTECT,
        related_name='inventory_lots',
        verbose_name=_('facility'),
    )
    drug_name = models.CharField(_('drug name'), max_length=255, db_index=True)
    batch_number = models.CharField(_('batch number'), max_length=100)
    current_stock = models.PositiveIntegerField(_('current stock'))
    reorder_level = models.PositiveIntegerField(
        _('reorder level'), default=DEFAULT_REORDER_LEVEL,
    )
    supplier = models.CharField(_('supplier'), max_length=255)
    expiry_date = models.DateField(_('expiry date'), db_index=True)
    received_date = models.DateField(_('received date'))
    location = models.CharField(_('storage location'), max_length=255, blank=True)
    status = models.CharField(
        _('status'), max_length=12,
        choices=StockStatus.choices,
        default=StockStatus.ADEQUATE,
        db_index=True,
    )
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True, blank=True,
        on_delete=models.SET_NULL,
        related_name='+',
        verbose_name=_('created by'),
    )

    class Meta:
        verbose_name = _('inventory lot')
        verbose_name_plural = _('inventory lots')
        ordering = ['drug_name', 'expiry_date']
        indexes = [
            models.Index(fields=['facility', 'status']),
            models.Index(fields=['facility', 'expiry_date']),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=['facility', 'drug_name', 'batch_number'],
                name='unique_facility_drug_batch',
            ),
            models.CheckConstraint(
                condition=models.Q(current_stock__gte=0),
                name='inventory_lot_stock_non_negative',
            ),
        ]

    def __str__(self):
        return f'{self.drug_name} ({self.batch_number}) @ {self.facility_id}'

    def refresh_status(self) -> str:
        self.status = derive_status(self.current_stock, self.reorder_level)
        return self.status


class Dispensation(models.Model):
    """
    A single immutable dispensation of stock to a patient or ward (insert only).
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    lot = models.ForeignKey(
        InventoryLot,
        on_delete=models.PROTECT,
        related_name='dispensations',
        verbose_name=_('lot'),
    )
    facility = models.ForeignKey(
        'facilities.Facility',
        on_delete=models.PROTECT,
        related_name='dispensations',
        verbose_name=_('facility'),
    )
    quantity = models.PositiveIntegerField(_('quantity dispensed'))
    dispensed_to = models.CharField(_('dispensed to'), max_length=255)
    note = models.TextField(_('note'), blank=True, default='')
    dispensed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        on_delete=models.SET_NULL,
        related_name='+',
        verbose_name=_('dispensed by'),
    )
    dispensed_at = models.DateTimeField(_('dispensed at'), auto_now_add=True, db_index=True)
    # No updated_at: immutable record.

    class Meta:
        verbose_name = _('dispensation')
        verbose_name_plural = _('dispensations')
        ordering = ['-dispensed_at']
        indexes = [
            models.Index(fields=['facility', 'dispensed_at']),
            models.Index(fields=['lot', 'dispensed_at']),
        ]

    def __str__(self):
        return f'{self.quantity} × {self.lot_id} → {self.dispensed_to}'

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise NotImplementedError('Dispensation is insert-only; updates are not allowed.')
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise NotImplementedError('Dispensation records cannot be deleted.')
