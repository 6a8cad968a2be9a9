"""
Redistribution — Models

Requests to move stock of one lot from one facility to another, and the
insert-only log mirroring every resolved request.

State machine: PENDING → COMPLETED (approved by the destination facility)
or PENDING → DECLINED. Both outcomes are terminal.

@file redistribution/models.py
"""

import uuid

from django.conf import settings
from django.db import DEFAULT_DB_ALIAS, models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from core.exceptions import InvalidStateTransition
from core.models import BaseModel


class RedistributionRequest(BaseModel):
    """
    A request by the source facility to hand ``quantity`` units of one of
    its lots over to another facility.

    Only ``status`` and the resolution stamps change after creation, and
    only through the redistribution services.
    """

    class StatusChoices(models.TextChoices):
        PENDING = 'PENDING', _('Pending')
        COMPLETED = 'COMPLETED', _('Completed')
        DECLINED = 'DECLINED', _('Declined')

    drug = models.ForeignKey(
        'inventory.InventoryLot',
        on_delete=models.PROTECT,
        related_name='redistribution_requests',
        verbose_name=_('source lot'),
    )
    quantity = models.PositiveIntegerField(_('quantity'))
    from_facility = models.ForeignKey(
        'facilities.Facility',
        on_delete=models.PROTECT,
        related_name='outgoing_redistributions',
        verbose_name=_('from facility'),
    )
    to_facility = models.ForeignKey(
        'facilities.Facility',
        on_delete=models.PROTECT,
        related_name='incoming_redistributions',
        verbose_name=_('to facility'),
    )
    reason = models.TextField(_('reason'))
    expiry_date = models.DateField(_('expiry date'), null=True, blank=True)
    status = models.CharField(
        _('status'), max_length=10,
        choices=StatusChoices.choices,
        default=StatusChoices.PENDING,
        db_index=True,
    )
    requested_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        on_delete=models.SET_NULL,
        related_name='redistributions_requested',
        verbose_name=_('requested by'),
    )
    received_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True, blank=True,
        on_delete=models.SET_NULL,
        related_name='redistributions_received',
        verbose_name=_('received by'),
    )
    received_at = models.DateTimeField(_('received at'), null=True, blank=True)
    declined_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True, blank=True,
        on_delete=models.SET_NULL,
        related_name='redistributions_declined',
        verbose_name=_('declined by'),
    )
    declined_at = models.DateTimeField(_('declined at'), null=True, blank=True)

    class Meta:
        verbose_name = _('redistribution request')
        verbose_name_plural = _('redistribution requests')
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['from_facility', 'status']),
            models.Index(fields=['to_facility', 'status']),
        ]
        constraints = [
            models.CheckConstraint(
                condition=~models.Q(from_facility=models.F('to_facility')),
                name='redistribution_distinct_facilities',
            ),
            models.CheckConstraint(
                condition=models.Q(quantity__gt=0),
                name='redistribution_quantity_positive',
            ),
        ]

    def __str__(self):
        return f'Redistribution {self.pk} {self.from_facility_id} → {self.to_facility_id} ({self.status})'

    @property
    def is_pending(self) -> bool:
        return self.status == self.StatusChoices.PENDING


# Valid status transitions: from_status -> set of allowed to_status
REQUEST_TRANSITIONS = {
    RedistributionRequest.StatusChoices.PENDING: {
        RedistributionRequest.StatusChoices.COMPLETED,
        RedistributionRequest.StatusChoices.DECLINED,
    },
    RedistributionRequest.StatusChoices.COMPLETED: set(),
    RedistributionRequest.StatusChoices.DECLINED: set(),
}


def assert_transition(request: RedistributionRequest, new_status: str) -> None:
    allowed = REQUEST_TRANSITIONS.get(request.status, set())
    if new_status not in allowed:
        raise InvalidStateTransition(
            detail=f'Cannot transition redistribution from {request.status} to {new_status}.',
        )


class RedistributionLog(models.Model):
    """
    Immutable record of one resolved redistribution (insert only).

    Carries enough of the request to be read without joining back to it.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    request = models.ForeignKey(
        RedistributionRequest,
        on_delete=models.PROTECT,
        related_name='logs',
        verbose_name=_('request'),
    )
    drug_name = models.CharField(_('drug name'), max_length=255)
    batch_number = models.CharField(_('batch number'), max_length=100)
    quantity = models.PositiveIntegerField(_('quantity'))
    from_facility = models.ForeignKey(
        'facilities.Facility',
        on_delete=models.PROTECT,
        related_name='+',
        verbose_name=_('from facility'),
    )
    to_facility = models.ForeignKey(
        'facilities.Facility',
        on_delete=models.PROTECT,
        related_name='+',
        verbose_name=_('to facility'),
    )
    status = models.CharField(
        _('status'), max_length=10,
        choices=RedistributionRequest.StatusChoices.choices,
    )
    reason = models.TextField(_('reason'), blank=True, default='')
    expiry_date = models.DateField(_('expiry date'), null=True, blank=True)
    requested_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        on_delete=models.SET_NULL,
        related_name='+',
        verbose_name=_('requested by'),
    )
    requested_at = models.DateTimeField(_('requested at'))
    actor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        on_delete=models.SET_NULL,
        related_name='+',
        verbose_name=_('resolved by'),
    )
    resolved_at = models.DateTimeField(_('resolved at'), db_index=True)
    created_at = models.DateTimeField(_('created at'), auto_now_add=True, db_index=True)
    # No updated_at: immutable record.

    class Meta:
        verbose_name = _('redistribution log')
        verbose_name_plural = _('redistribution logs')
        ordering = ['-created_at']

    def __str__(self):
        return f'{self.status} {self.quantity} × {self.drug_name} ({self.batch_number})'

    @classmethod
    def record(cls, request: RedistributionRequest, actor, *, using: str = DEFAULT_DB_ALIAS) -> 'RedistributionLog':
        """Mirror a freshly resolved request."""
        return cls.objects.using(using).create(
            request=request,
            drug_name=request.drug.drug_name,
            batch_number=request.drug.batch_number,
            quantity=request.quantity,
            from_facility_id=request.from_facility_id,
            to_facility_id=request.to_facility_id,
            status=request.status,
            reason=request.reason,
            expiry_date=request.expiry_date,
            requested_by_id=request.requested_by_id,
            requested_at=request.created_at,
            actor=actor,
            resolved_at=request.received_at or request.declined_at or timezone.now(),
        )

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise NotImplementedError('RedistributionLog is insert-only; updates are not allowed.')
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise NotImplementedError('RedistributionLog records cannot be deleted.')
