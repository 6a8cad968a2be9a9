"""
Notifications — Models

Facility-targeted (optionally user-targeted) notifications about stock
levels, approaching expiry and redistribution requests. Rows are written
only after the originating change has committed.

@file notifications/models.py
"""

import uuid

from django.conf import settings
from django.db import models
from django.utils.translation import gettext_lazy as _


class Notification(models.Model):

    class TypeChoices(models.TextChoices):
        LOW_STOCK = 'LOW_STOCK', _('Low stock')
        OUT_OF_STOCK = 'OUT_OF_STOCK', _('Out of stock')
        DRUG_EXPIRING = 'DRUG_EXPIRING', _('Drug expiring')
        DRUG_EXPIRED = 'DRUG_EXPIRED', _('Drug expired')
        REDISTRIBUTION_CREATED = 'REDISTRIBUTION_CREATED', _('Redistribution created')
        REDISTRIBUTION_APPROVED = 'REDISTRIBUTION_APPROVED', _('Redistribution approved')
        REDISTRIBUTION_COMPLETED = 'REDISTRIBUTION_COMPLETED', _('Redistribution completed')
        REDISTRIBUTION_DECLINED = 'REDISTRIBUTION_DECLINED', _('Redistribution declined')

    class PriorityChoices(models.TextChoices):
        LOW = 'LOW', _('Low')
        MEDIUM = 'MEDIUM', _('Medium')
        HIGH = 'HIGH', _('High')
        CRITICAL = 'CRITICAL', _('Critical')

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    type = models.CharField(
        _('type'), max_length=30,
        choices=TypeChoices.choices, db_index=True,
    )
    title = models.CharField(_('title'), max_length=255)
    message = models.TextField(_('message'))
    priority = models.CharField(
        _('priority'), max_length=10,
        choices=PriorityChoices.choices,
        default=PriorityChoices.MEDIUM,
    )
    facility = models.ForeignKey(
        'facilities.Facility',
        on_delete=models.CASCADE,
        related_name='notifications',
        verbose_name=_('facility'),
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True, blank=True,
        on_delete=models.CASCADE,
        related_name='notifications',
        verbose_name=_('user'),
    )
    lot = models.ForeignKey(
        'inventory.InventoryLot',
        null=True, blank=True,
        on_delete=models.SET_NULL,
        related_name='notifications',
        verbose_name=_('drug lot'),
    )
    drug_name = models.CharField(_('drug name'), max_length=255)
    batch_number = models.CharField(_('batch number'), max_length=100)
    expiry_date = models.DateField(_('expiry date'), null=True, blank=True)
    redistribution = models.ForeignKey(
        'redistribution.RedistributionRequest',
        null=True, blank=True,
        on_delete=models.SET_NULL,
        related_name='notifications',
        verbose_name=_('redistribution request'),
    )
    metadata = models.JSONField(_('metadata'), default=dict, blank=True)
    is_read = models.BooleanField(_('read'), default=False)
    created_at = models.DateTimeField(_('created at'), auto_now_add=True, db_index=True)

    class Meta:
        verbose_name = _('notification')
        verbose_name_plural = _('notifications')
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['facility', 'is_read', 'created_at']),
            models.Index(fields=['user', 'is_read', 'created_at']),
            models.Index(fields=['lot', 'type', 'created_at']),
        ]

    def __str__(self):
        return f'{self.type} → {self.facility_id}'
