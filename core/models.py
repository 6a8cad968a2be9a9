"""
Core — Base Models & Audit Infrastructure

Provides reusable abstract models for UUID keys and timestamps, and the
AuditLog model recording who did what across inventory, dispensation and
redistribution.

@file core/models.py
"""

import uuid

from django.conf import settings
from django.db import models
from django.utils.translation import gettext_lazy as _


# ---------------------------------------------------------------------------
# Abstract base models (mixins)
# ---------------------------------------------------------------------------

class TimestampMixin(models.Model):
    """Adds created_at / updated_at to any model."""

    created_at = models.DateTimeField(
        _('created at'), auto_now_add=True, db_index=True,
    )
    updated_at = models.DateTimeField(
        _('updated at'), auto_now=True,
    )

    class Meta:
        abstract = True


class BaseModel(TimestampMixin):
    """
    Standard base for all RxBridge models.
    UUID PK + timestamps.
    """

    id = models.UUIDField(
        primary_key=True, default=uuid.uuid4, editable=False,
    )

    class Meta:
        abstract = True


# ---------------------------------------------------------------------------
# Audit Log: append-only record of who did what
# ---------------------------------------------------------------------------

class AuditLog(models.Model):
    """
    Append-only audit trail. One row per recorded action.

    ``module`` names the functional area (Inventory, Dispensation,
    Redistribution); ``message`` is the human-readable line shown in
    activity feeds. ``new_values`` optionally carries a JSON snapshot.
    """

    class ActionChoices(models.TextChoices):
        CREATE = 'CREATE', _('Create')
        UPDATE = 'UPDATE', _('Update')
        STATUS_CHANGE = 'STATUS_CHANGE', _('Status Change')
        STOCK_CHANGE = 'STOCK_CHANGE', _('Stock Change')

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    actor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True, blank=True,
        on_delete=models.SET_NULL,
        related_name='audit_logs',
        verbose_name=_('actor'),
    )
    facility = models.ForeignKey(
        'facilities.Facility',
        null=True, blank=True,
        on_delete=models.SET_NULL,
        related_name='audit_logs',
        verbose_name=_('facility'),
    )
    action = models.CharField(
        _('action'), max_length=20,
        choices=ActionChoices.choices, db_index=True,
    )
    module = models.CharField(_('module'), max_length=50, db_index=True)
    object_id = models.CharField(_('object ID'), max_length=40, db_index=True)
    message = models.TextField(_('message'), blank=True, default='')

    new_values = models.JSONField(_('new values'), null=True, blank=True)

    timestamp = models.DateTimeField(_('timestamp'), auto_now_add=True, db_index=True)

    class Meta:
        verbose_name = _('audit log')
        verbose_name_plural = _('audit logs')
        ordering = ['-timestamp']
        indexes = [
            models.Index(fields=['module', 'object_id']),
            models.Index(fields=['actor', 'timestamp']),
            models.Index(fields=['facility', 'timestamp']),
        ]

    def __str__(self):
        return f'{self.action} {self.module}:{self.object_id} by {self.actor_id}'

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise NotImplementedError('AuditLog is append-only; updates are not allowed.')
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise NotImplementedError('AuditLog records cannot be deleted.')
