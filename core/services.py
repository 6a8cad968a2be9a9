"""
Core — Audit Service

Provides methods for writing audit log entries from any app.
Recording is best-effort: a failed write is logged and never aborts the
operation being audited.

@file core/services.py
"""

import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from django.db import DEFAULT_DB_ALIAS, DatabaseError, transaction
from django.forms.models import model_to_dict

from core.models import AuditLog

logger = logging.getLogger('rxbridge')


class AuditService:
    """Centralised audit logging for every write operation."""

    @staticmethod
    def record(
        *,
        actor,
        action: str,
        module: str,
        target_id,
        message: str = '',
        facility=None,
        new_values: dict[str, Any] | None = None,
        using: str = DEFAULT_DB_ALIAS,
    ) -> AuditLog | None:
        """
        Append one audit entry. The insert runs in its own savepoint so a
        failing audit write leaves the surrounding transaction usable.
        """
        if facility is None and actor is not None:
            facility = getattr(actor, 'facility', None)
        try:
            with transaction.atomic(using=using):
                return AuditLog.objects.using(using).create(
                    actor=actor,
                    facility=facility,
                    action=action,
                    module=module,
                    object_id=str(target_id),
                    message=message,
                    new_values=new_values,
                )
        except DatabaseError:
            logger.exception(
                'Failed to record audit entry %s %s:%s', action, module, target_id,
            )
            return None

    @staticmethod
    def snapshot(instance, fields=None) -> dict[str, Any]:
        """
        Serialise a model instance to a plain dict suitable for JSON
        storage. Dates are ISO-formatted; UUIDs and Decimals stringified.
        """
        data = model_to_dict(instance, fields=fields)
        cleaned: dict[str, Any] = {}
        for key, value in data.items():
            if value is None:
                cleaned[key] = None
            elif isinstance(value, Decimal):
                cleaned[key] = str(value)
            elif isinstance(value, (date, datetime)):
                cleaned[key] = value.isoformat()
            elif hasattr(value, 'hex'):
                cleaned[key] = str(value)
            elif hasattr(value, 'pk'):
                cleaned[key] = str(value.pk)
            else:
                cleaned[key] = value
        return cleaned
