"""
Core — Atomic Units

``atomic_unit`` is ``transaction.atomic`` for multi-row stock changes: any
database-level conflict (lock timeout, deadlock, serialization failure,
constraint race) surfaces as TransactionError after the block has rolled
back, so callers can tell a retryable conflict from a business-rule error.

@file core/transactions.py
"""

import logging
from contextlib import contextmanager

from django.db import DEFAULT_DB_ALIAS, IntegrityError, OperationalError, transaction

from core.exceptions import TransactionError

logger = logging.getLogger('rxbridge')


@contextmanager
def atomic_unit(using: str = DEFAULT_DB_ALIAS, label: str = 'atomic unit'):
    try:
        with transaction.atomic(using=using):
            yield
    except (OperationalError, IntegrityError) as exc:
        logger.warning('%s rolled back on database conflict: %s', label, exc)
        raise TransactionError() from exc
