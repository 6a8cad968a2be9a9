"""
Core — Bounded Retry

Retries an operation that raised TransactionError (lock conflict, deadlock,
serialization failure) with exponential backoff and full jitter. Only
operations that re-validate their own preconditions on every attempt may be
wrapped here.

@file core/retry.py
"""

import logging
import random
import time
from collections.abc import Callable
from typing import TypeVar

from django.conf import settings
from django.db import DEFAULT_DB_ALIAS, transaction

from core.exceptions import TransactionError

logger = logging.getLogger('rxbridge')

T = TypeVar('T')

MAX_BACKOFF_SECONDS = 1.0


def backoff_delay(attempt: int, base_delay: float, max_delay: float = MAX_BACKOFF_SECONDS) -> float:
    """Full-jitter delay for the given 1-based attempt number."""
    ceiling = min(max_delay, base_delay * (2 ** (attempt - 1)))
    return random.uniform(0, ceiling)


def run_with_retry(
    operation: Callable[[], T],
    *,
    attempts: int | None = None,
    base_delay: float | None = None,
    using: str = DEFAULT_DB_ALIAS,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """
    Call ``operation`` until it succeeds, raises something other than
    TransactionError, or ``attempts`` is exhausted.

    Inside an enclosing atomic block the failed transaction cannot be
    retried from here, so the first TransactionError propagates.
    """
    if attempts is None:
        attempts = settings.REDISTRIBUTION_MAX_ATTEMPTS
    if base_delay is None:
        base_delay = settings.REDISTRIBUTION_RETRY_BASE_DELAY
    if transaction.get_connection(using).in_atomic_block:
        attempts = 1

    for attempt in range(1, attempts + 1):
        try:
            return operation()
        except TransactionError:
            if attempt >= attempts:
                logger.warning('Transaction conflict: giving up after %d attempt(s).', attempt)
                raise
            delay = backoff_delay(attempt, base_delay)
            logger.warning(
                'Transaction conflict on attempt %d/%d; retrying in %.3fs.',
                attempt, attempts, delay,
            )
            sleep(delay)
    raise TransactionError()  # attempts < 1
