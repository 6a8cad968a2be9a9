"""
Core — Retry Tests

run_with_retry only retries TransactionError, within its attempt limit,
and never from inside an enclosing atomic block.

@file core/tests/test_retry.py
"""

from unittest import mock

import pytest
from django.db import transaction

from core.exceptions import InsufficientStockError, TransactionError
from core.retry import backoff_delay, run_with_retry


def _flaky(failures, result='ok', exc=TransactionError):
    calls = {'count': 0}

    def operation():
        calls['count'] += 1
        if calls['count'] <= failures:
            raise exc()
        return result

    return operation, calls


class TestBackoff:
    def test_delay_is_bounded_by_exponential_ceiling(self):
        for attempt in (1, 2, 3):
            for _ in range(20):
                delay = backoff_delay(attempt, 0.05)
                assert 0 <= delay <= 0.05 * (2 ** (attempt - 1))

    def test_delay_is_capped(self):
        assert backoff_delay(30, 0.5, max_delay=1.0) <= 1.0


class TestRunWithRetry:
    def test_succeeds_after_transient_conflicts(self):
        operation, calls = _flaky(failures=2)
        sleep = mock.Mock()
        assert run_with_retry(operation, attempts=3, base_delay=0.01, sleep=sleep) == 'ok'
        assert calls['count'] == 3
        assert sleep.call_count == 2

    def test_gives_up_after_attempt_limit(self):
        operation, calls = _flaky(failures=5)
        with pytest.raises(TransactionError):
            run_with_retry(operation, attempts=3, base_delay=0, sleep=mock.Mock())
        assert calls['count'] == 3

    def test_business_errors_are_not_retried(self):
        operation, calls = _flaky(failures=5, exc=InsufficientStockError)
        with pytest.raises(InsufficientStockError):
            run_with_retry(operation, attempts=3, base_delay=0, sleep=mock.Mock())
        assert calls['count'] == 1

    def test_defaults_come_from_settings(self, settings):
        settings.REDISTRIBUTION_MAX_ATTEMPTS = 2
        settings.REDISTRIBUTION_RETRY_BASE_DELAY = 0
        operation, calls = _flaky(failures=5)
        with pytest.raises(TransactionError):
            run_with_retry(operation, sleep=mock.Mock())
        assert calls['count'] == 2

    def test_no_retry_inside_outer_atomic_block(self):
        operation, calls = _flaky(failures=1)
        connection = mock.Mock(in_atomic_block=True)
        with mock.patch.object(transaction, 'get_connection', return_value=connection):
            with pytest.raises(TransactionError):
                run_with_retry(operation, attempts=3, base_delay=0, sleep=mock.Mock())
        assert calls['count'] == 1
