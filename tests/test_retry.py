# ============================================================================
# RETRY POLICY TESTS
# ============================================================================
# EPOCH: 1 - RDS IAM CONNECTOR
# STATUS: Tests - Bounded retry without backoff
# PURPOSE: Verify retry counts and success/failure interleavings
# CREATED: 19 OCT 2026
# ============================================================================
"""
Retry Policy Tests

Covers:
1. First-call success (no extra calls)
2. Fail-then-succeed returns the later result
3. Exhaustion raises RetryExhausted carrying the last error
4. BaseException subclasses are not retried
5. Argument validation

Run with:
    pytest tests/test_retry.py -v
"""

import pytest
from unittest.mock import MagicMock

from core.errors import RetryExhausted
from infrastructure.retry import retry_call


def scripted(*outcomes):
    """Operation returning/raising each outcome in turn, counting calls."""
    calls = {"count": 0}
    remaining = list(outcomes)

    def operation():
        calls["count"] += 1
        outcome = remaining.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    return operation, calls


class TestRetryCall:
    """Test retry_call interleavings."""

    def test_success_on_first_attempt(self):
        operation, calls = scripted("ok")
        assert retry_call(operation, attempts=2) == "ok"
        assert calls["count"] == 1

    def test_fail_then_succeed(self):
        operation, calls = scripted(RuntimeError("transient"), "second")
        assert retry_call(operation, attempts=2) == "second"
        assert calls["count"] == 2

    def test_all_attempts_fail(self):
        first, last = RuntimeError("one"), ValueError("two")
        operation, calls = scripted(first, last)

        with pytest.raises(RetryExhausted) as excinfo:
            retry_call(operation, attempts=2)

        assert calls["count"] == 2
        assert excinfo.value.attempts == 2
        assert excinfo.value.last_error is last
        assert excinfo.value.__cause__ is last

    def test_no_calls_beyond_bound(self):
        operation, calls = scripted(*[RuntimeError("x")] * 5)
        with pytest.raises(RetryExhausted):
            retry_call(operation, attempts=3)
        assert calls["count"] == 3

    def test_single_attempt(self):
        operation, calls = scripted(RuntimeError("x"), "never")
        with pytest.raises(RetryExhausted):
            retry_call(operation, attempts=1)
        assert calls["count"] == 1

    def test_on_failure_hook(self):
        error = RuntimeError("transient")
        operation, _ = scripted(error, "ok")
        hook = MagicMock()

        retry_call(operation, attempts=2, on_failure=hook)

        hook.assert_called_once_with(1, error)

    def test_keyboard_interrupt_not_retried(self):
        operation, calls = scripted(KeyboardInterrupt(), "never")
        with pytest.raises(KeyboardInterrupt):
            retry_call(operation, attempts=2)
        assert calls["count"] == 1

    @pytest.mark.parametrize("attempts", [0, -1])
    def test_attempts_must_be_positive(self, attempts):
        operation, calls = scripted("ok")
        with pytest.raises(ValueError, match="attempts"):
            retry_call(operation, attempts=attempts)
        assert calls["count"] == 0
