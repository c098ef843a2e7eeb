# tests/test_retry.py
import asyncio

import pytest

from generation.retry import RetryPolicy, retry_async


class Flaky:
    def __init__(self, failures, exc=RuntimeError):
        self.failures = failures
        self.exc = exc
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        if self.calls <= self.failures:
            raise self.exc(f"failure {self.calls}")
        return "ok"


class TestRetryPolicy:
    def test_delays_double(self):
        assert RetryPolicy(max_attempts=3, base_delay=2.0, multiplier=2.0).delays() == [2.0, 4.0]

    def test_single_attempt_has_no_delays(self):
        assert RetryPolicy(max_attempts=1, base_delay=2.0).delays() == []


class TestRetryAsync:
    def _run(self, fn, policy, **kwargs):
        slept = []

        async def fake_sleep(d):
            slept.append(d)

        result = asyncio.run(retry_async(fn, policy, sleep=fake_sleep, **kwargs))
        return result, slept

    def test_succeeds_after_transient_failures(self):
        fn = Flaky(failures=2)
        result, slept = self._run(fn, RetryPolicy(max_attempts=3, base_delay=2.0))
        assert result == "ok"
        assert fn.calls == 3
        assert slept == [2.0, 4.0]

    def test_reraises_last_error_when_exhausted(self):
        fn = Flaky(failures=5)
        with pytest.raises(RuntimeError, match="failure 3"):
            self._run(fn, RetryPolicy(max_attempts=3, base_delay=0.1))
        assert fn.calls == 3

    def test_non_retryable_error_propagates_immediately(self):
        fn = Flaky(failures=1, exc=KeyError)
        with pytest.raises(KeyError):
            self._run(fn, RetryPolicy(max_attempts=3), retry_on=(RuntimeError,))
        assert fn.calls == 1

    def test_zero_attempts_rejected(self):
        with pytest.raises(ValueError):
            self._run(Flaky(0), RetryPolicy(max_attempts=0))
