import asyncio

import aiohttp
import pytest

from alayeseke_bot.retry import RetryPolicy, fetch_with_retry, is_retryable
from alayeseke_bot.vybe import VybeApiError


class FlakyOperation:
    def __init__(self, failures, error_factory=lambda: VybeApiError(503, "unavailable")):
        self.failures = failures
        self.error_factory = error_factory
        self.calls = 0
        self.errors = []

    async def __call__(self):
        self.calls += 1
        if self.calls <= self.failures:
            error = self.error_factory()
            self.errors.append(error)
            raise error
        return "ok"


def run_with_retry(operation, policy):
    delays = []

    async def fake_sleep(delay):
        delays.append(delay)

    async def _run():
        return await fetch_with_retry(operation, policy, sleep=fake_sleep)

    return asyncio.run(_run()), delays


def test_success_first_try_does_not_sleep():
    op = FlakyOperation(0)
    result, delays = run_with_retry(op, RetryPolicy(max_retries=3, base_delay_sec=1.0))
    assert result == "ok"
    assert op.calls == 1
    assert delays == []


def test_recovers_after_transient_failures_with_linear_backoff():
    op = FlakyOperation(2)
    result, delays = run_with_retry(op, RetryPolicy(max_retries=3, base_delay_sec=1.0))
    assert result == "ok"
    assert op.calls == 3
    assert delays == [1.0, 2.0]


@pytest.mark.parametrize(
    "max_retries,failures",
    [(0, 0), (0, 1), (1, 1), (1, 5), (3, 2), (3, 3), (3, 4), (3, 10), (5, 4)],
)
def test_call_count_is_bounded(max_retries, failures):
    op = FlakyOperation(failures)
    policy = RetryPolicy(max_retries=max_retries, base_delay_sec=0.5)
    delays = []

    async def fake_sleep(delay):
        delays.append(delay)

    async def _run():
        try:
            await fetch_with_retry(op, policy, sleep=fake_sleep)
        except VybeApiError:
            pass

    asyncio.run(_run())
    assert op.calls == min(failures + 1, max_retries + 1)
    assert delays == [0.5 * k for k in range(1, op.calls)]


def test_exhausted_retries_reraise_original_error():
    op = FlakyOperation(10)
    delays = []

    async def fake_sleep(delay):
        delays.append(delay)

    async def _run():
        await fetch_with_retry(op, RetryPolicy(max_retries=3, base_delay_sec=1.0), sleep=fake_sleep)

    with pytest.raises(VybeApiError) as excinfo:
        asyncio.run(_run())
    assert excinfo.value is op.errors[-1]
    assert excinfo.value.status == 503
    assert op.calls == 4
    assert delays == [1.0, 2.0, 3.0]


def test_client_rejection_is_not_retried():
    op = FlakyOperation(5, error_factory=lambda: VybeApiError(400, "bad address"))
    delays = []

    async def fake_sleep(delay):
        delays.append(delay)

    async def _run():
        await fetch_with_retry(op, RetryPolicy(), sleep=fake_sleep)

    with pytest.raises(VybeApiError):
        asyncio.run(_run())
    assert op.calls == 1
    assert delays == []


def test_is_retryable():
    assert is_retryable(VybeApiError(500)) is True
    assert is_retryable(VybeApiError(429)) is True
    assert is_retryable(VybeApiError(403)) is False
    assert is_retryable(VybeApiError(404)) is False
    assert is_retryable(asyncio.TimeoutError()) is True
    assert is_retryable(aiohttp.ClientConnectionError()) is True
    assert is_retryable(RuntimeError("boom")) is True


def test_retry_logs_each_attempt():
    class RecordingLogger:
        def __init__(self):
            self.events = []

        def warning(self, msg, extra=None):
            self.events.append((msg, extra))

    logger = RecordingLogger()
    op = FlakyOperation(2)

    async def fake_sleep(delay):
        return None

    async def _run():
        return await fetch_with_retry(
            op, RetryPolicy(max_retries=3), logger=logger, label="/account/pnl", sleep=fake_sleep
        )

    assert asyncio.run(_run()) == "ok"
    assert [event for event, _ in logger.events] == ["vybe_retry", "vybe_retry"]
    assert logger.events[0][1]["retry"] == 1
    assert logger.events[1][1]["delay_sec"] == 2.0
