from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, TypeVar

import aiohttp

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded retry with linear backoff: the k-th retry waits base_delay * k."""

    max_retries: int = 3
    base_delay_sec: float = 1.0

    def delay_for(self, retry_number: int) -> float:
        return self.base_delay_sec * retry_number


DEFAULT_POLICY = RetryPolicy()


def is_retryable(exc: BaseException) -> bool:
    """Client rejections (4xx other than 429) are final; everything else is transient."""
    if isinstance(exc, (aiohttp.ClientError, asyncio.TimeoutError)):
        return True
    status = getattr(exc, "status", None)
    if isinstance(status, int) and 400 <= status < 500 and status != 429:
        return False
    return True


async def fetch_with_retry(
    operation: Callable[[], Awaitable[T]],
    policy: Optional[RetryPolicy] = None,
    *,
    logger: Any = None,
    label: Optional[str] = None,
    should_retry: Callable[[BaseException], bool] = is_retryable,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> T:
    """Run ``operation`` until it succeeds or the policy is exhausted.

    The operation is called at most ``policy.max_retries + 1`` times. The
    exception from the last attempt is re-raised as-is so callers can still
    inspect its type and fields.
    """
    policy = policy or DEFAULT_POLICY
    retries_left = policy.max_retries
    while True:
        try:
            return await operation()
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            if retries_left <= 0 or not should_retry(exc):
                raise
            retry_number = policy.max_retries - retries_left + 1
            delay = policy.delay_for(retry_number)
            if logger is not None:
                logger.warning(
                    "vybe_retry",
                    extra={
                        "label": label,
                        "retry": retry_number,
                        "retries_left": retries_left,
                        "delay_sec": delay,
                        "error": repr(exc),
                    },
                )
            await sleep(delay)
            retries_left -= 1
