"""Retry utilities for rate-limited remote calls.

Provides RetryPolicy, which wraps an async call and retries it with
exponential backoff when (and only when) the failure is recognized as a
rate-limit signal. Any other failure propagates immediately on the first
attempt.

The same policy wraps both the issue tracker and the oracle.

Backoff Formula:
    delay before retry N (N >= 1) = base_delay * 2 ** (N - 1)
    For base_delay=1.0 and max_attempts=3 the attempts start at
    t=0s, then after sleeping 1s, then after sleeping 2s.

Example:
    >>> policy = RetryPolicy(max_attempts=3, base_delay=1.0)
    >>> issue = await policy.run(lambda: store.get_issue("octo", "repo", 42))
"""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

import structlog

from autotriage.exceptions import AutoTriageError, RateLimitError

log = structlog.get_logger(__name__)

T = TypeVar("T")


def is_rate_limited(error: BaseException) -> bool:
    """Classify an exception as a rate-limit signal.

    Adapters translate rate-limit responses into RateLimitError, so any
    other autotriage error is never a rate limit. Foreign exceptions count
    only when they carry ``status_code`` or ``status`` equal to 429; message
    text is never inspected.
    """
    if isinstance(error, RateLimitError):
        return True
    if isinstance(error, AutoTriageError):
        return False
    return any(getattr(error, attr, None) == 429 for attr in ("status_code", "status"))


@dataclass(frozen=True)
class RetryPolicy:
    """Fixed-schedule exponential backoff for rate-limited calls.

    Attributes:
        max_attempts: Total number of attempts, including the first one.
        base_delay: Seconds to sleep before the first retry; doubles after.
    """

    max_attempts: int = 3
    base_delay: float = 1.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.base_delay < 0:
            raise ValueError("base_delay must not be negative")

    def delay_for(self, retry_number: int) -> float:
        """Seconds to wait before the given retry (1-based)."""
        return self.base_delay * (2 ** (retry_number - 1))

    def schedule(self) -> list[float]:
        """Sleep durations between attempts if every attempt is rate-limited."""
        return [self.delay_for(n) for n in range(1, self.max_attempts)]

    async def run(
        self,
        func: Callable[[], Awaitable[T]],
        description: str | None = None,
    ) -> T:
        """Invoke ``func``, retrying on rate-limit failures.

        Args:
            func: Zero-argument coroutine factory; called once per attempt.
            description: Name used in log events (defaults to func.__name__).

        Returns:
            The first successful result.

        Raises:
            The last rate-limit exception once attempts are exhausted, or
            any non-rate-limit exception immediately.
        """
        name = description or getattr(func, "__name__", "call")

        for attempt in range(1, self.max_attempts + 1):
            try:
                return await func()
            except Exception as e:
                if not is_rate_limited(e):
                    raise
                if attempt == self.max_attempts:
                    log.error(
                        "retry_exhausted",
                        function=name,
                        attempts=attempt,
                        error=str(e),
                    )
                    raise

                delay = self.delay_for(attempt)
                log.warning(
                    "retry_attempt",
                    function=name,
                    attempt=attempt,
                    max_attempts=self.max_attempts,
                    delay=delay,
                    error=str(e),
                )
                await asyncio.sleep(delay)

        raise RuntimeError("Retry logic error")
