"""Token-bucket rate limiting for provider calls."""

import logging
import threading
import time
from typing import Any, Callable, List, Mapping, Optional, Union

from baton.domain.exceptions import RateLimitTimeoutError
from baton.llm.provider import ModelResponse, ProviderAdapter, ProviderMessage, ToolSchema

logger = logging.getLogger(__name__)


class TokenBucket:
    """
    Thread-safe token bucket.

    Holds at most burst permits and refills at rate_per_minute / 60 permits
    per second. May be shared between runs.

    Args:
        rate_per_minute: Sustained permit rate.
        burst: Bucket capacity; the bucket starts full.
        clock: Monotonic time source in seconds.
        sleep: Sleep function used while blocking.
    """

    def __init__(
        self,
        rate_per_minute: float,
        burst: int = 1,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if rate_per_minute <= 0:
            raise ValueError("rate_per_minute must be positive")
        if burst < 1:
            raise ValueError("burst must be at least 1")
        self.capacity = burst
        self.refill_per_second = rate_per_minute / 60.0
        self._clock = clock
        self._sleep = sleep
        self._tokens = float(burst)
        self._updated = clock()
        self._lock = threading.Lock()

    def _refill(self) -> None:
        now = self._clock()
        elapsed = max(0.0, now - self._updated)
        self._tokens = min(self.capacity, self._tokens + elapsed * self.refill_per_second)
        self._updated = now

    def try_acquire(self) -> bool:
        """Takes a permit if one is available right now."""

        with self._lock:
            self._refill()
            if self._tokens >= 1.0:
                self._tokens -= 1.0
                return True
            return False

    def wait_time(self) -> float:
        """Seconds until the next permit becomes available."""

        with self._lock:
            self._refill()
            if self._tokens >= 1.0:
                return 0.0
            return (1.0 - self._tokens) / self.refill_per_second

    def acquire(self, timeout: Optional[float] = None) -> None:
        """
        Blocks until a permit is taken.

        Args:
            timeout: Maximum seconds to wait; None waits indefinitely.

        Raises:
            RateLimitTimeoutError: When no permit can be granted in time. The
                error is raised as soon as the required wait is known to
                exceed the remaining timeout.
        """
        deadline = None if timeout is None else self._clock() + timeout
        while True:
            with self._lock:
                self._refill()
                if self._tokens >= 1.0:
                    self._tokens -= 1.0
                    return
                wait = (1.0 - self._tokens) / self.refill_per_second

            if deadline is not None:
                remaining = deadline - self._clock()
                if wait > remaining:
                    raise RateLimitTimeoutError(
                        f"No rate limit permit within {timeout:.2f}s "
                        f"(next in {wait:.2f}s)"
                    )
            logger.debug("Waiting for rate limit permit", extra={"wait_seconds": wait})
            self._sleep(wait)


class RateLimitedProvider:
    """Provider decorator taking a bucket permit before every call."""

    def __init__(
        self,
        provider: ProviderAdapter,
        bucket: TokenBucket,
        timeout: Optional[float] = None,
    ) -> None:
        self._provider = provider
        self._bucket = bucket
        self._timeout = timeout

    def complete(
        self,
        messages: List[ProviderMessage],
        model: str,
        tools: List[ToolSchema],
    ) -> Union[ModelResponse, Mapping[str, Any]]:
        self._bucket.acquire(self._timeout)
        return self._provider.complete(messages, model, tools)
