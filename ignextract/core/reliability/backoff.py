"""
Backoff — retry delays for transient fetch failures.

Exponential backoff with jitter: attempt ``n`` waits
``min(base * 2**(n-1), max_delay)`` plus up to 30% random jitter.
"""

from __future__ import annotations

import logging
import random
import time
from collections.abc import Callable, Iterator
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Backoff:
    """Retry schedule.

    Args:
        retries: Retries after the first attempt (0 = try once).
        base_delay: Delay before the first retry, in seconds.
        max_delay: Upper bound for a single delay, before jitter.
    """

    retries: int = 3
    base_delay: float = 0.5
    max_delay: float = 8.0

    def delay(self, attempt: int) -> float:
        """Delay before retry number ``attempt`` (1-based), jitter included."""
        delay = min(self.base_delay * (2 ** (attempt - 1)), self.max_delay)
        return delay + random.uniform(0, delay * 0.3)

    def delays(self) -> Iterator[float]:
        for attempt in range(1, self.retries + 1):
            yield self.delay(attempt)


def call_with_retry(
    func: Callable[[], object],
    backoff: Backoff,
    *,
    retryable: Callable[[Exception], bool],
    sleep: Callable[[float], None] = time.sleep,
    label: str = "",
):
    """Call ``func`` until it succeeds or retries are exhausted.

    Only exceptions for which ``retryable`` returns True are retried;
    anything else, and the last retryable failure, propagates.
    """
    delays = backoff.delays()
    attempt = 1
    while True:
        try:
            return func()
        except Exception as e:
            if not retryable(e):
                raise
            delay = next(delays, None)
            if delay is None:
                raise
            logger.info(
                "Attempt %d for %s failed (%s), retrying in %.1fs",
                attempt,
                label or "request",
                e,
                delay,
            )
            sleep(delay)
            attempt += 1
