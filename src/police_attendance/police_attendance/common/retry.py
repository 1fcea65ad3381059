from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Tuple, Type, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


def linear_backoff(step_seconds: float) -> Callable[[int], float]:
    """Delay of `step_seconds * attempt` after the given (1-based) failed attempt."""

    def _delay(attempt: int) -> float:
        return step_seconds * attempt

    return _delay


def no_backoff(attempt: int) -> float:
    return 0.0


@dataclass(frozen=True)
class RetryPolicy:
    """Configurable retry: how many attempts, how long to wait, which errors qualify.

    `sleep` is injectable so tests run without real delays.
    """

    max_attempts: int = 3
    backoff: Callable[[int], float] = field(default=linear_backoff(0.5))
    retry_on: Tuple[Type[BaseException], ...] = (Exception,)
    sleep: Callable[[float], None] = time.sleep

    def call(self, fn: Callable[[], T], *, label: str = "operation") -> T:
        attempts = max(int(self.max_attempts), 1)
        for attempt in range(1, attempts + 1):
            try:
                return fn()
            except self.retry_on as exc:
                if attempt >= attempts:
                    raise
                delay = self.backoff(attempt)
                logger.warning("%s failed (attempt %d/%d): %s; retrying in %.2fs", label, attempt, attempts, exc, delay)
                if delay > 0:
                    self.sleep(delay)
        raise AssertionError("unreachable")


NO_RETRY = RetryPolicy(max_attempts=1, backoff=no_backoff)
