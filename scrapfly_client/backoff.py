from __future__ import annotations

import random
from typing import Optional, Tuple, Union

BACKOFF_POLICIES = ("fixed", "exponential")

# factor ** step overflows a float long before any sane retry count
_MAX_STEP = 64


class FixedBackoff:
    """Constant delay between retry attempts.

    This is the default policy of the client: every failed attempt waits the
    same amount of time before the next one."""

    def __init__(self, delay_seconds: float = 1.0) -> None:
        self._delay = max(0.0, delay_seconds)

    def get_sleep(self, attempt: int, error_type: Optional[str] = None) -> float:
        """Return the sleep duration in seconds after a failed attempt."""
        return self._delay


class ExponentialBackoff:
    """Capped exponential delay with full jitter.

    The ceiling after attempt ``n`` is ``base_seconds * factor ** (n - 1)``,
    bounded by ``max_seconds``, and the actual delay is drawn uniformly
    below it so the workers of a batch that failed together spread their
    retries. An overloaded API (``HTTP_503``, ``HTTP_504`` error types from
    the dispatcher) starts one step higher.
    """

    OVERLOAD_ERRORS: Tuple[str, ...] = ("HTTP_503", "HTTP_504")

    def __init__(
        self,
        base_seconds: float = 1.0,
        max_seconds: float = 30.0,
        factor: float = 2.0,
        rng: Optional[random.Random] = None,
    ) -> None:
        if base_seconds < 0 or max_seconds < 0:
            raise ValueError("backoff delays cannot be negative")
        if factor < 1:
            raise ValueError("backoff factor must be at least 1")
        self._base = base_seconds
        self._max = max_seconds
        self._factor = factor
        self._rng = rng or random.Random()

    def ceiling(self, attempt: int, error_type: Optional[str] = None) -> float:
        step = max(attempt - 1, 0)
        if error_type in self.OVERLOAD_ERRORS:
            step += 1
        return min(self._max, self._base * self._factor ** min(step, _MAX_STEP))

    def get_sleep(self, attempt: int, error_type: Optional[str] = None) -> float:
        return self._rng.uniform(0, self.ceiling(attempt, error_type))


def make_backoff(
    policy: str, delay_seconds: float, max_seconds: float
) -> Union[FixedBackoff, ExponentialBackoff]:
    """Build the backoff named by ``policy`` ("fixed" or "exponential").

    ``delay_seconds`` is the fixed delay, or the exponential base."""
    if policy == "fixed":
        return FixedBackoff(delay_seconds)
    if policy == "exponential":
        return ExponentialBackoff(base_seconds=delay_seconds, max_seconds=max_seconds)
    raise ValueError(f"unknown retry policy: {policy!r} (expected one of: {', '.join(BACKOFF_POLICIES)})")
