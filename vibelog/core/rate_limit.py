"""Sliding-window rate limiting for ledger submissions.

An explicit component with an injected clock instead of shared global
state.  Expired hits are pruned on every check, so memory stays bounded
by ``max_requests`` per key.
"""

from __future__ import annotations

import time
from collections import defaultdict, deque
from collections.abc import Callable
from dataclasses import dataclass


@dataclass(frozen=True)
class RateLimitResult:
    """Result of a rate limit check."""

    allowed: bool
    remaining: int
    retry_after: float = 0.0


class RateLimiter:
    """Allow at most *max_requests* per *window_seconds* for each key.

    Parameters
    ----------
    max_requests:
        Requests permitted inside one window (minimum 1).
    window_seconds:
        Window length in seconds.
    clock:
        Returns the current time in seconds.  Injected for tests.
    """

    def __init__(
        self,
        max_requests: int,
        window_seconds: float = 3600.0,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._limit = max(1, max_requests)
        self._window = window_seconds
        self._clock = clock
        self._hits: dict[str, deque[float]] = defaultdict(deque)

    def _prune(self, key: str, now: float) -> deque[float]:
        hits = self._hits[key]
        while hits and hits[0] <= now - self._window:
            hits.popleft()
        return hits

    def check(self, key: str) -> RateLimitResult:
        """Record a hit for *key* if allowed and report the outcome."""
        now = self._clock()
        hits = self._prune(key, now)
        if len(hits) >= self._limit:
            return RateLimitResult(
                allowed=False,
                remaining=0,
                retry_after=max(0.0, hits[0] + self._window - now),
            )
        hits.append(now)
        return RateLimitResult(allowed=True, remaining=self._limit - len(hits))

    def allow(self, key: str) -> bool:
        return self.check(key).allowed

    def cleanup(self) -> int:
        """Drop keys with no hits inside the window.  Returns keys removed."""
        now = self._clock()
        empty = [key for key in list(self._hits) if not self._prune(key, now)]
        for key in empty:
            del self._hits[key]
        return len(empty)
