"""
Per-client request throttling for the authentication endpoints.

Each client id keeps a deque of recent hit times; hits older than the
window fall off the left end before every check. Every sweep_every
checks, clients with no hits left in the window are forgotten.
"""

import time
import threading
from collections import defaultdict, deque
from typing import Callable, Deque, Dict, Optional
from dataclasses import dataclass

# checks between sweeps of idle clients
SWEEP_EVERY = 1024


@dataclass
class RateLimitResult:
    """Outcome of one throttle check."""
    allowed: bool
    remaining: int
    reset_at: float
    retry_after: Optional[float] = None


class RateLimiter:
    """
    Sliding window limiter keyed by client id.

    Args:
        rpm: Hits allowed per window
        window_seconds: Window length
        clock: Time source in seconds (injectable for tests)
        sweep_every: Checks between idle-client sweeps, 0 to disable
    """

    def __init__(
        self,
        rpm: int,
        window_seconds: int = 60,
        clock: Callable[[], float] = time.time,
        sweep_every: int = SWEEP_EVERY
    ):
        self._limit = max(1, rpm)
        self._window = window_seconds
        self._clock = clock
        self._sweep_every = sweep_every
        self._checks = 0
        self._hits: Dict[str, Deque[float]] = defaultdict(deque)
        self._lock = threading.RLock()

    def _trim(self, hits: Deque[float], now: float) -> int:
        cutoff = now - self._window
        dropped = 0
        while hits and hits[0] < cutoff:
            hits.popleft()
            dropped += 1
        return dropped

    def _sweep(self, now: float) -> int:
        removed = 0
        for key in list(self._hits):
            removed += self._trim(self._hits[key], now)
            if not self._hits[key]:
                del self._hits[key]
        return removed

    def allow(self, key: str) -> bool:
        return self.check(key).allowed

    def check(self, key: str) -> RateLimitResult:
        """Record a hit for key if under the limit; report the outcome."""
        now = self._clock()

        with self._lock:
            self._checks += 1
            if self._sweep_every and self._checks % self._sweep_every == 0:
                self._sweep(now)

            hits = self._hits[key]
            self._trim(hits, now)
            reset_at = (hits[0] + self._window) if hits else (now + self._window)

            if len(hits) >= self._limit:
                return RateLimitResult(
                    allowed=False,
                    remaining=0,
                    reset_at=reset_at,
                    retry_after=max(0, hits[0] + self._window - now)
                )

            hits.append(now)
            return RateLimitResult(
                allowed=True,
                remaining=self._limit - len(hits),
                reset_at=reset_at
            )

    def reset(self, key: Optional[str] = None) -> None:
        """Forget hits for one key, or for every key."""
        with self._lock:
            if key:
                self._hits.pop(key, None)
            else:
                self._hits.clear()

    def cleanup_expired(self) -> int:
        """Drop stale hits and idle keys. Returns the number of hits dropped."""
        now = self._clock()
        with self._lock:
            return self._sweep(now)

    def __len__(self) -> int:
        """Number of client ids currently tracked."""
        with self._lock:
            return len(self._hits)
