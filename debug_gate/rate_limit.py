"""
Rate limiting module for debug endpoints.

Provides sliding window rate limiting with per-client tracking.
"""

import threading
import time
from collections import defaultdict, deque
from dataclasses import dataclass
from typing import Callable, Deque, Dict, Optional


@dataclass
class RateLimitResult:
    """Result of a rate limit check."""
    allowed: bool
    remaining: int
    reset_at: float
    retry_after: Optional[float] = None


class RateLimiter:
    """
    Sliding window rate limiter.

    Thread-safe implementation using deques for efficient
    sliding window tracking.
    """

    def __init__(
        self,
        limit: int,
        window_ms: int = 60000,
        clock: Callable[[], float] = time.time
    ):
        """
        Initialize rate limiter.

        Args:
            limit: Maximum requests per window
            window_ms: Window size in milliseconds (default 60000)
            clock: Time source in seconds
        """
        self._limit = max(1, limit)
        self._window = window_ms / 1000.0
        self._clock = clock
        self._hits: Dict[str, Deque[float]] = defaultdict(deque)
        self._lock = threading.RLock()

    @property
    def limit(self) -> int:
        return self._limit

    def allow(self, key: str) -> bool:
        """
        Check if a request should be allowed.

        Args:
            key: Identifier for rate limiting (e.g., client address)

        Returns:
            True if request is allowed, False if rate limited
        """
        return self.check(key).allowed

    def check(self, key: str) -> RateLimitResult:
        """
        Check rate limit and return detailed result.

        A rejected request is not recorded, so it does not extend the
        client's lockout.
        """
        now = self._clock()
        window_start = now - self._window

        with self._lock:
            q = self._hits[key]

            while q and q[0] <= window_start:
                q.popleft()

            current_count = len(q)
            remaining = max(0, self._limit - current_count)
            reset_at = (q[0] + self._window) if q else (now + self._window)

            if current_count >= self._limit:
                retry_after = q[0] + self._window - now
                return RateLimitResult(
                    allowed=False,
                    remaining=0,
                    reset_at=reset_at,
                    retry_after=max(0, retry_after)
                )

            q.append(now)

            return RateLimitResult(
                allowed=True,
                remaining=remaining - 1,
                reset_at=reset_at
            )

    def reset(self, key: Optional[str] = None) -> None:
        """
        Reset rate limit counters.

        Args:
            key: Specific key to reset, or None to reset all
        """
        with self._lock:
            if key:
                self._hits.pop(key, None)
            else:
                self._hits.clear()
