"""
Replay guard for signed debug requests.

Holds a single high-water mark shared by every operator key. A counter is
fresh when it is above the mark and no more than `max_skew_ms` ahead of the
server clock, which keeps a far-future counter from locking out every
later request.
"""

import threading
from enum import Enum
from typing import Callable, Optional

from .util import now_millis

DEFAULT_MAX_SKEW_MS = 10000


class Freshness(str, Enum):
    FRESH = "FRESH"
    STALE = "STALE"
    TOO_FAR_IN_FUTURE = "TOO_FAR_IN_FUTURE"


class ReplayGuard:
    """
    Process-wide monotonic counter.

    check() is read-only and may be used as a cheap filter; accept() is the
    only mutation and re-checks under the lock, so two racing requests can
    never both advance the mark past the same value.
    """

    def __init__(
        self,
        max_skew_ms: int = DEFAULT_MAX_SKEW_MS,
        clock: Callable[[], int] = now_millis,
        initial: int = 0
    ):
        self._max_skew_ms = max_skew_ms
        self._clock = clock
        self._last_accepted = initial
        self._lock = threading.Lock()

    @property
    def last_accepted(self) -> int:
        return self._last_accepted

    @property
    def max_skew_ms(self) -> int:
        return self._max_skew_ms

    def _freshness(self, counter: int, now: int) -> Freshness:
        if counter <= self._last_accepted:
            return Freshness.STALE
        if counter > now + self._max_skew_ms:
            return Freshness.TOO_FAR_IN_FUTURE
        return Freshness.FRESH

    def check(self, counter: int, now: Optional[int] = None) -> Freshness:
        """Classify counter against the current mark without changing it."""
        if now is None:
            now = self._clock()
        return self._freshness(counter, now)

    def accept(self, counter: int) -> bool:
        """
        Atomically advance the mark to counter if it is fresh.

        Returns:
            True if the mark was advanced, False if counter was rejected
            (state untouched)
        """
        now = self._clock()
        with self._lock:
            if self._freshness(counter, now) is not Freshness.FRESH:
                return False
            self._last_accepted = counter
            return True
