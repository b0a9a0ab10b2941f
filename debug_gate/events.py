"""
Observability sinks for named security events.

The gate reports denials it cares about as (category, label) pairs.
Sinks count them or ship them elsewhere; the gate logs them itself.
"""

import threading
from collections import defaultdict
from typing import Dict, Protocol


class EventSink(Protocol):
    def record_event(self, category: str, label: str) -> None:
        ...


class NestedCounters:
    """
    Thread-safe in-memory event counters, grouped by category.

    snapshot() returns {category: {label: count}}.
    """

    def __init__(self):
        self._counts: Dict[str, Dict[str, int]] = defaultdict(lambda: defaultdict(int))
        self._lock = threading.Lock()

    def record_event(self, category: str, label: str) -> None:
        with self._lock:
            self._counts[category][label] += 1

    def count(self, category: str, label: str) -> int:
        with self._lock:
            return self._counts.get(category, {}).get(label, 0)

    def snapshot(self) -> Dict[str, Dict[str, int]]:
        with self._lock:
            return {category: dict(labels) for category, labels in self._counts.items()}

    def reset(self) -> None:
        with self._lock:
            self._counts.clear()

