"""
Clearance registry: operator public key -> clearance rank.

Read-only for the life of the process. Ranks are plain integers so that
configuration may use values outside the named tiers; comparison is numeric.
"""

from enum import IntEnum
from typing import Dict, Iterator, Mapping, Optional, Tuple


class ClearanceTier(IntEnum):
    """Named clearance tiers. HIGH > MEDIUM > LOW."""
    LOW = 1
    MEDIUM = 2
    HIGH = 3


def satisfies(rank: int, required: int) -> bool:
    """True if a key holding `rank` may access an endpoint requiring `required`."""
    return int(rank) >= int(required)


def tier_name(rank: int) -> str:
    try:
        return ClearanceTier(rank).name
    except ValueError:
        return str(rank)


class ClearanceRegistry:
    """
    Immutable ordered mapping of operator keys to clearance ranks.

    Iteration follows configuration order so the gate's key scan is
    deterministic within a process.
    """

    def __init__(self, entries: Mapping[str, int]):
        self._entries: Tuple[Tuple[str, int], ...] = tuple(
            (key, int(rank)) for key, rank in entries.items()
        )
        self._index: Dict[str, int] = dict(self._entries)

    def lookup(self, key: str) -> Optional[int]:
        """Return the rank configured for key, or None if the key is unknown."""
        return self._index.get(key)

    def ensure_key_security(self, key: str, required: int) -> bool:
        """True if key is configured and its rank satisfies `required`."""
        rank = self.lookup(key)
        return rank is not None and satisfies(rank, required)

    def entries(self) -> Iterator[Tuple[str, int]]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._index
