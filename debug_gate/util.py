"""
Utility functions for the debug gate.

Provides canonical JSON serialization, hashing, hex encoding, and time utilities.
"""

import hashlib
import hmac
import json
import time
from typing import Any, Union


def canonicalize(obj: Any) -> bytes:
    """
    Convert object to canonical JSON bytes.

    Canonical JSON:
    - Lexicographically sorted keys
    - No whitespace
    - UTF-8 encoded
    """
    s = json.dumps(obj, sort_keys=True, separators=(',', ':'), ensure_ascii=False)
    return s.encode('utf-8')


def sha256_hex(data: Union[bytes, str]) -> str:
    """Compute SHA-256 hash and return as hex string."""
    if isinstance(data, str):
        data = data.encode('utf-8')
    return hashlib.sha256(data).hexdigest()


def now_millis() -> int:
    """Get current Unix time in milliseconds."""
    return int(time.time() * 1000)


def hex_decode(s: str) -> bytes:
    """Decode a hex string to bytes. Raises ValueError on bad input."""
    return bytes.fromhex(s)


def constant_time_compare(a: Union[str, bytes], b: Union[str, bytes]) -> bool:
    """
    Compare two strings/bytes in constant time to prevent timing attacks.
    """
    if isinstance(a, str):
        a = a.encode('utf-8')
    if isinstance(b, str):
        b = b.encode('utf-8')
    return hmac.compare_digest(a, b)


def mask_sensitive(value: str, visible_chars: int = 8) -> str:
    """
    Mask a key, showing only the last N characters.
    Useful for logging and debug listings.
    """
    if len(value) <= visible_chars:
        return '*' * len(value)
    return '*' * (len(value) - visible_chars) + value[-visible_chars:]
