"""
Request-shape validation for signed debug requests.

Turns raw query-string values into typed values, rejecting anything
that could not have been produced by a legitimate signer.
"""

import re
from typing import Optional


# ============================================================
# Input Validation
# ============================================================

HEX_PATTERN = re.compile(r'^[a-fA-F0-9]+$')
COUNTER_PATTERN = re.compile(r'^(0|[1-9][0-9]*)$')

# Ed25519 keys (public and seed) are 32 bytes
KEY_HEX_LENGTH = 64

# Far beyond any millisecond timestamp, well inside int() string limits
MAX_COUNTER_DIGITS = 64


class ValidationError(Exception):
    """Raised when input validation fails."""
    def __init__(self, field: str, message: str):
        self.field = field
        self.message = message
        super().__init__(f"{field}: {message}")


def validate_hex(value: str, field_name: str, expected_length: Optional[int] = None) -> str:
    """
    Validate that a string is valid hexadecimal.

    Args:
        value: The string to validate
        field_name: Name of the field (for error messages)
        expected_length: Expected length of the hex string (optional)

    Returns:
        The validated (lowercased) hex string

    Raises:
        ValidationError: If validation fails
    """
    if not isinstance(value, str):
        raise ValidationError(field_name, "must be a string")

    value = value.lower().strip()

    if not value:
        raise ValidationError(field_name, "cannot be empty")

    if not HEX_PATTERN.match(value):
        raise ValidationError(field_name, "must be valid hexadecimal")

    if expected_length and len(value) != expected_length:
        raise ValidationError(field_name, f"must be {expected_length} characters")

    return value


def parse_counter(value: str, field_name: str = "sig_counter") -> int:
    """
    Parse a decimal replay counter.

    Python ints are unbounded, so counters beyond 64 bits parse exactly
    instead of wrapping. Only the canonical spelling is accepted, so the
    text a client sent is always str() of the parsed value.

    Raises:
        ValidationError: If the value is not a canonical decimal integer
    """
    if not isinstance(value, str):
        raise ValidationError(field_name, "must be a string")

    if not value:
        raise ValidationError(field_name, "cannot be empty")

    # int() alone would accept signs, whitespace, underscores and non-ASCII digits
    if not COUNTER_PATTERN.match(value):
        raise ValidationError(field_name, "must be a decimal integer without leading zeros")

    if len(value) > MAX_COUNTER_DIGITS:
        raise ValidationError(field_name, f"must be at most {MAX_COUNTER_DIGITS} digits")

    return int(value)
