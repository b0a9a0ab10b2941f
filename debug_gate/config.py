"""
Configuration module for the debug gate.

Centralizes all configuration with environment variable support,
validation, and caching for performance.
"""

import json
import os
import threading
import time
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import RootModel, StrictInt, ValidationError as PydanticValidationError, field_validator

from .security import KEY_HEX_LENGTH, ValidationError, validate_hex

# ============================================================
# Environment Configuration
# ============================================================

ENV = os.getenv("DEBUG_GATE_ENV", "dev")  # dev|stage|prod

# Operator keys: inline JSON object wins over the file
DEV_PUBLIC_KEYS = os.getenv("DEV_PUBLIC_KEYS", "")
DEV_PUBLIC_KEYS_PATH = os.getenv("DEV_PUBLIC_KEYS_PATH", "config/dev_public_keys.json")

# Rate limiting for debug endpoints
DEBUG_RATE_LIMIT_WINDOW_MS = int(os.getenv("DEBUG_RATE_LIMIT_WINDOW_MS", "60000"))
DEBUG_RATE_LIMIT_COUNT = int(os.getenv("DEBUG_RATE_LIMIT_COUNT", "100"))

# How far ahead of the server clock a replay counter may be
MAX_COUNTER_BUFFER_MS = int(os.getenv("MAX_COUNTER_BUFFER_MS", "10000"))

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_JSON = os.getenv("LOG_JSON", "true").lower() in ("1", "true", "yes")

# Cache TTL (seconds)
CONFIG_CACHE_TTL = int(os.getenv("CONFIG_CACHE_TTL", "60"))


class ConfigError(Exception):
    """Raised when configuration cannot be loaded or is invalid."""


class DevPublicKeys(RootModel[Dict[str, StrictInt]]):
    """Operator public key (hex) -> clearance rank."""

    @field_validator("root")
    @classmethod
    def _keys_are_ed25519_hex(cls, value: Dict[str, int]) -> Dict[str, int]:
        normalized = {}
        for key, rank in value.items():
            try:
                normalized[validate_hex(key, "public_key", KEY_HEX_LENGTH)] = rank
            except ValidationError as e:
                raise ValueError(str(e)) from e
        return normalized


# ============================================================
# Cached Configuration Loaders
# ============================================================

class CachedConfig:
    """
    Thread-safe cached configuration loader.
    Reloads configuration files periodically based on TTL.
    """

    def __init__(self, ttl_seconds: int = 60):
        self._cache: Dict[str, Any] = {}
        self._timestamps: Dict[str, float] = {}
        self._lock = threading.RLock()
        self._ttl = ttl_seconds

    def _is_stale(self, key: str) -> bool:
        if key not in self._timestamps:
            return True
        return (time.time() - self._timestamps[key]) > self._ttl

    def get_json(self, path: str, force_reload: bool = False) -> Dict[str, Any]:
        """
        Load JSON file with caching.
        Returns cached version if within TTL, otherwise reloads.
        """
        with self._lock:
            if not force_reload and path in self._cache and not self._is_stale(path):
                return self._cache[path]

            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)

            self._cache[path] = data
            self._timestamps[path] = time.time()
            return data

    def invalidate(self, path: Optional[str] = None) -> None:
        """Invalidate cache for a specific path or all paths."""
        with self._lock:
            if path:
                self._cache.pop(path, None)
                self._timestamps.pop(path, None)
            else:
                self._cache.clear()
                self._timestamps.clear()


# Global cached config instance
_config_cache = CachedConfig(ttl_seconds=CONFIG_CACHE_TTL)


def parse_dev_public_keys(raw: Any) -> Dict[str, int]:
    """
    Validate a raw key -> rank mapping.

    Insertion order is preserved; the gate scans keys in this order.

    Raises:
        ConfigError: If the mapping is not a str -> int object of hex keys
    """
    try:
        return DevPublicKeys.model_validate(raw).root
    except PydanticValidationError as e:
        raise ConfigError(f"invalid dev public keys: {e}") from e


def load_dev_public_keys(
    inline: Optional[str] = None,
    path: Optional[str] = None
) -> Dict[str, int]:
    """
    Load the operator key -> clearance rank mapping.

    An absent key file yields an empty mapping, which denies every
    signed request.
    """
    inline = DEV_PUBLIC_KEYS if inline is None else inline
    path = DEV_PUBLIC_KEYS_PATH if path is None else path

    if inline:
        try:
            raw = json.loads(inline)
        except json.JSONDecodeError as e:
            raise ConfigError(f"DEV_PUBLIC_KEYS is not valid JSON: {e}") from e
        return parse_dev_public_keys(raw)

    if not Path(path).exists():
        return {}

    try:
        raw = _config_cache.get_json(path)
    except json.JSONDecodeError as e:
        raise ConfigError(f"{path} is not valid JSON: {e}") from e
    return parse_dev_public_keys(raw)


def invalidate_config_cache() -> None:
    """Invalidate all cached configuration."""
    _config_cache.invalidate()


# ============================================================
# Validation
# ============================================================

def validate_config() -> Dict[str, bool]:
    """
    Validate that all required configuration files exist.
    Returns dict of path -> exists.
    """
    paths = {}
    if not DEV_PUBLIC_KEYS:
        paths["dev_public_keys"] = DEV_PUBLIC_KEYS_PATH

    return {name: Path(path).exists() for name, path in paths.items()}


# ============================================================
# Feature Flags
# ============================================================

def is_production() -> bool:
    """Check if running in production mode."""
    return ENV == "prod"
