"""
Configuration module for walletauth.

Centralizes all configuration with environment variable support,
validation, and caching for performance.
"""

import os
import json
import threading
import time
from typing import Dict, Any, List, Optional
from pathlib import Path

# ============================================================
# Environment Configuration
# ============================================================

ENV = os.getenv("WALLETAUTH_ENV", "dev")  # dev|stage|prod

# Challenge and session lifetimes (seconds)
CHALLENGE_TTL_SECONDS = int(os.getenv("CHALLENGE_TTL_SECONDS", "300"))
SESSION_TTL_SECONDS = int(os.getenv("SESSION_TTL_SECONDS", "3600"))
CHALLENGE_CODE_LENGTH = int(os.getenv("CHALLENGE_CODE_LENGTH", "6"))

# Whitelist sources
WHITELIST_PATH = os.getenv("WHITELIST_PATH", "config/whitelist.json")
WALLET_WHITELIST = os.getenv("WALLET_WHITELIST", "")

# Rate limits (requests per minute, per client)
INIT_AUTH_RPM = int(os.getenv("INIT_AUTH_RPM", "60"))
VERIFY_AUTH_RPM = int(os.getenv("VERIFY_AUTH_RPM", "60"))

# HTTP
# Only enable behind a reverse proxy that sets X-Forwarded-For itself
TRUST_PROXY_HEADERS = os.getenv("TRUST_PROXY_HEADERS", "0").lower() in ("1", "true", "yes")
CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "3000"))

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_JSON = os.getenv("LOG_JSON", "1").lower() in ("1", "true", "yes")
LOG_FILE = os.getenv("LOG_FILE") or None

# Cache TTL (seconds)
CONFIG_CACHE_TTL = int(os.getenv("CONFIG_CACHE_TTL", "60"))


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


def split_csv(value: str) -> List[str]:
    """Split a comma-separated env value, dropping blanks."""
    return [item.strip() for item in value.split(",") if item.strip()]


def cors_origins() -> List[str]:
    return split_csv(CORS_ORIGINS) or ["*"]


# ============================================================
# Validation
# ============================================================

def validate_config() -> Dict[str, bool]:
    """
    Validate that configured files exist.
    Returns dict of name -> exists.
    """
    paths = {
        "whitelist": WHITELIST_PATH,
    }
    if LOG_FILE:
        paths["log_dir"] = str(Path(LOG_FILE).parent)

    return {name: Path(path).exists() for name, path in paths.items()}


# ============================================================
# Feature Flags
# ============================================================

def is_production() -> bool:
    """Check if running in production mode."""
    return ENV == "prod"


def is_debug() -> bool:
    """Check if debug mode is enabled."""
    return os.getenv("WALLETAUTH_DEBUG", "").lower() in ("1", "true", "yes")
