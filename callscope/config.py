"""
callscope/config.py
====================
Settings - CallScope

Responsibility:
    - Read service settings from environment variables
      (``.env`` is loaded by main.py before this module is used)
    - Fail fast with a clear error on malformed values

All variables are optional; defaults reproduce the dashboard's built-in
policy (5 analyses / minute, 100 calls / 15 minutes, ``goldira`` prefix).
"""

import os
from dataclasses import dataclass

from callscope.security.rate_limiter import (
    ANALYSIS_MAX_REQUESTS,
    ANALYSIS_WINDOW_MS,
    API_MAX_REQUESTS,
    API_WINDOW_MS,
)
from callscope.storage import DEFAULT_PREFIX, DEFAULT_SWEEP_INTERVAL_MS

_TRUTHY: set[str] = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    storage_prefix: str = DEFAULT_PREFIX
    storage_path: str | None = None
    storage_sweep_interval_ms: int = DEFAULT_SWEEP_INTERVAL_MS
    analysis_delay_seconds: float = 3.0
    analysis_rate_limit: int = ANALYSIS_MAX_REQUESTS
    analysis_window_ms: int = ANALYSIS_WINDOW_MS
    api_rate_limit: int = API_MAX_REQUESTS
    api_window_ms: int = API_WINDOW_MS
    session_ttl_ms: int = 30 * 60 * 1000
    analysis_cache_ttl_ms: int = 60 * 60 * 1000
    allow_insecure_session_ids: bool = False
    webhook_url: str | None = None
    cors_origins: tuple[str, ...] = ("*",)


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"Environment variable {name} must be an integer, got {raw!r}")


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"Environment variable {name} must be a number, got {raw!r}")


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in _TRUTHY


def load_settings() -> Settings:
    """Build Settings from the current environment."""
    origins = os.getenv("CALLSCOPE_CORS_ORIGINS", "*")
    return Settings(
        storage_prefix=os.getenv("CALLSCOPE_STORAGE_PREFIX") or DEFAULT_PREFIX,
        storage_path=os.getenv("CALLSCOPE_STORAGE_PATH") or None,
        storage_sweep_interval_ms=_env_int(
            "CALLSCOPE_STORAGE_SWEEP_INTERVAL_MS", DEFAULT_SWEEP_INTERVAL_MS,
        ),
        analysis_delay_seconds=_env_float("CALLSCOPE_ANALYSIS_DELAY_SECONDS", 3.0),
        analysis_rate_limit=_env_int("CALLSCOPE_ANALYSIS_RATE_LIMIT", ANALYSIS_MAX_REQUESTS),
        analysis_window_ms=_env_int("CALLSCOPE_ANALYSIS_RATE_WINDOW_MS", ANALYSIS_WINDOW_MS),
        api_rate_limit=_env_int("CALLSCOPE_API_RATE_LIMIT", API_MAX_REQUESTS),
        api_window_ms=_env_int("CALLSCOPE_API_RATE_WINDOW_MS", API_WINDOW_MS),
        session_ttl_ms=_env_int("CALLSCOPE_SESSION_TTL_MS", 30 * 60 * 1000),
        analysis_cache_ttl_ms=_env_int("CALLSCOPE_ANALYSIS_CACHE_TTL_MS", 60 * 60 * 1000),
        allow_insecure_session_ids=_env_bool("CALLSCOPE_ALLOW_INSECURE_SESSION_IDS", False),
        webhook_url=os.getenv("WEBHOOK_URL") or None,
        cors_origins=tuple(o.strip() for o in origins.split(",") if o.strip()) or ("*",),
    )
