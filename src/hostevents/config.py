"""Configuration loading for the host event handler."""
from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_API_URL = "https://api.github.com"
DEFAULT_TIMEOUT_SECONDS = 600.0
DEFAULT_REQUEST_TIMEOUT = 30.0
MAX_PER_PAGE = 100
LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


@dataclass(frozen=True)
class HostEventsConfig:
    api_url: str = DEFAULT_API_URL
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    per_page: int = MAX_PER_PAGE
    log_level: str = "INFO"


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    return value if value > 0 else default


def _env_per_page() -> int:
    raw = os.getenv("HOSTEVENTS_PER_PAGE", str(MAX_PER_PAGE))
    try:
        value = int(raw)
    except ValueError:
        return MAX_PER_PAGE
    # GitHub caps per_page at 100
    return min(max(value, 1), MAX_PER_PAGE)


def _env_log_level() -> str:
    level = (os.getenv("HOSTEVENTS_LOG_LEVEL") or "INFO").strip().upper()
    return level if level in LOG_LEVELS else "INFO"


def load_config() -> HostEventsConfig:
    return HostEventsConfig(
        api_url=(os.getenv("GITHUB_API") or DEFAULT_API_URL).rstrip("/"),
        timeout_seconds=_env_float("HOSTEVENTS_TIMEOUT_SECONDS", DEFAULT_TIMEOUT_SECONDS),
        request_timeout=_env_float("HOSTEVENTS_REQUEST_TIMEOUT", DEFAULT_REQUEST_TIMEOUT),
        per_page=_env_per_page(),
        log_level=_env_log_level(),
    )
