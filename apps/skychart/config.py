from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {'1', 'true', 'yes', 'y', 'on'}


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, str(default)))
    except (TypeError, ValueError):
        return default


@dataclass(frozen=True)
class Settings:
    app_name: str
    log_level: str
    cors_origins: str
    registry_repo: str
    registry_branch: str
    registry_api_url: str
    registry_raw_url: str
    request_timeout_seconds: float
    poll_interval_seconds: float
    poll_enabled: bool


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings(
        app_name=os.getenv('APP_NAME', 'skychart'),
        log_level=os.getenv('LOG_LEVEL', 'INFO').strip().upper(),
        cors_origins=os.getenv('CORS_ORIGINS', '*'),
        registry_repo=os.getenv('REGISTRY_REPO', 'cosmos/chain-registry').strip().strip('/'),
        registry_branch=os.getenv('REGISTRY_BRANCH', 'master').strip(),
        registry_api_url=os.getenv('REGISTRY_API_URL', 'https://api.github.com').rstrip('/'),
        registry_raw_url=os.getenv('REGISTRY_RAW_URL', 'https://raw.githubusercontent.com').rstrip('/'),
        request_timeout_seconds=max(1.0, _env_float('REGISTRY_REQUEST_TIMEOUT_SECONDS', 10.0)),
        poll_interval_seconds=max(1.0, _env_float('REGISTRY_POLL_INTERVAL_SECONDS', 600.0)),
        poll_enabled=_env_bool('REGISTRY_POLL_ENABLED', True)
    )
