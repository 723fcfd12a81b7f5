"""Runtime settings, read from the environment once at startup."""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

GEOCODING_URL = "https://geocoding-api.open-meteo.com/v1/search"
FORECAST_URL = "https://api.open-meteo.com/v1/forecast"
MAX_GPX_BYTES = 5 * 1024 * 1024


def _int(env: Mapping[str, str], key: str, default: int) -> int:
    raw = env.get(key)
    if raw is None or str(raw).strip() == '':
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{key} must be an integer, got {raw!r}") from None


def _float(env: Mapping[str, str], key: str, default: float) -> float:
    raw = env.get(key)
    if raw is None or str(raw).strip() == '':
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{key} must be a number, got {raw!r}") from None


@dataclass(frozen=True)
class Settings:
    geocoding_url: str = GEOCODING_URL
    forecast_url: str = FORECAST_URL
    request_timeout_s: float = 30.0
    forecast_hours: int = 5
    sample_target: int = 10
    max_gpx_bytes: int = MAX_GPX_BYTES
    fetch_workers: int = 8
    suggestion_count: int = 5
    log_level: str = 'INFO'
    port: int = 5000

    @staticmethod
    def from_env(env: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if env is None else env
        settings = Settings(
            geocoding_url=env.get('WEARPLAN_GEOCODING_URL') or GEOCODING_URL,
            forecast_url=env.get('WEARPLAN_FORECAST_URL') or FORECAST_URL,
            request_timeout_s=_float(env, 'WEARPLAN_REQUEST_TIMEOUT', 30.0),
            forecast_hours=_int(env, 'WEARPLAN_FORECAST_HOURS', 5),
            sample_target=_int(env, 'WEARPLAN_SAMPLE_TARGET', 10),
            max_gpx_bytes=_int(env, 'WEARPLAN_MAX_GPX_BYTES', MAX_GPX_BYTES),
            fetch_workers=_int(env, 'WEARPLAN_FETCH_WORKERS', 8),
            suggestion_count=_int(env, 'WEARPLAN_SUGGESTION_COUNT', 5),
            log_level=(env.get('WEARPLAN_LOG_LEVEL') or 'INFO').upper(),
            port=_int(env, 'PORT', 5000),
        )
        if settings.sample_target < 2:
            raise ValueError('WEARPLAN_SAMPLE_TARGET must be at least 2')
        if settings.forecast_hours < 1:
            raise ValueError('WEARPLAN_FORECAST_HOURS must be at least 1')
        if settings.fetch_workers < 1:
            raise ValueError('WEARPLAN_FETCH_WORKERS must be at least 1')
        if settings.suggestion_count < 1:
            raise ValueError('WEARPLAN_SUGGESTION_COUNT must be at least 1')
        return settings
