"""Open-Meteo hourly forecast retrieval.
Provides `fetch_forecast(coords, start)` which returns one ForecastSample per
hour slot starting at `start`, plus `generate_mock_forecast` used as the
offline stand-in when the provider is unreachable.
"""
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional
import logging
import random

import numpy as np
import pandas as pd
import requests

from wearplan.backend.config import FORECAST_URL
from wearplan.backend.errors import ForecastResolutionError
from wearplan.backend.models import Coordinates, ForecastSample
from wearplan.backend.weather import round_half_up

log = logging.getLogger('wearplan.weather.openmeteo')

FORECAST_HOURS = 5
HOURLY_FIELDS = "temperature_2m,precipitation_probability,wind_speed_10m,relative_humidity_2m,weather_code"


def build_forecast_params(lat: float, lon: float) -> Dict[str, Any]:
    return {
        'latitude': f"{lat:.6f}",
        'longitude': f"{lon:.6f}",
        'hourly': HOURLY_FIELDS,
        'temperature_unit': 'fahrenheit',
        'wind_speed_unit': 'mph',
        'timezone': 'auto',
    }


def _to_provider_local(start: datetime, payload: Dict[str, Any]) -> datetime:
    # Provider times are local wall-clock for the point (timezone=auto)
    if start.tzinfo is None:
        return start
    offset = int(payload.get('utc_offset_seconds') or 0)
    return start.astimezone(timezone(timedelta(seconds=offset))).replace(tzinfo=None)


def resolve_hourly_samples(payload: Dict[str, Any], label: str, start: datetime,
                           hours: int = FORECAST_HOURS) -> List[ForecastSample]:
    """Pick, for each slot start+i h, the first provider hour at or after it.
    Raises ForecastResolutionError when the payload cannot satisfy every slot.
    """
    try:
        hourly = payload['hourly']
        times = pd.to_datetime(pd.Series(hourly['time']))
        temps = hourly['temperature_2m']
        precips = hourly['precipitation_probability']
        winds = hourly['wind_speed_10m']
        hums = hourly['relative_humidity_2m']
        codes = hourly['weather_code']
    except (KeyError, TypeError, ValueError) as e:
        raise ForecastResolutionError(f"Malformed hourly payload: {e}") from e

    try:
        local_start = _to_provider_local(start, payload)
    except (TypeError, ValueError, OverflowError) as e:
        raise ForecastResolutionError(f"Bad utc_offset_seconds: {e}") from e
    out: List[ForecastSample] = []
    for i in range(hours):
        slot = start + timedelta(hours=i)
        target = local_start + timedelta(hours=i)
        try:
            matches = np.flatnonzero((times >= target).to_numpy())
        except (TypeError, ValueError) as e:
            # e.g. tz-aware provider times against a naive slot
            raise ForecastResolutionError(f"Cannot compare hourly times to {target.isoformat()}: {e}") from e
        if matches.size == 0:
            raise ForecastResolutionError(f"No hourly data at or after {target.isoformat()}")
        idx = int(matches[0])
        try:
            out.append(ForecastSample(
                location=label,
                time=slot.isoformat(),
                temperature_f=round_half_up(float(temps[idx])),
                wind_speed_mph=round_half_up(float(winds[idx])),
                precipitation_chance=float(precips[idx] or 0),
                humidity=float(hums[idx]),
                weather_code=int(codes[idx] or 0),
            ))
        except (IndexError, TypeError, ValueError) as e:
            raise ForecastResolutionError(f"Bad hourly value at index {idx}: {e}") from e
    return out


def fetch_forecast(coords: Coordinates, start: datetime,
                   session: Optional[requests.Session] = None,
                   url: str = FORECAST_URL,
                   timeout: float = 30.0,
                   hours: int = FORECAST_HOURS) -> List[ForecastSample]:
    """Fetch the hourly forecast for one coordinate. Provider errors propagate."""
    http = session or requests
    params = build_forecast_params(coords.latitude, coords.longitude)
    log.info('[API] forecast lat=%.4f lon=%.4f start=%s', coords.latitude, coords.longitude, start.isoformat())
    resp = http.get(url, params=params, timeout=timeout)
    resp.raise_for_status()
    payload = resp.json()
    if not isinstance(payload, dict):
        raise ForecastResolutionError('Forecast response is not a JSON object')
    return resolve_hourly_samples(payload, coords.name, start, hours=hours)


def generate_mock_forecast(label: str, start: datetime, hours: int = FORECAST_HOURS,
                           rng: Optional[random.Random] = None) -> List[ForecastSample]:
    """Synthetic forecast used when the provider is unavailable. Never does I/O."""
    rng = rng or random.Random()
    out: List[ForecastSample] = []
    for i in range(hours):
        base_temp = 50 + rng.random() * 30
        out.append(ForecastSample(
            location=label,
            time=(start + timedelta(hours=i)).isoformat(),
            temperature_f=round_half_up(base_temp + (rng.random() - 0.5) * 10),
            wind_speed_mph=round_half_up(5 + rng.random() * 15),
            precipitation_chance=round_half_up(rng.random() * 100),
            humidity=round_half_up(40 + rng.random() * 40),
            weather_code=0,
        ))
    return out
