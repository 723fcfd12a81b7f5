from typing import List, Sequence
import logging
import math

import pandas as pd

from wearplan.backend.models import AggregatedForecastSample, ForecastSample

log = logging.getLogger('wearplan.weather')

ROUTE_LABEL = 'GPX Route'


def round_half_up(value: float) -> int:
    """Round .5 away from the floor (Python's round() rounds half to even)."""
    return int(math.floor(float(value) + 0.5))


def _long_frame(per_point: Sequence[Sequence[ForecastSample]], hours: int) -> pd.DataFrame:
    rows = []
    for point_idx, samples in enumerate(per_point):
        for slot, s in enumerate(list(samples)[:hours]):
            rows.append({
                'slot': slot,
                'point': point_idx,
                'time': s.time,
                'temp': float(s.temperature_f),
                'wind': float(s.wind_speed_mph),
                'precip': float(s.precipitation_chance),
                'humidity': float(s.humidity),
                'code': int(s.weather_code),
            })
    return pd.DataFrame(rows)


def aggregate_forecasts(per_point: Sequence[Sequence[ForecastSample]], hours: int = 5,
                        require_all_points: bool = False) -> List[AggregatedForecastSample]:
    """
    Merge per-point forecasts into one record per hour slot:
    - temperature min/max across points, representative = midpoint
    - worst-case wind and precipitation (max)
    - mean humidity
    - time and weather code from the first point that has the slot
    Slots that no point has are skipped. With `require_all_points`, slots
    missing from any point are dropped as well. Nothing is interpolated.
    """
    df = _long_frame(per_point, hours)
    if df.empty:
        log.warning('[AGG] no samples to aggregate (points=%d)', len(per_point))
        return []

    grouped = df.groupby('slot', sort=True).agg(
        temp_min=('temp', 'min'),
        temp_max=('temp', 'max'),
        wind=('wind', 'max'),
        precip=('precip', 'max'),
        humidity=('humidity', 'mean'),
        time=('time', 'first'),
        code=('code', 'first'),
        points=('point', 'nunique'),
    )
    if require_all_points:
        grouped = grouped[grouped['points'] == len(per_point)]

    out: List[AggregatedForecastSample] = []
    for _, row in grouped.iterrows():
        tmin = float(row['temp_min'])
        tmax = float(row['temp_max'])
        out.append(AggregatedForecastSample(
            time=str(row['time']),
            temperature_min_f=tmin,
            temperature_max_f=tmax,
            temperature_f=round_half_up((tmin + tmax) / 2),
            wind_speed_mph=float(row['wind']),
            precipitation_chance=float(row['precip']),
            humidity=round_half_up(row['humidity']),
            weather_code=int(row['code']),
            location=ROUTE_LABEL,
        ))
    log.info('[AGG] %d points -> %d slots', len(per_point), len(out))
    return out
