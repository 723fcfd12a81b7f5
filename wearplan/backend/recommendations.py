"""Clothing recommendation engine.

Turns a forecast sequence (single location or aggregated route) plus an
activity and effort level into an ordered list of LayerItems.
"""
from __future__ import annotations

import logging
from typing import Callable, Dict, List, Sequence, Union

import numpy as np

from wearplan.backend.errors import InvalidArgumentError, UnknownActivityError
from wearplan.backend.layer_tables import (
    LAYER_TABLES,
    RAIN_THRESHOLD_PCT,
    WIND_THRESHOLD_MPH,
    LayerTable,
)
from wearplan.backend.models import (
    Activity,
    AggregatedForecastSample,
    ConditionSummary,
    Effort,
    ForecastSample,
    LayerItem,
)

log = logging.getLogger('wearplan.recommendations')

# Felt-temperature swing in F between heat factor 1.0 and 2.0
EFFORT_TEMP_SPAN_F = 15

LayerFunction = Callable[[float, float, bool], List[LayerItem]]
Sample = Union[ForecastSample, AggregatedForecastSample]


def _rule_fires(trigger: str, wind: float, rain: bool) -> bool:
    windy = wind > WIND_THRESHOLD_MPH
    if trigger == 'wind':
        return windy
    if trigger == 'rain':
        return rain
    if trigger == 'wind_or_rain':
        return windy or rain
    raise ValueError(f"Unknown weather rule trigger: {trigger!r}")


def apply_table(table: LayerTable, temp: float, wind: float, rain: bool) -> List[LayerItem]:
    layers: List[LayerItem] = []
    for band in table.bands:
        if band.max_temp_exclusive is None or temp < band.max_temp_exclusive:
            layers.extend(band.items)
            break
    for rule in table.weather_rules:
        if _rule_fires(rule.trigger, wind, rain):
            layers.extend(rule.items)
    layers.extend(table.fixed_items)
    return layers


def _layer_function(table: LayerTable) -> LayerFunction:
    def layers(temp: float, wind: float, rain: bool) -> List[LayerItem]:
        return apply_table(table, temp, wind, rain)
    return layers


LAYER_FUNCTIONS: Dict[Activity, LayerFunction] = {
    activity: _layer_function(table) for activity, table in LAYER_TABLES.items()
}


def summarize_conditions(samples: Sequence[Sample], effort: Union[str, Effort]) -> ConditionSummary:
    """Base temperature, felt temperature, worst wind and rain flag for a forecast sequence.

    Aggregated route forecasts use the coldest point (min of temperature_min_f);
    single-location forecasts use the mean temperature.
    """
    if not samples:
        raise InvalidArgumentError('No forecast samples to summarize')
    level = Effort.from_id(effort)
    aggregated = bool(getattr(samples[0], 'aggregated', False))
    if aggregated:
        base = float(np.min([getattr(s, 'temperature_min_f', s.temperature_f) for s in samples]))
    else:
        base = float(np.mean([s.temperature_f for s in samples]))
    felt = base + (level.heat_factor - 1) * EFFORT_TEMP_SPAN_F
    max_wind = float(np.max([s.wind_speed_mph for s in samples]))
    has_rain = any(s.precipitation_chance > RAIN_THRESHOLD_PCT for s in samples)
    return ConditionSummary(
        base_temp_f=base,
        felt_temp_f=felt,
        max_wind_mph=max_wind,
        has_rain=has_rain,
        aggregated=aggregated,
    )


def recommend(activity: Union[str, Activity], samples: Sequence[Sample], effort: Union[str, Effort],
              strict: bool = False) -> List[LayerItem]:
    """Ordered layering plan. An unknown activity yields an empty list unless `strict`."""
    try:
        act = Activity.from_id(activity)
    except UnknownActivityError:
        if strict:
            raise
        log.warning('[RECS] unknown activity %r; no recommendations', activity)
        return []
    summary = summarize_conditions(samples, effort)
    layers = LAYER_FUNCTIONS[act](summary.felt_temp_f, summary.max_wind_mph, summary.has_rain)
    log.info('[RECS] %s felt=%.1fF wind=%.0fmph rain=%s -> %d items',
             act.id, summary.felt_temp_f, summary.max_wind_mph, summary.has_rain, len(layers))
    return layers
