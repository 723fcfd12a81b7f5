"""WeatherService: per-point forecast retrieval for a location or a sampled route.
- One HTTP call per point, issued in parallel through a thread pool
- Join on all points; a failed point falls back to synthetic data
- Multi-point routes are aggregated into one per-hour summary
- No cache and no state kept between calls
"""
from __future__ import annotations

import logging
import random
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Sequence, Union

import requests

from wearplan.backend.config import Settings
from wearplan.backend.errors import ForecastResolutionError, InvalidArgumentError
from wearplan.backend.geocoding import geocode
from wearplan.backend.models import (
    AggregatedForecastSample,
    Coordinates,
    ForecastSample,
    RoutePoint,
)
from wearplan.backend.weather import ROUTE_LABEL, aggregate_forecasts
from wearplan.backend.weather_openmeteo import fetch_forecast, generate_mock_forecast

log = logging.getLogger('wearplan.weather.service')

MAX_LOCATIONS = 3

Sample = Union[ForecastSample, AggregatedForecastSample]


@dataclass(frozen=True)
class RouteWeather:
    weather: List[Sample]
    coords: Optional[Coordinates]


def point_coordinates(point: RoutePoint) -> Coordinates:
    name = point.label or f"Lat {point.latitude:.2f}, Lon {point.longitude:.2f}"
    return Coordinates(latitude=point.latitude, longitude=point.longitude, name=name)


class WeatherService:
    def __init__(self, settings: Optional[Settings] = None,
                 session: Optional[requests.Session] = None,
                 rng: Optional[random.Random] = None):
        self.settings = settings or Settings()
        self.session = session
        self.rng = rng

    def fetch_point(self, coords: Coordinates, start: datetime) -> List[ForecastSample]:
        """Forecast for one coordinate; falls back to mock data on any provider failure."""
        hours = self.settings.forecast_hours
        try:
            return fetch_forecast(
                coords, start,
                session=self.session,
                url=self.settings.forecast_url,
                timeout=self.settings.request_timeout_s,
                hours=hours,
            )
        except (requests.RequestException, KeyError, TypeError, ValueError, ForecastResolutionError) as e:
            log.warning('[FALLBACK] forecast failed for %s: %s; using mock data', coords.name, e)
            return generate_mock_forecast(coords.name, start, hours=hours, rng=self.rng)

    def fetch_points(self, coords: Sequence[Coordinates], start: datetime) -> List[List[ForecastSample]]:
        """Fan out one fetch per coordinate and wait for all of them. Result order follows input order."""
        if not coords:
            return []
        workers = max(1, min(len(coords), self.settings.fetch_workers))
        log.info('[QUEUE] fetching %d points with %d workers', len(coords), workers)
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix='forecast') as pool:
            return list(pool.map(lambda c: self.fetch_point(c, start), coords))

    def fetch_location(self, locations: Sequence[str], start: datetime,
                       coords: Optional[Coordinates] = None) -> RouteWeather:
        """Weather for a typed location. Uses `coords` when the caller already resolved them,
        otherwise geocodes the first non-blank location (LocationNotFoundError propagates).
        """
        valid = [loc.strip() for loc in locations if loc and loc.strip()]
        if len(valid) > MAX_LOCATIONS:
            raise InvalidArgumentError(f"At most {MAX_LOCATIONS} locations are supported")
        if coords is None:
            if not valid:
                raise InvalidArgumentError('Please enter a location')
            coords = geocode(
                valid[0],
                session=self.session,
                url=self.settings.geocoding_url,
                timeout=self.settings.request_timeout_s,
            )
        weather = self.fetch_point(coords, start)
        return RouteWeather(weather=list(weather), coords=coords)

    def fetch_route(self, points: Sequence[RoutePoint], start: datetime,
                    name: Optional[str] = None) -> RouteWeather:
        """Weather along already-sampled route points, aggregated when more than one."""
        if not points:
            raise InvalidArgumentError('Route has no points')
        coords = [point_coordinates(p) for p in points]
        per_point = self.fetch_points(coords, start)
        first = points[0]
        route_coords = Coordinates(latitude=first.latitude, longitude=first.longitude, name=name or ROUTE_LABEL)
        if len(per_point) == 1:
            return RouteWeather(weather=list(per_point[0]), coords=route_coords)
        weather = aggregate_forecasts(per_point, hours=self.settings.forecast_hours)
        return RouteWeather(weather=list(weather), coords=route_coords)
