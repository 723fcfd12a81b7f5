"""Plain records passed between the route, weather and recommendation stages.

Everything here is frozen: once a stage produces a record, later stages only
read it.
"""
from __future__ import annotations

from dataclasses import dataclass, asdict
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from wearplan.backend.errors import UnknownActivityError, UnknownEffortError


@dataclass(frozen=True)
class RoutePoint:
    latitude: float
    longitude: float
    label: str
    sequence_index: int
    elevation: Optional[float] = None
    timestamp: Optional[datetime] = None
    is_waypoint: bool = False

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d['timestamp'] = self.timestamp.isoformat() if self.timestamp else None
        return d


@dataclass(frozen=True)
class RouteMetadata:
    name: Optional[str]
    total_points: int
    distance_km: Optional[float] = None


@dataclass(frozen=True)
class Coordinates:
    latitude: float
    longitude: float
    name: str


@dataclass(frozen=True)
class ForecastSample:
    location: str
    time: str  # ISO 8601, the requested slot time
    temperature_f: float
    wind_speed_mph: float
    precipitation_chance: float  # 0-100
    humidity: float  # 0-100
    weather_code: int = 0
    aggregated: bool = False


@dataclass(frozen=True)
class AggregatedForecastSample:
    time: str
    temperature_min_f: float
    temperature_max_f: float
    temperature_f: float  # midpoint of min/max
    wind_speed_mph: float
    precipitation_chance: float
    humidity: float
    weather_code: int = 0
    location: str = 'GPX Route'
    aggregated: bool = True


@dataclass(frozen=True)
class LayerItem:
    category: str
    item: str
    rationale: str


@dataclass(frozen=True)
class ConditionSummary:
    base_temp_f: float
    felt_temp_f: float
    max_wind_mph: float
    has_rain: bool
    aggregated: bool


class Effort(Enum):
    EASY = ('easy', 'Easy', 'Conversational pace', 0.7)
    ENDURANCE = ('endurance', 'Endurance', 'Steady, sustained effort', 1.0)
    TEMPO = ('tempo', 'Tempo', 'Comfortably hard', 1.3)
    ALL_OUT = ('all-out', 'All Out', 'Maximum effort', 1.6)

    def __init__(self, id_: str, display_name: str, description: str, heat_factor: float):
        self.id = id_
        self.display_name = display_name
        self.description = description
        self.heat_factor = heat_factor

    @classmethod
    def from_id(cls, value: 'str | Effort') -> 'Effort':
        if isinstance(value, cls):
            return value
        for member in cls:
            if member.id == value:
                return member
        raise UnknownEffortError(f"Unknown effort level: {value!r}")


class Activity(Enum):
    RUN = ('run', 'Run', 10)
    MOUNTAIN_BIKE = ('mountain-bike', 'Mountain Bike', 15)
    ROAD_BIKE = ('road-bike', 'Road Bike', 25)
    DOWNHILL_SKI = ('downhill-ski', 'Downhill Ski', 30)
    BACKCOUNTRY_SKI = ('backcountry-ski', 'Backcountry Ski', 8)
    NORDIC_SKI = ('nordic-ski', 'Nordic Ski', 12)

    def __init__(self, id_: str, display_name: str, speed_kmh: float):
        self.id = id_
        self.display_name = display_name
        self.speed_kmh = speed_kmh

    @classmethod
    def from_id(cls, value: 'str | Activity') -> 'Activity':
        if isinstance(value, cls):
            return value
        for member in cls:
            if member.id == value:
                return member
        raise UnknownActivityError(f"Unknown activity: {value!r}")


def sample_to_dict(sample: 'ForecastSample | AggregatedForecastSample') -> Dict[str, Any]:
    return asdict(sample)


def sample_from_dict(raw: Dict[str, Any]) -> 'ForecastSample | AggregatedForecastSample':
    """Rebuild a forecast record from its JSON form (as produced by `sample_to_dict`)."""
    if raw.get('aggregated'):
        return AggregatedForecastSample(
            time=str(raw.get('time', '')),
            temperature_min_f=float(raw.get('temperature_min_f', raw['temperature_f'])),
            temperature_max_f=float(raw.get('temperature_max_f', raw['temperature_f'])),
            temperature_f=float(raw['temperature_f']),
            wind_speed_mph=float(raw['wind_speed_mph']),
            precipitation_chance=float(raw.get('precipitation_chance') or 0),
            humidity=float(raw.get('humidity') or 0),
            weather_code=int(raw.get('weather_code') or 0),
            location=str(raw.get('location') or 'GPX Route'),
        )
    return ForecastSample(
        location=str(raw.get('location') or ''),
        time=str(raw.get('time', '')),
        temperature_f=float(raw['temperature_f']),
        wind_speed_mph=float(raw['wind_speed_mph']),
        precipitation_chance=float(raw.get('precipitation_chance') or 0),
        humidity=float(raw.get('humidity') or 0),
        weather_code=int(raw.get('weather_code') or 0),
    )
