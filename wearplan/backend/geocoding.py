"""Open-Meteo geocoding: place name -> coordinates, plus type-ahead suggestions."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import requests

from wearplan.backend.config import GEOCODING_URL
from wearplan.backend.errors import LocationNotFoundError
from wearplan.backend.models import Coordinates

log = logging.getLogger('wearplan.geocoding')

MIN_QUERY_LENGTH = 2


@dataclass(frozen=True)
class LocationSuggestion:
    name: str
    country: str
    admin1: Optional[str]
    latitude: float
    longitude: float
    display_name: str


def _search(name: str, count: int, session: Optional[requests.Session], url: str,
            timeout: float) -> List[Dict[str, Any]]:
    http = session or requests
    params = {'name': name, 'count': count, 'language': 'en', 'format': 'json'}
    resp = http.get(url, params=params, timeout=timeout)
    resp.raise_for_status()
    data = resp.json()
    if not isinstance(data, dict):
        raise ValueError('Geocoding response is not a JSON object')
    return data.get('results') or []


def geocode(name: str, session: Optional[requests.Session] = None, url: str = GEOCODING_URL,
            timeout: float = 30.0) -> Coordinates:
    """Resolve a free-text place name using the first provider result."""
    if not name or not name.strip():
        raise LocationNotFoundError('Could not find location')
    try:
        results = _search(name.strip(), 1, session, url, timeout)
        if not results:
            log.warning('[GEOCODE] no results for %r', name)
            raise LocationNotFoundError('Could not find location')
        first = results[0]
        coords = Coordinates(
            latitude=float(first['latitude']),
            longitude=float(first['longitude']),
            name=str(first.get('name') or name),
        )
    except (requests.RequestException, ValueError, KeyError, TypeError) as e:
        log.error('[GEOCODE] lookup failed for %r: %s', name, e)
        raise LocationNotFoundError('Could not find location') from e
    log.info('[GEOCODE] %r -> (%.4f, %.4f) %s', name, coords.latitude, coords.longitude, coords.name)
    return coords


def _display_name(result: Dict[str, Any]) -> str:
    admin1 = result.get('admin1')
    return f"{result.get('name', '')}{', ' + admin1 if admin1 else ''}, {result.get('country', '')}"


def suggest_locations(query: str, count: int = 5, session: Optional[requests.Session] = None,
                      url: str = GEOCODING_URL, timeout: float = 30.0) -> List[LocationSuggestion]:
    """Up to `count` candidate places for a partial query. Failures yield no suggestions."""
    if not query or len(query) < MIN_QUERY_LENGTH:
        return []
    try:
        results = _search(query, count, session, url, timeout)
        return [
            LocationSuggestion(
                name=str(r.get('name', '')),
                country=str(r.get('country', '')),
                admin1=r.get('admin1'),
                latitude=float(r['latitude']),
                longitude=float(r['longitude']),
                display_name=_display_name(r),
            )
            for r in results
        ]
    except (requests.RequestException, ValueError, KeyError, TypeError) as e:
        log.warning('[GEOCODE] suggestion search failed for %r: %s', query, e)
        return []
