from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional

import pytest
import requests


class FakeResponse:
    def __init__(self, payload: Any, status_code: int = 200):
        self._payload = payload
        self.status_code = status_code

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"HTTP {self.status_code}")

    def json(self) -> Any:
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


class FakeSession:
    """Stand-in for requests.Session. `handler(url, params)` returns a payload,
    a FakeResponse, or raises."""

    def __init__(self, handler: Callable[[str, Dict[str, Any]], Any]):
        self.handler = handler
        self.calls: List[Dict[str, Any]] = []

    def get(self, url: str, params: Optional[Dict[str, Any]] = None, timeout: Optional[float] = None):
        params = dict(params or {})
        self.calls.append({"url": url, "params": params, "timeout": timeout})
        result = self.handler(url, params)
        if isinstance(result, FakeResponse):
            return result
        return FakeResponse(result)


def forecast_payload(start: str = '2024-05-01T00:00', hours: int = 48, temp: float = 20.0,
                     wind: float = 5.0, precip: Optional[float] = 0, humidity: float = 50,
                     code: int = 3, utc_offset_seconds: int = 0) -> Dict[str, Any]:
    t0 = datetime.fromisoformat(start)
    times = [(t0 + timedelta(hours=i)).strftime('%Y-%m-%dT%H:%M') for i in range(hours)]
    return {
        "latitude": 47.0,
        "longitude": 11.0,
        "utc_offset_seconds": utc_offset_seconds,
        "hourly": {
            "time": times,
            "temperature_2m": [temp] * hours,
            "precipitation_probability": [precip] * hours,
            "wind_speed_10m": [wind] * hours,
            "relative_humidity_2m": [humidity] * hours,
            "weather_code": [code] * hours,
        },
    }


GPX_TRACK = """<?xml version="1.0" encoding="UTF-8"?>
<gpx version="1.1" creator="test" xmlns="http://www.topografix.com/GPX/1/1">
  <metadata><name>Morning Loop</name></metadata>
  <wpt lat="47.10" lon="11.10"><name>Summit</name></wpt>
  <wpt lat="47.20" lon="11.20"></wpt>
  <rte>
    <name>Detour</name>
    <rtept lat="47.30" lon="11.30"></rtept>
  </rte>
  <trk>
    <name>Ridge</name>
    <trkseg>
      <trkpt lat="47.000" lon="11.000"><ele>500</ele><time>2024-05-01T06:00:00Z</time></trkpt>
      <trkpt lat="47.010" lon="11.000"><ele>510</ele></trkpt>
    </trkseg>
    <trkseg>
      <trkpt lat="47.020" lon="11.000"><ele>520</ele></trkpt>
    </trkseg>
  </trk>
</gpx>
"""

GPX_EMPTY = """<?xml version="1.0" encoding="UTF-8"?>
<gpx version="1.1" creator="test" xmlns="http://www.topografix.com/GPX/1/1">
  <metadata><name>Nothing here</name></metadata>
</gpx>
"""


@pytest.fixture
def start_time() -> datetime:
    return datetime(2024, 5, 1, 6, 0)
