from flask import Flask, jsonify, request
from werkzeug.exceptions import RequestEntityTooLarge
from dataclasses import asdict
from typing import Dict, Any, List, Optional
from datetime import datetime
import logging

from wearplan.backend.config import Settings
from wearplan.backend.errors import (
    GpxError,
    GpxTooLargeError,
    InvalidArgumentError,
    LocationNotFoundError,
)
from wearplan.backend.geocoding import suggest_locations
from wearplan.backend.models import (
    Activity,
    Coordinates,
    Effort,
    RoutePoint,
    sample_from_dict,
    sample_to_dict,
)
from wearplan.backend.recommendations import recommend, summarize_conditions
from wearplan.backend.route_sampling import check_upload_size, load_gpx, sample_points, too_large_message
from wearplan.backend.weather_service import RouteWeather, WeatherService

SETTINGS = Settings.from_env()

logging.basicConfig(level=SETTINGS.log_level, format='[%(levelname)s] %(message)s')
log = logging.getLogger('wearplan.api')

app = Flask(__name__)
# Multipart framing needs some room on top of the file itself
UPLOAD_OVERHEAD_BYTES = 64 * 1024
app.config['MAX_CONTENT_LENGTH'] = SETTINGS.max_gpx_bytes + UPLOAD_OVERHEAD_BYTES
SERVICE = WeatherService(SETTINGS)

MISSING_FIELDS = 'Please fill in all fields'


@app.errorhandler(GpxTooLargeError)
def _too_large(e: GpxTooLargeError):
    return jsonify({"error": str(e)}), 413


@app.errorhandler(RequestEntityTooLarge)
def _body_too_large(e: RequestEntityTooLarge):
    log.warning('[GPX] request body over %s bytes rejected', app.config.get('MAX_CONTENT_LENGTH'))
    return jsonify({"error": too_large_message(SETTINGS.max_gpx_bytes)}), 413


@app.errorhandler(GpxError)
def _bad_gpx(e: GpxError):
    return jsonify({"error": str(e)}), 400


@app.errorhandler(InvalidArgumentError)
def _bad_request(e: InvalidArgumentError):
    return jsonify({"error": str(e)}), 400


@app.errorhandler(LocationNotFoundError)
def _not_found(e: LocationNotFoundError):
    return jsonify({"error": str(e)}), 404


def _json_body() -> Dict[str, Any]:
    body = request.get_json(silent=True)
    return body if isinstance(body, dict) else {}


def _require(body: Dict[str, Any], *keys: str) -> None:
    if any(not body.get(k) for k in keys):
        raise InvalidArgumentError(MISSING_FIELDS)


def _parse_start_time(raw: Any) -> datetime:
    try:
        # fromisoformat() only accepts the 'Z' suffix from 3.11 on
        return datetime.fromisoformat(str(raw).strip().replace('Z', '+00:00'))
    except ValueError:
        raise InvalidArgumentError(f"Invalid start time: {raw!r}") from None


def _coords_from_json(raw: Dict[str, Any]) -> Coordinates:
    if not isinstance(raw, dict):
        raise InvalidArgumentError("Coordinates must be an object")
    try:
        lat = float(raw.get('latitude', raw.get('lat')))
        lon = float(raw.get('longitude', raw.get('lon')))
    except (TypeError, ValueError):
        raise InvalidArgumentError('Coordinates need latitude and longitude') from None
    name = raw.get('name') or f"Lat {lat:.2f}, Lon {lon:.2f}"
    return Coordinates(latitude=lat, longitude=lon, name=str(name))


def _elevation_from_json(raw: Any) -> Optional[float]:
    if raw is None or raw == '':
        return None
    try:
        return float(raw)
    except (TypeError, ValueError):
        raise InvalidArgumentError(f"Invalid elevation: {raw!r}") from None


def _points_from_json(raw: List[Dict[str, Any]]) -> List[RoutePoint]:
    points: List[RoutePoint] = []
    for i, p in enumerate(raw):
        c = _coords_from_json(p)
        points.append(RoutePoint(
            latitude=c.latitude,
            longitude=c.longitude,
            elevation=_elevation_from_json(p.get('elevation')),
            label=str(p.get('label') or c.name),
            sequence_index=i,
            is_waypoint=bool(p.get('is_waypoint', False)),
        ))
    return points


def _route_weather(body: Dict[str, Any], start: datetime) -> RouteWeather:
    raw_points = body.get('points')
    if raw_points:
        if not isinstance(raw_points, list):
            raise InvalidArgumentError('points must be a list')
        points = sample_points(_points_from_json(raw_points), SETTINGS.sample_target)
        return SERVICE.fetch_route(points, start, name=body.get('route_name'))
    locations = body.get('locations') or []
    if isinstance(locations, str):
        locations = [locations]
    coords: Optional[Coordinates] = None
    if body.get('coords'):
        coords = _coords_from_json(body['coords'])
    return SERVICE.fetch_location(locations, start, coords=coords)


def _weather_json(rw: RouteWeather) -> Dict[str, Any]:
    return {
        "weather": [sample_to_dict(s) for s in rw.weather],
        "coords": asdict(rw.coords) if rw.coords else None,
    }


@app.route('/api/health')
def health():
    return jsonify({"status": "ok"})


@app.route('/api/activities')
def api_activities():
    return jsonify([
        {"id": a.id, "name": a.display_name, "speed_kmh": a.speed_kmh} for a in Activity
    ])


@app.route('/api/efforts')
def api_efforts():
    return jsonify([
        {"id": e.id, "name": e.display_name, "description": e.description, "heat_factor": e.heat_factor}
        for e in Effort
    ])


@app.route('/api/locations')
def api_locations():
    q = request.args.get('q', '')
    suggestions = suggest_locations(
        q,
        count=SETTINGS.suggestion_count,
        session=SERVICE.session,
        url=SETTINGS.geocoding_url,
        timeout=SETTINGS.request_timeout_s,
    )
    return jsonify([asdict(s) for s in suggestions])


@app.route('/api/upload_gpx', methods=['POST'])
def upload_gpx():
    f = request.files.get('file')
    if not f:
        return jsonify({"error": "No file uploaded"}), 400
    name = f.filename or 'route.gpx'
    if not name.lower().endswith('.gpx'):
        return jsonify({"error": "Only .gpx files allowed"}), 400
    data = f.read()
    check_upload_size(len(data), SETTINGS.max_gpx_bytes)
    points, meta = load_gpx(data)
    sampled = sample_points(points, SETTINGS.sample_target)
    log.info('[UPLOAD] %s: %d points, %d sampled', name, len(points), len(sampled))
    return jsonify({
        "name": meta.name,
        "total_points": meta.total_points,
        "distance_km": meta.distance_km,
        "sampled_points": [p.to_dict() for p in sampled],
    })


@app.route('/api/weather', methods=['POST'])
def api_weather():
    body = _json_body()
    _require(body, 'start_time')
    start = _parse_start_time(body['start_time'])
    return jsonify(_weather_json(_route_weather(body, start)))


@app.route('/api/recommendations', methods=['POST'])
def api_recommendations():
    body = _json_body()
    _require(body, 'activity', 'effort', 'weather')
    try:
        samples = [sample_from_dict(w) for w in body['weather']]
    except (KeyError, TypeError, ValueError, AttributeError):
        raise InvalidArgumentError('Malformed weather samples') from None
    summary = summarize_conditions(samples, body['effort'])
    layers = recommend(body['activity'], samples, body['effort'])
    return jsonify({
        "conditions": asdict(summary),
        "layers": [asdict(item) for item in layers],
    })


@app.route('/api/plan', methods=['POST'])
def api_plan():
    """Full pipeline: route input -> forecasts -> (aggregate) -> layering plan."""
    body = _json_body()
    _require(body, 'activity', 'effort', 'start_time')
    Effort.from_id(body['effort'])
    start = _parse_start_time(body['start_time'])
    rw = _route_weather(body, start)
    summary = summarize_conditions(rw.weather, body['effort'])
    layers = recommend(body['activity'], rw.weather, body['effort'])
    out = _weather_json(rw)
    out.update({
        "activity": body['activity'],
        "effort": body['effort'],
        "conditions": asdict(summary),
        "layers": [asdict(item) for item in layers],
    })
    return jsonify(out)


def main() -> None:
    app.run(host='0.0.0.0', port=SETTINGS.port)


if __name__ == '__main__':
    main()
