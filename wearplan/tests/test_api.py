import io
import random

import pytest

import wearplan.backend.app as backend_app
from wearplan.backend.config import Settings
from wearplan.backend.weather_service import WeatherService

from conftest import GPX_EMPTY, GPX_TRACK, FakeSession, forecast_payload

GEO = {"results": [{"name": "Chamonix", "latitude": 45.92, "longitude": 6.87, "country": "France"}]}


def _handler(url, params):
    if 'geocoding' in url:
        if params.get('name') == 'Nowhere':
            return {}
        return GEO
    return forecast_payload(start='2024-05-01T00:00', temp=float(params['latitude']) - 25, wind=5, precip=0)


@pytest.fixture
def client(monkeypatch):
    session = FakeSession(_handler)
    monkeypatch.setattr(backend_app, 'SETTINGS', Settings())
    monkeypatch.setattr(backend_app, 'SERVICE', WeatherService(Settings(), session=session, rng=random.Random(0)))
    backend_app.app.config['TESTING'] = True
    with backend_app.app.test_client() as c:
        yield c


def test_catalogues(client):
    acts = client.get('/api/activities').get_json()
    assert [a['id'] for a in acts] == ['run', 'mountain-bike', 'road-bike', 'downhill-ski', 'backcountry-ski', 'nordic-ski']
    efforts = client.get('/api/efforts').get_json()
    assert {e['id']: e['heat_factor'] for e in efforts} == {'easy': 0.7, 'endurance': 1.0, 'tempo': 1.3, 'all-out': 1.6}
    assert client.get('/api/health').get_json() == {"status": "ok"}


def test_location_suggestions(client):
    out = client.get('/api/locations?q=Cham').get_json()
    assert out[0]['display_name'] == 'Chamonix, France'
    assert client.get('/api/locations?q=C').get_json() == []


def test_upload_gpx_returns_sampled_points(client):
    resp = client.post('/api/upload_gpx', data={'file': (io.BytesIO(GPX_TRACK.encode()), 'ridge.gpx')},
                       content_type='multipart/form-data')
    assert resp.status_code == 200
    body = resp.get_json()
    assert body['name'] == 'Morning Loop'
    assert body['total_points'] == 6
    assert len(body['sampled_points']) == 6
    assert body['sampled_points'][0]['label'] == 'Ridge - Point 1'


def test_upload_gpx_errors(client, monkeypatch):
    resp = client.post('/api/upload_gpx', data={'file': (io.BytesIO(GPX_EMPTY.encode()), 'empty.gpx')},
                       content_type='multipart/form-data')
    assert resp.status_code == 400
    assert 'No route data found' in resp.get_json()['error']

    resp = client.post('/api/upload_gpx', data={'file': (io.BytesIO(b'x'), 'notes.txt')},
                       content_type='multipart/form-data')
    assert resp.status_code == 400

    monkeypatch.setattr(backend_app, 'SETTINGS', Settings(max_gpx_bytes=64))
    resp = client.post('/api/upload_gpx', data={'file': (io.BytesIO(GPX_TRACK.encode()), 'ridge.gpx')},
                       content_type='multipart/form-data')
    assert resp.status_code == 413
    assert 'File too large' in resp.get_json()['error']


def test_weather_for_typed_location(client):
    resp = client.post('/api/weather', json={"locations": ["Chamonix"], "start_time": "2024-05-01T06:00"})
    assert resp.status_code == 200
    body = resp.get_json()
    assert body['coords']['name'] == 'Chamonix'
    assert len(body['weather']) == 5
    assert body['weather'][0]['temperature_f'] == 21  # 45.92 - 25 rounded


def test_weather_unknown_location(client):
    resp = client.post('/api/weather', json={"locations": ["Nowhere"], "start_time": "2024-05-01T06:00"})
    assert resp.status_code == 404
    assert resp.get_json()['error'] == 'Could not find location'


def test_weather_requires_start_time(client):
    resp = client.post('/api/weather', json={"locations": ["Chamonix"]})
    assert resp.status_code == 400
    assert resp.get_json()['error'] == 'Please fill in all fields'


def test_recommendations_from_weather_payload(client):
    weather = [
        {"location": "Here", "time": "2024-05-01T06:00", "temperature_f": 20, "wind_speed_mph": 5,
         "precipitation_chance": 0, "humidity": 50, "weather_code": 0}
    ] * 5
    resp = client.post('/api/recommendations', json={"activity": "run", "effort": "easy", "weather": weather})
    assert resp.status_code == 200
    body = resp.get_json()
    assert body['conditions']['felt_temp_f'] == pytest.approx(15.5)
    assert body['layers'][0] == {"category": "Base Layer", "item": "Thermal long-sleeve top", "rationale": "Cold protection"}


def test_recommendations_unknown_activity_and_effort(client):
    weather = [{"temperature_f": 50, "wind_speed_mph": 5}]
    resp = client.post('/api/recommendations', json={"activity": "kite", "effort": "easy", "weather": weather})
    assert resp.status_code == 200
    assert resp.get_json()['layers'] == []
    resp = client.post('/api/recommendations', json={"activity": "run", "effort": "lazy", "weather": weather})
    assert resp.status_code == 400


def test_plan_for_route_points(client):
    points = [{"latitude": 50.0 + i, "longitude": 6.0, "label": f"P{i}"} for i in range(30)]
    resp = client.post('/api/plan', json={
        "activity": "road-bike", "effort": "tempo", "start_time": "2024-05-01T06:00",
        "points": points, "route_name": "Alpine Loop",
    })
    assert resp.status_code == 200
    body = resp.get_json()
    assert body['coords']['name'] == 'Alpine Loop'
    assert all(w['aggregated'] for w in body['weather'])
    # coldest sampled point is latitude 50 -> 25F, tempo adds 4.5
    assert body['conditions']['base_temp_f'] == 25
    assert body['conditions']['felt_temp_f'] == pytest.approx(29.5)
    items = [l['item'] for l in body['layers']]
    assert items[0] == 'Thermal cycling jersey'
    assert items[-2:] == ['Helmet', 'Cycling glasses']
    # 30 points sampled down to the configured target
    assert len(backend_app.SERVICE.session.calls) <= 10


def test_plan_missing_fields(client):
    resp = client.post('/api/plan', json={"activity": "run", "start_time": "2024-05-01T06:00"})
    assert resp.status_code == 400


def test_oversized_request_body_is_refused_before_parsing(client, monkeypatch):
    monkeypatch.setitem(backend_app.app.config, 'MAX_CONTENT_LENGTH', 256)
    payload = GPX_TRACK.encode() + b' ' * 512
    resp = client.post('/api/upload_gpx', data={'file': (io.BytesIO(payload), 'ridge.gpx')},
                       content_type='multipart/form-data')
    assert resp.status_code == 413
    assert resp.get_json()['error'].startswith('File too large')


def test_upload_limit_leaves_room_for_multipart_framing():
    assert backend_app.app.config['MAX_CONTENT_LENGTH'] > backend_app.SETTINGS.max_gpx_bytes


def test_route_point_elevation_is_numeric(client):
    points = [{"latitude": 50.0, "longitude": 6.0, "elevation": "1200"},
              {"latitude": 51.0, "longitude": 6.0}]
    resp = client.post('/api/weather', json={"points": points, "start_time": "2024-05-01T06:00"})
    assert resp.status_code == 200

    points[0]['elevation'] = 'high'
    resp = client.post('/api/weather', json={"points": points, "start_time": "2024-05-01T06:00"})
    assert resp.status_code == 400
    assert 'elevation' in resp.get_json()['error']
