import pytest

from wearplan.backend.errors import (
    GpxNoRouteDataError,
    GpxTooLargeError,
    GpxUnreadableError,
    InvalidArgumentError,
)
from wearplan.backend.models import RoutePoint
from wearplan.backend.route_sampling import (
    check_upload_size,
    haversine_km,
    load_gpx,
    sample_points,
)

from conftest import GPX_EMPTY, GPX_TRACK


def make_points(n):
    return [RoutePoint(latitude=45.0 + i * 0.01, longitude=7.0, label=f"P{i}", sequence_index=i) for i in range(n)]


@pytest.mark.parametrize("n,target", [(0, 10), (1, 10), (5, 10), (10, 10), (2, 2)])
def test_sample_returns_input_when_short_enough(n, target):
    pts = make_points(n)
    assert sample_points(pts, target) == pts


@pytest.mark.parametrize("n,target", [(11, 10), (12, 10), (19, 10), (100, 10), (1000, 10), (50, 2), (7, 3), (13, 4)])
def test_sample_bounds_and_keeps_endpoints(n, target):
    pts = make_points(n)
    out = sample_points(pts, target)
    assert len(out) <= target
    assert out[0] == pts[0]
    assert out[-1] == pts[-1]
    idx = [p.sequence_index for p in out]
    assert idx == sorted(idx)
    assert len(set(idx)) == len(idx)


def test_sample_uses_floor_step_for_long_routes():
    pts = make_points(100)
    out = sample_points(pts, 10)
    # step = floor(99 / 9) = 11
    assert [p.sequence_index for p in out] == [0, 11, 22, 33, 44, 55, 66, 77, 88, 99]


def test_sample_widens_step_when_floor_overshoots():
    pts = make_points(12)
    out = sample_points(pts, 10)
    assert [p.sequence_index for p in out] == [0, 2, 4, 6, 8, 11]


def test_resample_is_idempotent():
    pts = make_points(257)
    once = sample_points(pts, 10)
    assert sample_points(once, 10) == once
    assert sample_points(pts, 10) == once


@pytest.mark.parametrize("target", [1, 0, -3])
def test_sample_rejects_target_below_two(target):
    with pytest.raises(InvalidArgumentError):
        sample_points(make_points(5), target)


def test_haversine_one_degree_latitude():
    assert haversine_km(0.0, 0.0, 1.0, 0.0) == pytest.approx(111.2, abs=0.1)


def test_load_gpx_collects_tracks_routes_waypoints_in_order():
    points, meta = load_gpx(GPX_TRACK.encode('utf-8'))
    labels = [p.label for p in points]
    assert labels == [
        'Ridge - Point 1',
        'Ridge - Point 2',
        'Ridge - Point 3',
        'Detour - Point 1',
        'Summit',
        'Waypoint 2',
    ]
    assert [p.sequence_index for p in points] == list(range(6))
    assert [p.is_waypoint for p in points] == [False, False, False, False, True, True]
    assert points[0].elevation == 500
    assert points[0].timestamp is not None
    assert points[1].timestamp is None
    assert meta.name == 'Morning Loop'
    assert meta.total_points == 6
    assert meta.distance_km == pytest.approx(2 * haversine_km(47.0, 11.0, 47.01, 11.0), rel=1e-6)


def test_load_gpx_without_points():
    with pytest.raises(GpxNoRouteDataError, match='No route data found'):
        load_gpx(GPX_EMPTY.encode('utf-8'))


@pytest.mark.parametrize("data", [b'', b'   \n', b'\xff\xfe\x00bad'])
def test_load_gpx_unreadable(data):
    with pytest.raises(GpxUnreadableError):
        load_gpx(data)


def test_load_gpx_malformed_markup():
    with pytest.raises(GpxUnreadableError, match='Invalid GPX file format'):
        load_gpx(b'<gpx><trk><trkseg><trkpt lat="1" lon="2">')


def test_upload_size_ceiling():
    check_upload_size(5 * 1024 * 1024, 5 * 1024 * 1024)
    with pytest.raises(GpxTooLargeError, match='smaller than 5MB'):
        check_upload_size(5 * 1024 * 1024 + 1, 5 * 1024 * 1024)
