import math
import logging
from typing import List, Tuple, Sequence, Optional, Iterable

import gpxpy
from gpxpy.gpx import GPX, GPXException

from wearplan.backend.errors import (
    GpxNoRouteDataError,
    GpxTooLargeError,
    GpxUnreadableError,
    InvalidArgumentError,
)
from wearplan.backend.models import RouteMetadata, RoutePoint

log = logging.getLogger('wearplan.route')

EARTH_RADIUS_KM = 6371.0088


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Compute haversine distance between two lat/lon points in kilometers."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlambda = math.radians(lon2 - lon1)
    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def path_length_km(coords: Iterable[Tuple[float, float]]) -> float:
    total = 0.0
    prev = None
    for lat, lon in coords:
        if prev is not None:
            total += haversine_km(prev[0], prev[1], lat, lon)
        prev = (lat, lon)
    return total


def too_large_message(max_bytes: int) -> str:
    limit_mb = max_bytes / (1024 * 1024)
    return f"File too large. Please upload a GPX file smaller than {limit_mb:g}MB."


def check_upload_size(size: int, max_bytes: int) -> None:
    """Reject an upload before parsing when it exceeds the size ceiling."""
    if size > max_bytes:
        log.warning('[GPX] rejected upload of %d bytes (limit %d)', size, max_bytes)
        raise GpxTooLargeError(too_large_message(max_bytes))


def load_gpx(data: bytes) -> Tuple[List[RoutePoint], RouteMetadata]:
    """Parse GPX bytes into ordered route points plus a small metadata record.

    Points are collected from tracks first, then routes, then waypoints; each
    carries a human-readable label and its running position.
    """
    if not data:
        raise GpxUnreadableError('File is empty or not readable')
    try:
        text = data.decode('utf-8-sig')
    except UnicodeDecodeError:
        raise GpxUnreadableError('File is empty or not readable') from None
    if not text.strip():
        raise GpxUnreadableError('File is empty or not readable')

    try:
        gpx: GPX = gpxpy.parse(text)
    except (GPXException, ValueError) as e:
        log.warning('[GPX] parse failed: %s', e)
        raise GpxUnreadableError(f"Invalid GPX file format: {e}") from e

    points: List[RoutePoint] = []

    for track in gpx.tracks:
        label = track.name or 'Track'
        n = 0
        for seg in track.segments:
            for p in seg.points:
                n += 1
                points.append(RoutePoint(
                    latitude=p.latitude,
                    longitude=p.longitude,
                    elevation=p.elevation,
                    timestamp=p.time,
                    label=f"{label} - Point {n}",
                    sequence_index=len(points),
                ))

    for route in gpx.routes:
        label = route.name or 'Route'
        for n, p in enumerate(route.points, start=1):
            points.append(RoutePoint(
                latitude=p.latitude,
                longitude=p.longitude,
                elevation=p.elevation,
                timestamp=p.time,
                label=f"{label} - Point {n}",
                sequence_index=len(points),
            ))

    for n, w in enumerate(gpx.waypoints, start=1):
        points.append(RoutePoint(
            latitude=w.latitude,
            longitude=w.longitude,
            elevation=w.elevation,
            timestamp=w.time,
            label=w.name or f"Waypoint {n}",
            sequence_index=len(points),
            is_waypoint=True,
        ))

    if not points:
        raise GpxNoRouteDataError('No route data found in GPX file')

    distance_km: Optional[float] = None
    if gpx.tracks:
        first = gpx.tracks[0]
        distance_km = path_length_km(
            (p.latitude, p.longitude) for seg in first.segments for p in seg.points
        )

    meta = RouteMetadata(name=gpx.name, total_points=len(points), distance_km=distance_km)
    log.info('[GPX] loaded %d points (tracks=%d routes=%d waypoints=%d)',
             len(points), len(gpx.tracks), len(gpx.routes), len(gpx.waypoints))
    return points, meta


def sample_points(points: Sequence[RoutePoint], target_count: int = 10) -> List[RoutePoint]:
    """
    Reduce an ordered point list to at most `target_count` evenly spaced points.
    The first and last points are always kept and order is preserved.
    """
    if len(points) <= target_count:
        return list(points)
    if target_count < 2:
        raise InvalidArgumentError(f"target_count must be at least 2, got {target_count}")

    length = len(points)
    step = (length - 1) // (target_count - 1)
    if len(range(step, length - step, step)) + 2 > target_count:
        # Floor step overshoots when the route is only slightly longer than the target
        step = math.ceil((length - 1) / (target_count - 1))

    sampled = [points[0]]
    for i in range(step, length - step, step):
        sampled.append(points[i])
    sampled.append(points[-1])

    log.info('[SAMPLE] %d -> %d points (step=%d)', length, len(sampled), step)
    return sampled
