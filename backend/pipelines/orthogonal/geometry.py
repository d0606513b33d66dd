"""
Ring Geometry Utilities
Local metric conversion, tolerance comparisons and orientation helpers for lat/lon rings.

Points are (lat, lon) tuples in decimal degrees. Rings are plain lists of points.
"""
from __future__ import annotations

from typing import List, Sequence, Tuple
import math
import logging

logger = logging.getLogger(__name__)

LatLon = Tuple[float, float]
Ring = List[LatLon]

# Tolerances in degrees
POINT_EPSILON = 1e-7
CLOSURE_EPSILON = 1e-4
AXIS_EPSILON = 1e-10


def get_factors(lat: float) -> Tuple[float, float]:
    """
    Meters per degree of latitude and longitude at the given latitude.
    Standard ellipsoidal series, good over parcel-sized extents.
    """
    rad = math.radians(lat)
    return (111132.92 - 559.82 * math.cos(2 * rad), 111412.84 * math.cos(rad))


def planar_distance_meters(p1: LatLon, p2: LatLon, reference_lat: float) -> float:
    """Planar distance between two points using the factors of reference_lat."""
    m_lat, m_lon = get_factors(reference_lat)
    return math.hypot((p2[0] - p1[0]) * m_lat, (p2[1] - p1[1]) * m_lon)


def points_close(p1: Sequence[float], p2: Sequence[float], epsilon: float = POINT_EPSILON) -> bool:
    return abs(p1[0] - p2[0]) < epsilon and abs(p1[1] - p2[1]) < epsilon


def is_closed(points: Sequence[LatLon], epsilon: float = CLOSURE_EPSILON) -> bool:
    """True when the first and last points coincide within epsilon."""
    return len(points) > 1 and points_close(points[0], points[-1], epsilon)


def close_ring(points: Sequence[LatLon]) -> Ring:
    """Return a copy of points with the first point appended if it is not already the last."""
    out = list(points)
    if out and not points_close(out[0], out[-1]):
        out.append(out[0])
    return out


def cross_product(o: LatLon, a: LatLon, b: LatLon) -> float:
    """z component of (a - o) x (b - o) with x = lon, y = lat."""
    return (a[1] - o[1]) * (b[0] - o[0]) - (a[0] - o[0]) * (b[1] - o[1])


def signed_area(points: Sequence[LatLon]) -> float:
    """
    Shoelace area over (lon, lat) in square degrees.
    Positive for counter-clockwise rings, negative for clockwise ones.
    A closing duplicate contributes nothing.
    """
    n = len(points)
    area = 0.0
    for i in range(n):
        lat1, lon1 = points[i]
        lat2, lon2 = points[(i + 1) % n]
        area += lon1 * lat2 - lon2 * lat1
    return area / 2.0


def ensure_clockwise(points: Sequence[LatLon]) -> Ring:
    """Return the ring in clockwise winding, reversing it when needed."""
    out = list(points)
    if signed_area(out) > 0:
        out.reverse()
    return out


def is_vertical(p1: LatLon, p2: LatLon) -> bool:
    """Orientation class of an edge by its dominant coordinate delta."""
    return abs(p2[0] - p1[0]) > abs(p2[1] - p1[1])


def is_axis_aligned(p1: LatLon, p2: LatLon, epsilon: float = AXIS_EPSILON) -> bool:
    return abs(p1[0] - p2[0]) < epsilon or abs(p1[1] - p2[1]) < epsilon


def point_in_polygon(point: LatLon, polygon: Sequence[LatLon]) -> bool:
    """
    Even-odd ray casting test. The polygon is treated as closed.
    Points exactly on the boundary may report either result.
    """
    x, y = point[1], point[0]
    n = len(polygon)
    inside = False
    j = n - 1
    for i in range(n):
        yi, xi = polygon[i]
        yj, xj = polygon[j]
        if (yi > y) != (yj > y) and x < (xj - xi) * (y - yi) / (yj - yi) + xi:
            inside = not inside
        j = i
    return inside
