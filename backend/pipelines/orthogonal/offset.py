"""
Outward Offset Constructor
Miter-style buffer of a clockwise lat/lon ring by a fixed distance in meters
"""
from __future__ import annotations

from typing import List, Optional, Sequence, Tuple
import math
import logging

from .geometry import LatLon, Ring, get_factors, is_closed

logger = logging.getLogger(__name__)

OffsetLine = Tuple[LatLon, LatLon]

PARALLEL_EPSILON = 1e-15


def line_intersect(p1: LatLon, p2: LatLon, p3: LatLon, p4: LatLon) -> Optional[LatLon]:
    """Intersection of the infinite lines p1-p2 and p3-p4, or None when parallel."""
    d1 = (p2[0] - p1[0], p2[1] - p1[1])
    d2 = (p4[0] - p3[0], p4[1] - p3[1])
    cross = d1[0] * d2[1] - d1[1] * d2[0]
    if abs(cross) < PARALLEL_EPSILON:
        return None
    dp = (p3[0] - p1[0], p3[1] - p1[1])
    t = (dp[0] * d2[1] - dp[1] * d2[0]) / cross
    return (p1[0] + t * d1[0], p1[1] + t * d1[1])


def _offset_edge(a: LatLon, b: LatLon, offset_meters: float) -> OffsetLine:
    """Translate edge a-b along its left-hand normal, which points outward on a clockwise ring."""
    m_lat, m_lon = get_factors((a[0] + b[0]) / 2)
    dy_m = (b[0] - a[0]) * m_lat
    dx_m = (b[1] - a[1]) * m_lon
    length = math.hypot(dx_m, dy_m)
    if length < 1e-10:
        return (a, b)

    nx_m = (-dy_m / length) * offset_meters
    ny_m = (dx_m / length) * offset_meters
    dlat_off = ny_m / m_lat
    dlon_off = nx_m / m_lon
    return (
        (a[0] + dlat_off, a[1] + dlon_off),
        (b[0] + dlat_off, b[1] + dlon_off),
    )


def offset_polygon_outward(points: Sequence[LatLon], offset_meters: float) -> Ring:
    """
    Expand a clockwise ring outward by offset_meters.

    Each output vertex is the intersection of the offset lines of its two adjacent
    edges. Convex/concave overlap is not collapsed here; the cleanup passes repair
    any self-intersections this produces.

    Returns:
        list: Closed ring, or the input unchanged when it has fewer than 3 vertices
    """
    pts = list(points[:-1]) if is_closed(points) else list(points)
    n = len(pts)
    if n < 3:
        return list(points)

    offset_lines: List[OffsetLine] = [
        _offset_edge(pts[i], pts[(i + 1) % n], offset_meters) for i in range(n)
    ]

    new_pts: Ring = []
    parallel = 0
    for i in range(n):
        j = (i + 1) % n
        p = line_intersect(offset_lines[i][0], offset_lines[i][1], offset_lines[j][0], offset_lines[j][1])
        if p is None:
            parallel += 1
            p = offset_lines[j][0]
        new_pts.append(p)
    new_pts.append(new_pts[0])

    if parallel:
        logger.debug(f"↔️ Offset fell back to edge endpoints at {parallel} parallel joints")
    return new_pts
