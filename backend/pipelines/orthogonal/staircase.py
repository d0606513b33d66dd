"""
Staircase Edge Synthesizer
Converts a single polygon edge into an orthogonal (north-south / east-west) path
"""
from __future__ import annotations

from typing import Sequence
import math
import logging

from .geometry import LatLon, Ring, close_ring, cross_product, get_factors, is_closed

logger = logging.getLogger(__name__)

# Edges whose minor axis is below this share of the major axis are treated as axis aligned
NEAR_AXIS_RATIO = 0.05


def generate_steps(p1: LatLon, p2: LatLon, step_meters: float, want_inside: bool) -> Ring:
    """
    Build the orthogonal path from p1 to p2.

    Args:
        p1: Edge start (lat, lon)
        p2: Edge end (lat, lon)
        step_meters: Maximum length of one diagonal increment
        want_inside: Keep the corners on the inner side of a clockwise ring

    Returns:
        list: Points from p1 to p2 inclusive
    """
    lat1, lon1 = p1
    lat2, lon2 = p2
    m_lat, m_lon = get_factors((lat1 + lat2) / 2)
    dlat_m = abs(lat2 - lat1) * m_lat
    dlon_m = abs(lon2 - lon1) * m_lon
    total_dist = math.hypot(dlat_m, dlon_m)
    cross_dist = min(dlat_m, dlon_m)
    main_dist = max(dlat_m, dlon_m)

    if cross_dist < main_dist * NEAR_AXIS_RATIO and total_dist > step_meters:
        return _near_axis_steps(p1, p2, main_dist, step_meters, dlat_m >= dlon_m)

    num_steps = max(1, math.ceil(total_dist / step_meters))
    inc_lat = (lat2 - lat1) / num_steps
    inc_lon = (lon2 - lon1) / num_steps
    points: Ring = [p1]
    curr_lat, curr_lon = lat1, lon1

    for _ in range(num_steps):
        t_lat = curr_lat + inc_lat
        t_lon = curr_lon + inc_lon
        corner_a = (t_lat, curr_lon)
        is_inside = cross_product(p1, p2, corner_a) < 0

        if want_inside == is_inside:
            points.append(corner_a)
        else:
            points.append((curr_lat, t_lon))
        points.append((t_lat, t_lon))
        curr_lat, curr_lon = t_lat, t_lon

    # Accumulated increments drift by an ulp or two; pin the exact endpoint
    points[-1] = p2
    return points


def _near_axis_steps(p1: LatLon, p2: LatLon, main_dist: float, step_meters: float, main_is_lat: bool) -> Ring:
    """Subdivide along the dominant axis only, then jog to the exact endpoint."""
    lat1, lon1 = p1
    lat2, lon2 = p2
    num_steps = max(1, math.ceil(main_dist / step_meters))
    points: Ring = [p1]

    if main_is_lat:
        inc = (lat2 - lat1) / num_steps
        points.extend((lat1 + inc * i, lon1) for i in range(1, num_steps))
        points.append((lat2, lon1))
        if abs(lon2 - lon1) > 1e-10:
            points.append(p2)
    else:
        inc = (lon2 - lon1) / num_steps
        points.extend((lat1, lon1 + inc * i) for i in range(1, num_steps))
        points.append((lat1, lon2))
        if abs(lat2 - lat1) > 1e-10:
            points.append(p2)
    return points


def staircase_ring(points: Sequence[LatLon], step_meters: float, want_inside: bool) -> Ring:
    """
    Staircase every edge of a ring and join the chunks.
    A ring that was closed on input comes back closed.
    """
    if not points:
        return []
    full_path: Ring = [points[0]]
    for j in range(len(points) - 1):
        chunk = generate_steps(points[j], points[j + 1], step_meters, want_inside)
        full_path.extend(chunk[1:])

    if is_closed(points):
        full_path = close_ring(full_path)
    logger.debug(f"📐 Staircased {len(points)} vertices into {len(full_path)} points")
    return full_path
