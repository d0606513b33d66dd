"""
Ring Cleanup Passes
Bounded iterative repairs that turn a raw staircase into a simple orthogonal ring.

Every pass takes a ring and returns a new list; inputs are never mutated.
The iteration caps are part of the behavior, not tuning knobs.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Set, Tuple
import math
import logging

from .geometry import (
    AXIS_EPSILON,
    CLOSURE_EPSILON,
    POINT_EPSILON,
    LatLon,
    Ring,
    close_ring,
    is_closed,
    is_vertical,
    planar_distance_meters,
)

logger = logging.getLogger(__name__)

SPIKE_MAX_PASSES = 3
SELF_INTERSECTION_MAX_PASSES = 10
JOG_MAX_PASSES = 5

SPIKE_DOT_LIMIT = -0.99
MIN_JOG_THRESHOLD_METERS = 0.001
CORNER_KEY_DECIMALS = 7


def remove_spikes(points: Sequence[LatLon]) -> Ring:
    """
    Drop vertices where the path turns back on itself (near 180 degree reversal).

    On a closed ring the first vertex is checked against the vertex before the
    closing duplicate, and removing it removes the duplicate as well; the ring is
    re-closed afterwards. Open paths only have their interior vertices checked.
    """
    pts = list(points)
    closed = is_closed(pts, POINT_EPSILON)

    for _ in range(SPIKE_MAX_PASSES):
        n = len(pts)
        if n < (4 if closed else 3):
            break

        to_remove = [False] * n
        has_change = False
        start = 0 if closed else 1
        for i in range(start, n - 1):
            curr = pts[i]
            prev = pts[n - 2] if i == 0 else pts[i - 1]
            nxt = pts[i + 1]
            v1 = (curr[0] - prev[0], curr[1] - prev[1])
            v2 = (nxt[0] - curr[0], nxt[1] - curr[1])
            m1 = math.hypot(*v1)
            m2 = math.hypot(*v2)
            if m1 > 0 and m2 > 0 and (v1[0] * v2[0] + v1[1] * v2[1]) / (m1 * m2) < SPIKE_DOT_LIMIT:
                to_remove[i] = True
                has_change = True
                if i == 0:
                    to_remove[n - 1] = True

        if not has_change:
            break
        pts = [p for p, drop in zip(pts, to_remove) if not drop]
        logger.debug(f"🔪 Removed {sum(to_remove)} spike vertices")
        if closed:
            pts = close_ring(pts)
    return pts


def clean_collinear(points: Sequence[LatLon]) -> Ring:
    """Drop interior vertices lying on a straight north-south or east-west run."""
    if len(points) < 3:
        return list(points)

    clean: Ring = [points[0]]
    for i in range(1, len(points) - 1):
        prev = clean[-1]
        curr = points[i]
        nxt = points[i + 1]
        same_lat = abs(prev[0] - curr[0]) < POINT_EPSILON and abs(curr[0] - nxt[0]) < POINT_EPSILON
        same_lon = abs(prev[1] - curr[1]) < POINT_EPSILON and abs(curr[1] - nxt[1]) < POINT_EPSILON
        if not (same_lat or same_lon):
            clean.append(curr)
    clean.append(points[-1])
    return clean


@dataclass
class _AxisSegment:
    """Axis-aligned edge: fixed coordinate, span [lo, hi] on the other axis, edge index"""
    fixed: float
    lo: float
    hi: float
    idx: int


@dataclass
class Crossing:
    span: int
    i: int
    j: int
    lat: float
    lon: float


def _axis_segments(pts: Sequence[LatLon]) -> Tuple[List[_AxisSegment], List[_AxisSegment]]:
    """Split the edges of pts into horizontal (fixed lat) and vertical (fixed lon) segments."""
    horizontal: List[_AxisSegment] = []
    vertical: List[_AxisSegment] = []
    for i in range(len(pts) - 1):
        a, b = pts[i], pts[i + 1]
        if abs(a[0] - b[0]) < AXIS_EPSILON and abs(a[1] - b[1]) > AXIS_EPSILON:
            horizontal.append(_AxisSegment(a[0], min(a[1], b[1]), max(a[1], b[1]), i))
        elif abs(a[1] - b[1]) < AXIS_EPSILON and abs(a[0] - b[0]) > AXIS_EPSILON:
            vertical.append(_AxisSegment(a[1], min(a[0], b[0]), max(a[0], b[0]), i))
    horizontal.sort(key=lambda s: s.fixed)
    return horizontal, vertical


def find_crossings(points: Sequence[LatLon]) -> List[Crossing]:
    """
    All strict crossings between vertical and horizontal edges, in scan order.
    Touching endpoints do not count. Adjacent edges and the pair that spans the
    closing edge are excluded.
    """
    n = len(points)
    horizontal, vertical = _axis_segments(points)
    crossings: List[Crossing] = []
    for v in vertical:
        for h in horizontal:
            if h.lo < v.fixed < h.hi and v.lo < h.fixed < v.hi:
                i = min(h.idx, v.idx)
                j = max(h.idx, v.idx)
                if j - i < 2:
                    continue
                if i == 0 and j == n - 2:
                    continue
                crossings.append(Crossing(span=j - i, i=i, j=j, lat=h.fixed, lon=v.fixed))
    return crossings


def remove_self_intersections(points: Sequence[LatLon]) -> Ring:
    """
    Cut out loops created by crossing edges, one crossing per pass.

    The crossing with the smallest edge span is resolved by replacing every vertex
    between the two edges with the crossing point. Stops when no crossing is left
    or after SELF_INTERSECTION_MAX_PASSES passes (best effort).
    """
    pts = list(points)
    for _ in range(SELF_INTERSECTION_MAX_PASSES):
        if len(pts) < 5:
            break

        best: Optional[Crossing] = None
        for crossing in find_crossings(pts):
            if best is None or crossing.span < best.span:
                best = crossing
        if best is None:
            break

        logger.debug(f"✂️ Resolving crossing between edges {best.i} and {best.j} at ({best.lat:.8f}, {best.lon:.8f})")
        pts = pts[:best.i + 1] + [(best.lat, best.lon)] + pts[best.j + 1:]
        pts = close_ring(pts)
    else:
        if len(pts) >= 5 and find_crossings(pts):
            logger.warning(f"⚠️ Self-intersections remain after {SELF_INTERSECTION_MAX_PASSES} passes")
    return pts


def fix_corner_intersection(points: Sequence[LatLon]) -> Ring:
    """
    Make a closed ring start and end on a clean right angle.

    When exactly one of the first and last edges is vertical, the shared start/end
    point is replaced by the corner formed from the vertical edge's longitude and
    the horizontal edge's latitude.
    """
    pts = list(points)
    if len(pts) < 4 or not is_closed(pts, CLOSURE_EPSILON):
        return pts

    p0, p1 = pts[0], pts[1]
    p_last, p_before = pts[-1], pts[-2]
    start_vertical = abs(p1[1] - p0[1]) < abs(p1[0] - p0[0])
    end_vertical = abs(p_last[0] - p_before[0]) > abs(p_last[1] - p_before[1])

    if start_vertical and not end_vertical:
        corner = (p_last[0], p0[1])
    elif not start_vertical and end_vertical:
        corner = (p0[0], p_last[1])
    else:
        return pts

    pts[0] = corner
    pts[-1] = corner
    return pts


def collapse_jogs(points: Sequence[LatLon], threshold: float = 1.0) -> Ring:
    """
    Merge short edges that sit between two edges of the same orientation.

    Args:
        points: Closed orthogonal ring
        threshold: Edges shorter than this many meters are merge candidates

    Returns:
        list: Ring with absorbed jogs and collinear runs collapsed
    """
    if threshold <= MIN_JOG_THRESHOLD_METERS:
        return list(points)

    pts = list(points)
    for _ in range(JOG_MAX_PASSES):
        if len(pts) < 5:
            break
        curr = list(pts)
        if not _absorb_first_jog(curr, threshold):
            break
        pts = clean_collinear(curr)
    return pts


def _absorb_first_jog(pts: Ring, threshold: float) -> bool:
    """Snap the first absorbable short edge in place. Returns True when one was found."""
    n = len(pts)
    for i in range(n - 1):
        p1, p2 = pts[i], pts[i + 1]
        dist = planar_distance_meters(p1, p2, p1[0])
        if not 0 < dist < threshold:
            continue

        prev = pts[i - 1 if i > 0 else n - 2]
        nxt_idx = i + 2 if i < n - 2 else 1
        nxt = pts[nxt_idx]
        prev_vertical = is_vertical(prev, p1)
        next_vertical = is_vertical(p2, nxt)
        if prev_vertical != next_vertical:
            continue

        if prev_vertical:
            pts[i + 1] = (pts[i + 1][0], p1[1])
            pts[nxt_idx] = (nxt[0], p1[1])
        else:
            pts[i + 1] = (p1[0], pts[i + 1][1])
            pts[nxt_idx] = (p1[0], nxt[1])
        if i + 1 == n - 1:
            pts[0] = pts[-1]
        logger.debug(f"🪚 Absorbed {dist:.3f} m jog at edge {i}")
        return True
    return False


def _corner_key(point: LatLon) -> Tuple[float, float]:
    return (round(point[0], CORNER_KEY_DECIMALS), round(point[1], CORNER_KEY_DECIMALS))


def fix_outside_corners(points: Sequence[LatLon], original_corners: Iterable[LatLon],
                        epsilon: float = POINT_EPSILON) -> Ring:
    """
    Square up output vertices that sit exactly on an original polygon corner.

    A vertex matching an original corner whose neighbours form an L through it is
    moved to the orthogonal corner of that L.
    """
    if len(points) < 3:
        return list(points)

    corner_set: Set[Tuple[float, float]] = {_corner_key(c) for c in original_corners}
    result = list(points)
    for i in range(1, len(result) - 1):
        b = result[i]
        if _corner_key(b) not in corner_set:
            continue

        a = result[i - 1]
        c = result[i + 1]
        if abs(a[1] - b[1]) < epsilon and abs(b[0] - c[0]) < epsilon:
            result[i] = (a[0], c[1])
        elif abs(a[0] - b[0]) < epsilon and abs(b[1] - c[1]) < epsilon:
            result[i] = (c[0], a[1])
    return result
