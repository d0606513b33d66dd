"""
Orthogonal Ring Quality Validation
Read-only diagnostics for a cleaned ring: closure, orthogonality, validity and geodesic area
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence
import logging

from pyproj import Geod
from shapely.geometry import LinearRing, Polygon

from .geometry import LatLon, is_axis_aligned, is_closed

logger = logging.getLogger(__name__)

_GEOD = Geod(ellps="WGS84")


def geodesic_area_perimeter(points: Sequence[LatLon]) -> Dict[str, float]:
    """Ellipsoidal area (m^2, unsigned) and perimeter (m) of a lat/lon ring."""
    if len(points) < 3:
        return {"area_m2": 0.0, "perimeter_m": 0.0}
    lats = [p[0] for p in points]
    lons = [p[1] for p in points]
    area, perimeter = _GEOD.polygon_area_perimeter(lons, lats)
    return {"area_m2": abs(area), "perimeter_m": perimeter}


def count_non_orthogonal_edges(points: Sequence[LatLon]) -> int:
    return sum(1 for i in range(len(points) - 1) if not is_axis_aligned(points[i], points[i + 1]))


def assess_ring_quality(points: Sequence[LatLon], original: Optional[Sequence[LatLon]] = None) -> Dict[str, Any]:
    """
    Validate a cleaned ring without modifying it.

    Args:
        points: Cleaned output ring
        original: Input ring the output was derived from, for area comparison

    Returns:
        dict: closed/orthogonal/valid/simple flags, geodesic metrics and issues
    """
    issues: List[str] = []
    closed = is_closed(points)
    non_orthogonal = count_non_orthogonal_edges(points)

    if not closed:
        issues.append("Ring is not closed")
    if non_orthogonal:
        issues.append(f"{non_orthogonal} edges are not axis aligned")

    valid = False
    simple = False
    if len(points) >= 4 and closed:
        coords = [(lon, lat) for lat, lon in points]
        valid = Polygon(coords).is_valid
        simple = LinearRing(coords).is_simple
        if not valid:
            issues.append("Ring is not a valid polygon")
        if not simple:
            issues.append("Ring crosses itself")
    elif len(points) < 4:
        issues.append(f"Ring has too few points for a polygon: {len(points)}")

    metrics = geodesic_area_perimeter(points)
    quality: Dict[str, Any] = {
        "closed": closed,
        "orthogonal": non_orthogonal == 0,
        "non_orthogonal_edges": non_orthogonal,
        "valid": valid,
        "simple": simple,
        "area_m2": round(metrics["area_m2"], 3),
        "perimeter_m": round(metrics["perimeter_m"], 3),
        "issues": issues,
    }

    if original is not None:
        original_area = geodesic_area_perimeter(original)["area_m2"]
        quality["original_area_m2"] = round(original_area, 3)
        quality["area_ratio"] = round(metrics["area_m2"] / original_area, 6) if original_area > 0 else None

    if issues:
        logger.warning(f"🔍 Ring quality issues: {'; '.join(issues)}")
    return quality
