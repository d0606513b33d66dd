"""
Orthogonal Boundary Pipeline
Converts the rings of a boundary document into staircase (north-south / east-west) boundaries
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from config import settings

from .cleanup import (
    clean_collinear,
    collapse_jogs,
    fix_corner_intersection,
    fix_outside_corners,
    remove_self_intersections,
    remove_spikes,
)
from .geometry import LatLon, Ring, close_ring, ensure_clockwise, is_closed, point_in_polygon
from .kml_document import (
    BoundaryDocumentError,
    coordinate_nodes,
    format_table,
    node_text,
    parse_boundary_document,
    parse_coordinates,
    rename_placemarks,
    replace_coordinates,
    serialize_document,
)
from .offset import offset_polygon_outward
from .quality import assess_ring_quality
from .staircase import staircase_ring

logger = logging.getLogger(__name__)


class BoundaryMode(str, Enum):
    INSIDE = "inside"
    OUTSIDE = "outside"

    @classmethod
    def parse(cls, value: Any) -> "BoundaryMode":
        """Accept a mode, its value, or the legacy DENTRO / FORA labels (any case)."""
        if isinstance(value, cls):
            return value
        label = str(value or "").strip().lower()
        aliases = {"dentro": cls.INSIDE, "fora": cls.OUTSIDE}
        if label in aliases:
            return aliases[label]
        try:
            return cls(label)
        except ValueError:
            raise ValueError(f"Unknown boundary mode: {value!r}") from None


_TRUE_LABELS = {"true", "1", "yes", "on"}
_FALSE_LABELS = {"false", "0", "no", "off", ""}


def _parse_flag(name: str, value: Any) -> bool:
    """Strict boolean option: bools, 0/1 and the usual true/false labels."""
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        label = value.strip().lower()
        if label in _TRUE_LABELS:
            return True
        if label in _FALSE_LABELS:
            return False
    raise ValueError(f"{name} must be a boolean, got {value!r}")


@dataclass
class RingResult:
    """Outcome of orthogonalizing one ring"""
    points: Ring
    violations: Optional[int] = None
    quality: Dict[str, Any] = field(default_factory=dict)
    input_points: int = 0


class OrthogonalPipeline:
    """
    Pipeline for converting boundary documents into orthogonal boundaries
    """

    def process(self, boundary_text: str, output_name: str, options: Optional[Dict[str, Any]] = None) -> dict:
        """
        Orthogonalize every ring of a boundary document

        Args:
            boundary_text: KML document text
            output_name: Name written into every name element of the output
            options: mode, step_meters, robust_outside, offset_meters, jog_threshold_meters

        Returns:
            dict: kml, csv, count and violations on success, error otherwise
        """
        try:
            try:
                processing_options = self._get_processing_options(options)
                validation_errors = self._validate_options(processing_options)
            except (TypeError, ValueError) as e:
                validation_errors = [str(e)]
            if validation_errors:
                return {
                    "success": False,
                    "error": f"Invalid options: {'; '.join(validation_errors)}"
                }

            root = parse_boundary_document(boundary_text)
            nodes = coordinate_nodes(root)
            logger.info(f"🗺️ Orthogonalizing {len(nodes)} coordinate lists ({processing_options['mode'].value})")

            # Parse everything first so a bad token fails the whole call
            rings = [parse_coordinates(node_text(node)) for node in nodes]

            ring_results: List[RingResult] = []
            for index, (node, points) in enumerate(zip(nodes, rings)):
                if len(points) < 2:
                    logger.warning(f"⚠️ Skipping coordinate list {index}: {len(points)} points")
                    continue
                result = self.process_ring(points, processing_options)
                replace_coordinates(node, result.points)
                ring_results.append(result)

            if not ring_results:
                logger.warning("⚠️ No coordinate list had enough points to process")

            rename_placemarks(root, output_name)
            all_points = [p for r in ring_results for p in r.points]
            computed = [r.violations for r in ring_results if r.violations is not None]

            return {
                "success": True,
                "kml": serialize_document(root),
                "csv": format_table(all_points),
                "count": len(all_points),
                "violations": sum(computed) if computed else None,
                "metadata": {
                    "options": self._describe_options(processing_options),
                    "total_rings": len(nodes),
                    "processed_rings": len(ring_results),
                    "rings": [
                        {
                            "input_points": r.input_points,
                            "output_points": len(r.points),
                            "violations": r.violations,
                            "quality": r.quality,
                        }
                        for r in ring_results
                    ],
                },
            }

        except BoundaryDocumentError as e:
            logger.warning(f"📄 Boundary document rejected: {e}")
            return {
                "success": False,
                "error": str(e)
            }
        except Exception as e:
            logger.error(f"Orthogonal pipeline failed: {str(e)}")
            return {
                "success": False,
                "error": f"Processing failed: {str(e)}"
            }

    def process_ring(self, points: Sequence[LatLon], options: Dict[str, Any]) -> RingResult:
        """Run the staircase and cleanup sequence for a single ring"""
        opts = self._get_processing_options(options)
        mode: BoundaryMode = opts["mode"]
        step = float(opts["step_meters"])
        jog_threshold = float(opts["jog_threshold_meters"])
        norm_pts = ensure_clockwise(points)
        if not is_closed(norm_pts):
            norm_pts = close_ring(norm_pts)

        if mode is BoundaryMode.OUTSIDE and opts["robust_outside"]:
            expanded = ensure_clockwise(offset_polygon_outward(norm_pts, float(opts["offset_meters"])))
            p = staircase_ring(expanded, step, want_inside=True)
            p = self._common_cleanup(p, jog_threshold)
            p = remove_self_intersections(p)

            violations = sum(1 for pt in p if point_in_polygon(pt, norm_pts))
            if violations:
                logger.warning(f"⚠️ {violations} output points fall inside the original boundary")
        else:
            p = staircase_ring(norm_pts, step, want_inside=mode is BoundaryMode.INSIDE)
            p = self._common_cleanup(p, jog_threshold)
            if mode is BoundaryMode.OUTSIDE:
                p = fix_outside_corners(p, norm_pts)
            p = remove_spikes(p)
            p = remove_self_intersections(p)
            violations = None

        logger.info(f"✅ Ring orthogonalized: {len(points)} -> {len(p)} points")
        return RingResult(
            points=p,
            violations=violations,
            quality=assess_ring_quality(p, norm_pts),
            input_points=len(points),
        )

    def _common_cleanup(self, points: Ring, jog_threshold: float) -> Ring:
        p = remove_spikes(points)
        p = fix_corner_intersection(p)
        p = clean_collinear(p)
        p = collapse_jogs(p, jog_threshold)
        return remove_spikes(p)

    def _get_processing_options(self, options: Optional[Dict[str, Any]]) -> dict:
        """Get processing options with defaults"""
        default_options = {
            "mode": settings.DEFAULT_MODE,
            "step_meters": settings.DEFAULT_STEP_METERS,
            "robust_outside": False,
            "offset_meters": settings.DEFAULT_OFFSET_METERS,
            "jog_threshold_meters": settings.DEFAULT_JOG_THRESHOLD_METERS,
        }

        if options:
            default_options.update({k: v for k, v in options.items() if v is not None})

        default_options["mode"] = BoundaryMode.parse(default_options["mode"])
        default_options["robust_outside"] = _parse_flag("robust_outside", default_options["robust_outside"])
        return default_options

    def _validate_options(self, options: dict) -> List[str]:
        errors = []
        if not float(options["step_meters"]) > 0:
            errors.append("step_meters must be greater than 0")
        if float(options["offset_meters"]) < 0:
            errors.append("offset_meters must not be negative")
        if float(options["jog_threshold_meters"]) < 0:
            errors.append("jog_threshold_meters must not be negative")
        return errors

    def _describe_options(self, options: dict) -> dict:
        described = dict(options)
        described["mode"] = options["mode"].value
        return described

    def get_available_options(self) -> dict:
        """Get available processing options and their descriptions"""
        return {
            "mode": {
                "description": "Keep the staircase inside the boundary or expand it outward",
                "options": [m.value for m in BoundaryMode],
                "default": BoundaryMode.parse(settings.DEFAULT_MODE).value
            },
            "step_meters": {
                "description": "Maximum length of one staircase step in meters",
                "type": "float",
                "default": settings.DEFAULT_STEP_METERS
            },
            "robust_outside": {
                "description": "Buffer the boundary outward before staircasing (outside mode only)",
                "type": "bool",
                "default": False
            },
            "offset_meters": {
                "description": "Outward buffer distance in meters for robust outside mode",
                "type": "float",
                "default": settings.DEFAULT_OFFSET_METERS
            },
            "jog_threshold_meters": {
                "description": "Edges shorter than this are merged into their neighbours (0 disables)",
                "type": "float",
                "default": settings.DEFAULT_JOG_THRESHOLD_METERS
            }
        }


def orthogonalize_boundary(
    boundary_text: str,
    output_name: str,
    mode: Any,
    step_meters: float,
    use_robust_outside: bool = False,
    offset_meters: float = 0.0,
    jog_threshold_meters: float = 0.0,
) -> dict:
    """Explicit-argument entry point around OrthogonalPipeline.process"""
    return OrthogonalPipeline().process(
        boundary_text,
        output_name,
        {
            "mode": mode,
            "step_meters": step_meters,
            "robust_outside": use_robust_outside,
            "offset_meters": offset_meters,
            "jog_threshold_meters": jog_threshold_meters,
        },
    )
