"""
Orthogonal Boundary Module
Staircase orthogonalization of surveyed lat/lon boundaries
"""
from .pipeline import BoundaryMode, OrthogonalPipeline, RingResult, orthogonalize_boundary
from .kml_document import BoundaryDocumentError

__all__ = ["BoundaryMode", "OrthogonalPipeline", "RingResult", "orthogonalize_boundary", "BoundaryDocumentError"]
