"""
Central configuration for backend settings.
"""
import os


# Orthogonalization defaults, used when a request leaves an option out
DEFAULT_MODE: str = os.getenv("ORTHO_DEFAULT_MODE", "inside")
DEFAULT_STEP_METERS: float = float(os.getenv("ORTHO_DEFAULT_STEP_METERS", "15.0"))
DEFAULT_OFFSET_METERS: float = float(os.getenv("ORTHO_DEFAULT_OFFSET_METERS", "5.0"))
DEFAULT_JOG_THRESHOLD_METERS: float = float(os.getenv("ORTHO_DEFAULT_JOG_THRESHOLD_METERS", "0.0"))
DEFAULT_OUTPUT_NAME: str = os.getenv("ORTHO_DEFAULT_OUTPUT_NAME", "orthogonal_boundary")
