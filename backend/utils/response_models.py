"""
Shared Response Models
Request and response contracts for the orthogonal boundary API

These models define the API contract used by the frontend:
- status: "success" or "error" (REQUIRED)
- error: message when status is "error"
- kml / csv / point_count are only filled on success
- violations stays None unless robust outside mode computed it
"""
from pydantic import BaseModel, Field
from typing import Dict, Any, Optional

class BaseResponse(BaseModel):
    """Base response format"""
    status: str  # "success" or "error"
    error: Optional[str] = None

class OrthogonalizeRequest(BaseModel):
    """Body for orthogonalize endpoints; omitted options fall back to configured defaults"""
    kml_text: str = Field(..., min_length=1)
    output_name: Optional[str] = None
    mode: Optional[str] = None  # inside/outside, legacy DENTRO/FORA accepted
    step_meters: Optional[float] = Field(None, gt=0)
    robust_outside: bool = False
    offset_meters: Optional[float] = Field(None, ge=0)
    jog_threshold_meters: Optional[float] = Field(None, ge=0)

class OrthogonalizeResponse(BaseResponse):
    """Response for orthogonalize endpoint"""
    kml: Optional[str] = None
    csv: Optional[str] = None
    point_count: Optional[int] = None
    violations: Optional[int] = None
    metadata: Optional[Dict[str, Any]] = None

class OptionsResponse(BaseResponse):
    """Response for options endpoint"""
    options: Optional[Dict[str, Dict[str, Any]]] = None
