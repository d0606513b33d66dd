"""
Orthogonal Boundary API Endpoints
"""
from fastapi import APIRouter, HTTPException, Response, status
from typing import Dict, Any
import logging

from config import settings
from pipelines.orthogonal.kml_document import KML_MEDIA_TYPE, content_disposition, export_filename
from pipelines.orthogonal.pipeline import OrthogonalPipeline
from utils.response_models import OptionsResponse, OrthogonalizeRequest, OrthogonalizeResponse

logger = logging.getLogger(__name__)
router = APIRouter()


def _run_pipeline(request: OrthogonalizeRequest) -> Dict[str, Any]:
    pipeline = OrthogonalPipeline()
    options = request.model_dump(exclude={"kml_text", "output_name"})
    return pipeline.process(request.kml_text, request.output_name or settings.DEFAULT_OUTPUT_NAME, options)


@router.post("/orthogonalize", response_model=OrthogonalizeResponse)
def orthogonalize(request: OrthogonalizeRequest) -> OrthogonalizeResponse:
    """
    Convert every boundary ring in a KML document into an orthogonal staircase boundary
    """
    try:
        result = _run_pipeline(request)
    except Exception as e:
        logger.error(f"Orthogonalization failed: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Orthogonalization failed: {str(e)}"
        )

    if not result["success"]:
        return OrthogonalizeResponse(status="error", error=result["error"])

    logger.info(f"📦 Orthogonalized boundary with {result['count']} points")
    return OrthogonalizeResponse(
        status="success",
        kml=result["kml"],
        csv=result["csv"],
        point_count=result["count"],
        violations=result["violations"],
        metadata=result["metadata"],
    )


@router.post("/orthogonalize/download")
def download_orthogonalized(request: OrthogonalizeRequest) -> Response:
    """
    Same as /orthogonalize but returns the KML document as an attachment
    """
    result = _run_pipeline(request)
    if not result["success"]:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=result["error"]
        )

    filename = export_filename(request.output_name or settings.DEFAULT_OUTPUT_NAME, result["count"])
    headers = {"Content-Disposition": content_disposition(filename)}
    return Response(content=result["kml"], media_type=KML_MEDIA_TYPE, headers=headers)


@router.get("/options", response_model=OptionsResponse)
def get_orthogonalize_options() -> OptionsResponse:
    """
    Get available orthogonalization options
    """
    return OptionsResponse(status="success", options=OrthogonalPipeline().get_available_options())
