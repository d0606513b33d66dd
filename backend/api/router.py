"""
Central API Router
Combines all API endpoints into a single router for main.py
"""
from fastapi import APIRouter
from api.endpoints import boundary
from api import logs

# Create the main API router
api_router = APIRouter()

# Include all endpoint routers
api_router.include_router(boundary.router, prefix="/api/boundary", tags=["boundary"])
api_router.include_router(logs.router, prefix="/api")

# Add a root endpoint for API discovery
@api_router.get("/api")
async def api_root():
    """API root endpoint for discovery"""
    return {
        "message": "Orthogonal Boundary API v1.0",
        "documentation": "/docs",
        "endpoints": {
            "orthogonalize": "/api/boundary/orthogonalize - Convert KML boundaries into orthogonal staircase boundaries",
            "download": "/api/boundary/orthogonalize/download - Same, returned as a KML attachment",
            "options": "/api/boundary/options - Available orthogonalization options",
            "logs": "/api/logs/recent - Recent server log records"
        }
    }
