from fastapi import APIRouter
from burnscan.models import HealthCheckResponse

router = APIRouter(prefix="/api")

from burnscan.services.model_service import model_service

@router.get("/health", response_model=HealthCheckResponse)
async def health_check():
    """Health check endpoint."""
    model_available = model_service.is_available()
    return HealthCheckResponse(
        status="OK",
        model_available=model_available,
        labels=model_service.labels if model_available else []
    )
