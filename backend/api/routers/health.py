"""Health check endpoint."""

from datetime import datetime, timezone

from fastapi import APIRouter

from backend.api.schemas import HealthResponse

router = APIRouter(tags=["health"])

API_VERSION = "0.1.0"


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """Liveness probe. Does not contact Appwrite or Composio."""
    return HealthResponse(
        status="healthy",
        version=API_VERSION,
        timestamp=datetime.now(timezone.utc),
    )
