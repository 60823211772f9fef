"""Health check endpoint."""

from fastapi import APIRouter

from pxd.core.config import settings
from pxd.schemas.health import HealthResponse

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Check application health (public).

    Returns:
        Health status and application version.
    """
    return HealthResponse(
        ok=True,
        version=settings.version,
    )
