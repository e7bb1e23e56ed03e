"""Health check endpoints."""

from fastapi import APIRouter

from frame_optin.core.config import settings
from frame_optin.core.deps import RedisClient
from frame_optin.schemas.common import HealthResponse

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check(redis: RedisClient) -> HealthResponse:
    """
    Health check endpoint.

    Checks subscription store connectivity and returns service status.
    """
    checks: dict[str, str] = {}
    status = "healthy"

    try:
        await redis.ping()
        checks["redis"] = "healthy"
    except Exception as e:
        status = "unhealthy"
        checks["redis"] = f"unhealthy: {str(e)}"

    return HealthResponse(
        status=status,
        version=settings.version,
        environment=settings.environment,
        checks=checks,
    )


@router.get("/health/live")
async def liveness_check() -> dict[str, str]:
    """
    Liveness probe for Kubernetes/container orchestration.

    Simple check that the service is running.
    """
    return {"status": "alive"}


@router.get("/health/ready")
async def readiness_check(redis: RedisClient) -> dict[str, str]:
    """
    Readiness probe for Kubernetes/container orchestration.

    Checks if the subscription store is reachable.
    """
    await redis.ping()

    return {"status": "ready"}
