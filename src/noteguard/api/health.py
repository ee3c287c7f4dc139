"""Health check API endpoints."""

from typing import Any, Dict

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.schemas.common import HealthCheckResponse
from ..core.services import HealthService
from ..database import get_db_session

router = APIRouter(prefix="/health", tags=["health"])


def get_health_service(session: AsyncSession = Depends(get_db_session)) -> HealthService:
    return HealthService(session)


@router.get("/", response_model=HealthCheckResponse)
async def health_check(response: Response, service: HealthService = Depends(get_health_service)):
    """Overall status; 503 only when the database is unreachable."""
    health = await service.get_health_status()
    if health.status == "unhealthy":
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return health


@router.get("/database", response_model=Dict[str, Any])
async def database_health(service: HealthService = Depends(get_health_service)):
    return await service.check_database_health()


@router.get("/redis", response_model=Dict[str, Any])
async def redis_health(service: HealthService = Depends(get_health_service)):
    """Token revocation store."""
    return await service.check_redis_health()
