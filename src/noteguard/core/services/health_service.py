"""Health service implementation.

The database is required; Redis only backs token revocation, so losing
it degrades the service without taking it down.
"""

import time
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict

import redis.asyncio as redis
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from ... import __version__
from ...config import get_settings
from ..logging import get_logger
from ..schemas.common import HealthCheckResponse
from .interfaces import IHealthService

logger = get_logger("health")


async def _probe(name: str, check: Callable[[], Awaitable[None]]) -> Dict[str, Any]:
    started = time.perf_counter()
    try:
        await check()
    except Exception as e:
        logger.warning(f"{name} health check failed: {e}")
        return {"connected": False, "status": "unhealthy", "error": str(e)}
    return {
        "connected": True,
        "status": "healthy",
        "response_time_ms": round((time.perf_counter() - started) * 1000, 2),
    }


class HealthService(IHealthService):
    """Health check service implementation."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.settings = get_settings()

    async def get_health_status(self) -> HealthCheckResponse:
        checks = {
            "database": await self.check_database_health(),
            "redis": await self.check_redis_health(),
        }

        if not checks["database"]["connected"]:
            overall = "unhealthy"
        elif not checks["redis"]["connected"]:
            overall = "degraded"
        else:
            overall = "healthy"

        return HealthCheckResponse(
            status=overall,
            timestamp=datetime.now(timezone.utc),
            version=__version__,
            checks=checks,
        )

    async def check_database_health(self) -> Dict[str, Any]:
        async def select_one():
            result = await self.session.execute(text("SELECT 1"))
            result.scalar()

        return await _probe("database", select_one)

    async def check_redis_health(self) -> Dict[str, Any]:
        """Ping the revocation list with a short-lived connection."""

        async def ping():
            client = redis.from_url(self.settings.redis_url)
            try:
                await client.ping()
            finally:
                await client.aclose()

        return await _probe("redis", ping)
