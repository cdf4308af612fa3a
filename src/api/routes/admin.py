"""
Admin / observability endpoints
===============================

GET /api/v1/admin/health -- liveness plus a Redis ping for the session store
"""

from fastapi import APIRouter, Request
from redis.exceptions import RedisError

from src.api.middleware import limiter
from src.api.schemas import HealthResponse
from src.config import settings
from src.infrastructure.redis_client import get_redis

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/health", response_model=HealthResponse, summary="Health check")
@limiter.limit(settings.rate_limit)
async def health(request: Request):
    try:
        redis = await get_redis()
        await redis.ping()
    except (RedisError, OSError):
        return HealthResponse(status="degraded")
    return HealthResponse()
