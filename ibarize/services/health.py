import json

from structlog import get_logger

from ibarize.config import settings
from ibarize.services.api import ApiError, ApiService
from ibarize.services.storage import get_redis_client

logger = get_logger()

HEALTH_CACHE_KEY = "cached_health_status"

async def check_backend(api: ApiService) -> dict:
    try:
        data = await api.health_check()
        return {"status": "ok", "data": data}
    except ApiError as e:
        return {"status": "error", "status_code": e.status_code, "error": str(e)}

async def refresh_health_cache(api: ApiService) -> dict:
    redis = await get_redis_client()
    health = {"backend": await check_backend(api)}
    await redis.setex(HEALTH_CACHE_KEY, settings.HEALTH_CACHE_SECONDS, json.dumps(health))
    return health

async def get_health(api: ApiService, fresh: bool = False) -> dict:
    redis = await get_redis_client()
    if not fresh:
        cached = await redis.get(HEALTH_CACHE_KEY)
        if cached:
            logger.info("Returning cached health status")
            return json.loads(cached)
    health = await refresh_health_cache(api)
    logger.info("Fetched backend health", status=health["backend"]["status"])
    return health
