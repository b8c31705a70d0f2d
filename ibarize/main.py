from apscheduler.schedulers.asyncio import AsyncIOScheduler
from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi_limiter import FastAPILimiter
from structlog import get_logger

from ibarize.config import settings
from ibarize.dependencies.services import get_api
from ibarize.routers import auth, dashboard, media, public
from ibarize.services import storage
from ibarize.services.api import ApiService, api_service
from ibarize.services.health import get_health, refresh_health_cache

logger = get_logger()

app = FastAPI(title="IBARIZE Listing Portal")
app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

scheduler = AsyncIOScheduler()

async def update_health_cache():
    try:
        await refresh_health_cache(api_service)
    except Exception as e:
        logger.warning("Health cache refresh failed", error=str(e))

@app.on_event("startup")
async def startup_event():
    redis = await storage.get_redis_client()
    # Running without rate limiter when Redis is unreachable
    try:
        await FastAPILimiter.init(redis)
    except Exception as e:
        FastAPILimiter.redis = None
        logger.warning("Rate limiter disabled", error=str(e))
    await update_health_cache()
    scheduler.add_job(update_health_cache, "interval", minutes=5)
    scheduler.start()

@app.on_event("shutdown")
async def shutdown_event():
    scheduler.shutdown()
    if storage.redis_client is not None:
        await storage.redis_client.aclose()
        storage.redis_client = None

app.include_router(auth.router)
app.include_router(public.router)
app.include_router(dashboard.router)
app.include_router(media.router)

@app.get("/health")
async def root_health():
    return "ok"

@app.get("/api/v1/health", tags=["health"])
async def backend_health(fresh: bool = False, api: ApiService = Depends(get_api)):
    """Backend reachability, served from the Redis cache unless fresh=true."""
    return await get_health(api, fresh=fresh)
