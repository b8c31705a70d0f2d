from fastapi import APIRouter, Depends, HTTPException, Request, Response
from fastapi_limiter import FastAPILimiter
from fastapi_limiter.depends import RateLimiter
from structlog import get_logger

from ibarize.config import settings
from ibarize.dependencies.services import get_session, reset_state
from ibarize.schemas.dashboard import ActionResult, LoginRequest, Toast
from ibarize.services.storage import SessionStore

logger = get_logger()
router = APIRouter(prefix="/auth", tags=["auth"])

_login_rate_limit = RateLimiter(times=5, seconds=60)

async def login_limiter(request: Request, response: Response):
    """Five attempts a minute per client. Skipped while the limiter has no Redis connection."""
    if FastAPILimiter.redis is None:
        return
    await _login_rate_limit(request, response)

@router.post("/login", response_model=ActionResult, dependencies=[Depends(login_limiter)])
async def login(credentials: LoginRequest, session: SessionStore = Depends(get_session)):
    """Demo broker login against the configured credential pair. Not real authentication."""
    if credentials.email == settings.DEMO_EMAIL and credentials.password == settings.DEMO_PASSWORD:
        await session.login("broker")
        logger.info("Broker logged in", email=credentials.email)
        return ActionResult(toast=Toast(title="Success", description="Login successful! Welcome to IBARIZE Dashboard."))
    logger.warning("Rejected login", email=credentials.email)
    raise HTTPException(
        status_code=401,
        detail=ActionResult(toast=Toast(
            title="Error",
            description=f"Invalid credentials. Use: {settings.DEMO_EMAIL} / {settings.DEMO_PASSWORD}",
            variant="destructive",
        )).model_dump(),
    )

@router.post("/logout")
async def logout(session: SessionStore = Depends(get_session)):
    await session.logout()
    reset_state()
    logger.info("Broker logged out")
    return {"redirect": "/login"}
