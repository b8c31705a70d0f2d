from fastapi import Depends, HTTPException
from structlog import get_logger

from ibarize.dependencies.services import get_session
from ibarize.services.storage import SessionStore

logger = get_logger()

async def require_broker(session: SessionStore = Depends(get_session)) -> str:
    """Demo gate for dashboard routes: the session flag set by the hard-coded login, nothing more."""
    if not await session.is_authenticated():
        logger.info("Dashboard access without session")
        raise HTTPException(status_code=401, detail="Login required")
    return await session.role() or "broker"
