import json
from typing import Any, List, Optional

from redis.asyncio import Redis
from structlog import get_logger

from ibarize.config import settings
from ibarize.schemas.property import PropertyPayload

logger = get_logger()

FAVORITES_KEY = "favorites"
DRAFT_KEY = "propertyDraft"
AUTH_KEY = "isAuthenticated"
ROLE_KEY = "userRole"

# Initialize Redis client globally for reuse
redis_client: Redis | None = None

async def get_redis_client() -> Redis:
    global redis_client
    if redis_client is None:
        redis_client = Redis.from_url(settings.REDIS_URL, decode_responses=True)
    return redis_client

class LocalStore:
    """JSON values under fixed keys, the server-side twin of browser local storage."""

    def __init__(self, redis):
        self.redis = redis

    async def get_json(self, key: str) -> Any:
        raw = await self.redis.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning("Discarding unreadable stored value", key=key)
            return None

    async def set_json(self, key: str, value: Any):
        await self.redis.set(key, json.dumps(value))

    async def get_raw(self, key: str) -> Optional[str]:
        return await self.redis.get(key)

    async def set_raw(self, key: str, value: str):
        await self.redis.set(key, value)

    async def remove(self, *keys: str):
        await self.redis.delete(*keys)

class FavoritesStore:
    def __init__(self, store: LocalStore):
        self.store = store

    async def get(self) -> List[str]:
        saved = await self.store.get_json(FAVORITES_KEY)
        return [str(i) for i in saved] if isinstance(saved, list) else []

    async def contains(self, property_id: str) -> bool:
        return str(property_id) in await self.get()

    async def toggle(self, property_id: str) -> List[str]:
        pid = str(property_id)
        favorites = await self.get()
        if pid in favorites:
            favorites = [f for f in favorites if f != pid]
        else:
            favorites = [*favorites, pid]
        await self.store.set_json(FAVORITES_KEY, favorites)
        logger.info("Toggled favorite", property_id=pid, favorite=pid in favorites)
        return favorites

class DraftStore:
    """In-progress property form. Every change is written through; reset removes it."""

    def __init__(self, store: LocalStore):
        self.store = store

    async def load(self) -> Optional[dict]:
        draft = await self.store.get_json(DRAFT_KEY)
        return draft if isinstance(draft, dict) else None

    async def save(self, form: dict):
        await self.store.set_json(DRAFT_KEY, form)

    async def update_field(self, field: str, value: Any) -> dict:
        form = await self.load() or PropertyPayload().model_dump(mode="json")
        form[field] = value
        await self.save(form)
        return form

    async def clear(self):
        await self.store.remove(DRAFT_KEY)
        logger.info("Cleared property draft")

class SessionStore:
    """Demo-only broker session flags."""

    def __init__(self, store: LocalStore):
        self.store = store

    async def login(self, role: str = "broker"):
        await self.store.set_raw(AUTH_KEY, "true")
        await self.store.set_raw(ROLE_KEY, role)

    async def logout(self):
        await self.store.remove(AUTH_KEY, ROLE_KEY)

    async def is_authenticated(self) -> bool:
        return await self.store.get_raw(AUTH_KEY) == "true"

    async def role(self) -> Optional[str]:
        return await self.store.get_raw(ROLE_KEY)

async def get_local_store() -> LocalStore:
    return LocalStore(await get_redis_client())
