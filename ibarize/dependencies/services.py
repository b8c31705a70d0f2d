from typing import Dict

from fastapi import Depends

from ibarize.services.api import ApiService, api_service
from ibarize.services.dashboard import DashboardService
from ibarize.services.media import MediaManager
from ibarize.services.storage import DraftStore, FavoritesStore, LocalStore, SessionStore, get_local_store

_dashboard: DashboardService | None = None
_media_managers: Dict[str, MediaManager] = {}

def get_api() -> ApiService:
    return api_service

async def get_store() -> LocalStore:
    return await get_local_store()

def get_favorites(store: LocalStore = Depends(get_store)) -> FavoritesStore:
    return FavoritesStore(store)

def get_drafts(store: LocalStore = Depends(get_store)) -> DraftStore:
    return DraftStore(store)

def get_session(store: LocalStore = Depends(get_store)) -> SessionStore:
    return SessionStore(store)

def get_dashboard(api: ApiService = Depends(get_api)) -> DashboardService:
    global _dashboard
    if _dashboard is None:
        _dashboard = DashboardService(api)
    _dashboard.api = api
    return _dashboard

def get_media_manager(property_id: str, api: ApiService = Depends(get_api)) -> MediaManager:
    manager = _media_managers.get(property_id)
    if manager is None:
        manager = _media_managers[property_id] = MediaManager(api)
    manager.api = api
    return manager

def reset_state():
    """Drop the in-memory dashboard and media sessions (logout, tests)."""
    global _dashboard
    _dashboard = None
    _media_managers.clear()
