from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from structlog import get_logger

from ibarize.dependencies.services import get_api, get_drafts, get_favorites
from ibarize.routers.common import action_response
from ibarize.schemas.dashboard import ActionResult, Toast
from ibarize.schemas.property import PropertyListResponse
from ibarize.services import catalog
from ibarize.services.api import ApiService
from ibarize.services.filters import PublicSearch
from ibarize.services.storage import DraftStore, FavoritesStore

logger = get_logger()
router = APIRouter(prefix="/api/v1", tags=["public"])

class DraftField(BaseModel):
    field: str
    value: Any = None

@router.get("/listings", response_model=PropertyListResponse)
async def list_listings(criteria: PublicSearch = Depends(), api: ApiService = Depends(get_api)):
    """Public listing page. Falls back to sample data when the backend is unreachable."""
    items = await catalog.search(api, criteria)
    logger.info("Fetched public listings", total=len(items), search_type=criteria.searchType)
    return {"total": len(items), "items": items}

@router.get("/listings/{property_id}")
async def get_listing(
    property_id: str,
    api: ApiService = Depends(get_api),
    favorites: FavoritesStore = Depends(get_favorites),
):
    prop = await catalog.load_property(api, property_id)
    logger.info("Fetched public listing", property_id=property_id)
    return {
        "property": prop,
        "favorite": await favorites.contains(property_id),
        "contact": catalog.contact_link(prop),
        "media": catalog.media_items(prop.get("images") or [], prop.get("videos") or []),
    }

@router.get("/contact")
async def contact():
    return {"url": catalog.contact_link()}

@router.get("/favorites")
async def list_favorites(favorites: FavoritesStore = Depends(get_favorites)):
    return {"favorites": await favorites.get()}

@router.post("/favorites/{property_id}/toggle")
async def toggle_favorite(property_id: str, favorites: FavoritesStore = Depends(get_favorites)):
    updated = await favorites.toggle(property_id)
    return {"favorites": updated, "favorite": property_id in updated}

@router.get("/draft")
async def get_draft(drafts: DraftStore = Depends(get_drafts)):
    return {"draft": await drafts.load()}

@router.put("/draft")
async def save_draft(form: dict, drafts: DraftStore = Depends(get_drafts)):
    await drafts.save(form)
    return {"draft": form}

@router.patch("/draft")
async def update_draft_field(change: DraftField, drafts: DraftStore = Depends(get_drafts)):
    return {"draft": await drafts.update_field(change.field, change.value)}

@router.delete("/draft", response_model=ActionResult)
async def clear_draft(drafts: DraftStore = Depends(get_drafts)):
    await drafts.clear()
    return ActionResult(toast=Toast(title="Draft Cleared", description="Property draft has been cleared."))

@router.post("/draft/submit", response_model=ActionResult)
async def submit_draft(api: ApiService = Depends(get_api), drafts: DraftStore = Depends(get_drafts)):
    toast, properties = await catalog.submit_draft(api, drafts)
    return action_response(ActionResult(toast=toast, data=properties))
