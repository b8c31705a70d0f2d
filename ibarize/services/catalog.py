from datetime import datetime, timezone
from typing import List, Optional
from urllib.parse import quote

from pydantic import ValidationError
from structlog import get_logger

from ibarize.config import settings
from ibarize.schemas.dashboard import Toast
from ibarize.schemas.property import PropertyPayload, validate_for_submit
from ibarize.services.api import ApiError, ApiService
from ibarize.services.filters import PublicSearch, parse_price, search_public
from ibarize.services.storage import DraftStore

logger = get_logger()

DRAFT_NUMERIC_FIELDS = ("size", "bedrooms", "bathrooms", "parking", "floor")

SAMPLE_PROPERTY = {
    "id": "1",
    "title": "Luxury Apartment in City Center",
    "price": 180000.0,
    "location": "Kicukiro, Kigali",
    "bedrooms": 3,
    "bathrooms": 2,
    "size": 120.0,
    "type": "apartment",
    "description": "Beautiful luxury apartment with modern amenities and stunning city views.",
    "images": ["/api/placeholder/800/600"],
    "videos": [],
    "amenities": ["Air Conditioning", "WiFi", "Parking", "Security"],
    "featured": True,
    "status": "active",
    "virtualTour": "",
    "yearBuilt": 2023,
    "parking": 2,
    "floor": 5,
    "furnished": True,
    "petFriendly": False,
    "garden": False,
    "balcony": True,
    "securitySystem": True,
    "nearbyFacilities": ["School", "Shopping Mall", "Public Transport"],
}

def sample_property(property_id: str = "1") -> dict:
    return {**SAMPLE_PROPERTY, "id": property_id, "createdAt": datetime.now(timezone.utc).isoformat()}

async def load_properties(api: ApiService) -> List[dict]:
    try:
        return await api.get_properties()
    except ApiError as e:
        logger.warning("Falling back to sample listings", error=str(e))
        return [sample_property()]

async def load_property(api: ApiService, property_id: str) -> dict:
    try:
        return await api.get_property(property_id)
    except ApiError as e:
        logger.warning("Falling back to sample listing", property_id=property_id, error=str(e))
        return sample_property(property_id)

async def search(api: ApiService, criteria: PublicSearch) -> List[dict]:
    properties = await load_properties(api)
    return search_public(properties, criteria)

def contact_link(prop: Optional[dict] = None) -> str:
    base = f"https://wa.me/{settings.WHATSAPP_NUMBER}"
    if not prop:
        return base
    message = (
        f"Hi! I'm interested in this property: {prop.get('title')} "
        f"located at {prop.get('location')}. Price: {prop.get('price')}"
    )
    return f"{base}?text={quote(message, safe='')}"

def media_items(images: List[str], videos: List[str]) -> List[dict]:
    return [{"type": "image", "url": u} for u in images] + [{"type": "video", "url": u} for u in videos]

def draft_payload(form: dict) -> PropertyPayload:
    """Blank numeric inputs keep the form defaults; price accepts text such as "RWF 180,000"."""
    data = {k: v for k, v in form.items() if not (k in DRAFT_NUMERIC_FIELDS and v in ("", None))}
    data["price"] = parse_price(form.get("price")) or 0
    if form.get("yearBuilt") == "":
        data["yearBuilt"] = None
    return PropertyPayload.model_validate(data)

async def submit_draft(api: ApiService, drafts: DraftStore) -> tuple[Toast, Optional[List[dict]]]:
    """Create a listing from the saved draft. On success the draft is cleared and the fresh list returned."""
    form = await drafts.load() or {}
    if not form.get("title") or not form.get("price") or not form.get("location"):
        return Toast(
            title="Validation Error",
            description="Please fill in all required fields (title, price, location).",
            variant="destructive",
        ), None
    try:
        payload = draft_payload(form)
    except ValidationError as e:
        logger.info("Draft rejected", errors=e.errors())
        return Toast(title="Validation Error", description="Draft contains invalid values.", variant="destructive"), None
    problem = validate_for_submit(payload)
    if problem:
        return Toast(title="Validation Error", description=problem, variant="destructive"), None
    try:
        await api.create_property(payload.model_dump(mode="json"))
    except ApiError as e:
        logger.error("Failed to save property", error=str(e))
        return Toast(title="Error", description="Failed to save property. Please try again.", variant="destructive"), None
    await drafts.clear()
    properties = await load_properties(api)
    return Toast(title="Property Saved", description="Your property has been saved successfully!"), properties
