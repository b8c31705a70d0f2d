from datetime import datetime
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field

class PropertyStatus(str, Enum):
    active = "active"
    pending = "pending"
    sold = "sold"

class PropertyPayload(BaseModel):
    """Create/update body sent to the listing backend. Defaults mirror the blank broker form."""
    model_config = ConfigDict(extra="allow", use_enum_values=True)

    title: str = ""
    price: float = 0
    location: str = ""
    bedrooms: int = 1
    bathrooms: int = 1
    size: float = 0
    type: str = "apartment"
    description: str = ""
    images: List[str] = Field(default_factory=list)
    videos: List[str] = Field(default_factory=list)
    amenities: List[str] = Field(default_factory=list)
    featured: bool = False
    status: PropertyStatus = PropertyStatus.active
    virtualTour: Optional[str] = ""
    yearBuilt: Optional[int] = Field(default_factory=lambda: datetime.now().year)
    parking: int = 0
    floor: int = 1
    furnished: bool = False
    petFriendly: bool = False
    garden: bool = False
    balcony: bool = False
    securitySystem: bool = False
    nearbyFacilities: List[str] = Field(default_factory=list)

class Property(PropertyPayload):
    id: str
    status: str = PropertyStatus.active.value
    createdAt: Optional[str] = None

class PropertyListResponse(BaseModel):
    total: int
    items: List[Property]

class CreatedResponse(BaseModel):
    id: str
    message: str = ""

def _as_float(value: Any) -> float:
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return 0.0
    return float(value or 0)

def _as_int(value: Any) -> int:
    if isinstance(value, str):
        try:
            return int(float(value))
        except ValueError:
            return 0
    return int(value or 0)

def normalize_property(raw: dict) -> dict:
    """Coerce numeric fields the backend may send as strings. Other keys pass through untouched."""
    if not isinstance(raw, dict):
        return raw
    p = dict(raw)
    p["price"] = _as_float(p.get("price"))
    p["size"] = _as_float(p.get("size"))
    for key in ("bedrooms", "bathrooms", "parking", "floor"):
        p[key] = _as_int(p.get(key))
    year = p.get("yearBuilt")
    p["yearBuilt"] = None if year is None or year == "" else _as_int(year)
    for key in ("images", "videos", "amenities", "nearbyFacilities"):
        if key in p and not isinstance(p[key], list):
            p[key] = []
    if p.get("id") is not None:
        p["id"] = str(p["id"])
    return p

def validate_for_submit(payload: PropertyPayload) -> str | None:
    if not payload.title.strip():
        return "Property title is required."
    if not payload.location.strip():
        return "Property location is required."
    if payload.price <= 0:
        return "Please enter a valid price greater than 0."
    return None
