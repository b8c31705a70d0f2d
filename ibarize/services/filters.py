import re
from typing import Iterable, List, Optional

from pydantic import BaseModel

_non_numeric = re.compile(r"[^\d.]")
_leading_number = re.compile(r"\d+(?:\.\d*)?|\.\d+")

class PropertyFilters(BaseModel):
    """Dashboard filter panel. Every field is a raw form string; "" means unset."""
    type: str = ""
    status: str = ""
    location: str = ""
    minPrice: str = ""
    maxPrice: str = ""
    bedrooms: str = ""
    bathrooms: str = ""
    featured: str = ""
    furnished: str = ""
    petFriendly: str = ""

class PublicSearch(BaseModel):
    """Hero search on the public site."""
    searchType: str = "buy"
    location: str = ""
    type: str = ""
    priceRange: str = ""

def parse_price(value) -> Optional[float]:
    """Strip currency text and separators ("RWF 180,000" -> 180000.0); None when nothing numeric is left.
    Only the leading number counts, so "1.2.3" reads as 1.2.
    """
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    number = _leading_number.match(_non_numeric.sub("", str(value or "")))
    return float(number.group()) if number else None

def _parse_int(value: str) -> Optional[int]:
    try:
        return int(value)
    except ValueError:
        return None

def _text(prop: dict, key: str) -> str:
    return str(prop.get(key) or "").lower()

def _matches_query(prop: dict, query: str) -> bool:
    q = query.lower()
    return any(q in _text(prop, key) for key in ("title", "location", "description", "type"))

def matches(prop: dict, query: str = "", filters: PropertyFilters | None = None) -> bool:
    filters = filters or PropertyFilters()
    if query and not _matches_query(prop, query):
        return False

    if filters.type and prop.get("type") != filters.type:
        return False
    if filters.status and prop.get("status") != filters.status:
        return False
    if filters.location and filters.location.lower() not in _text(prop, "location"):
        return False

    price = parse_price(prop.get("price"))
    if filters.minPrice:
        bound = parse_price(filters.minPrice)
        if bound is not None and price is not None and price < bound:
            return False
    if filters.maxPrice:
        bound = parse_price(filters.maxPrice)
        if bound is not None and price is not None and price > bound:
            return False

    for key in ("bedrooms", "bathrooms"):
        wanted = getattr(filters, key)
        if wanted:
            n = _parse_int(wanted)
            if n is not None and prop.get(key) != n:
                return False

    for key in ("featured", "furnished", "petFriendly"):
        wanted = getattr(filters, key)
        if wanted and bool(prop.get(key)) != (wanted == "true"):
            return False

    return True

def filter_properties(properties: Iterable[dict], query: str = "", filters: PropertyFilters | None = None) -> List[dict]:
    return [p for p in properties if matches(p, query, filters)]

def active_filter_count(query: str, filters: PropertyFilters) -> int:
    count = sum(1 for v in filters.model_dump().values() if v != "")
    return count + (1 if query else 0)

def _price_bounds(price_range: str):
    """"100000-500000" -> (100000, 500000); "500000+" -> (500000, None)."""
    if not price_range:
        return None, None
    if price_range.endswith("+"):
        return parse_price(price_range[:-1]), None
    low, _, high = price_range.partition("-")
    return parse_price(low), parse_price(high)

def search_public(properties: Iterable[dict], search: PublicSearch) -> List[dict]:
    low, high = _price_bounds(search.priceRange)
    results = []
    for p in properties:
        if search.location and search.location.lower() not in _text(p, "location"):
            continue
        if search.type and p.get("type") != search.type:
            continue
        price = parse_price(p.get("price"))
        if low is not None and price is not None and price < low:
            continue
        if high is not None and price is not None and price > high:
            continue
        results.append(p)
    return results
