import re

from ibarize.config import settings

_absolute = re.compile(r"^https?://", re.IGNORECASE)

def _with_slash(path: str) -> str:
    return path if path.startswith("/") else f"/{path}"

def api_path(path: str) -> str:
    return f"{settings.API_BASE_URL.rstrip('/')}{_with_slash(path)}"

def media_url(url_or_path: str | None) -> str:
    """Resolve a stored media reference against the backend.
    Absolute http(s) URLs are returned as-is; relative paths get the backend URL prefixed.
    """
    if not url_or_path:
        return ""
    if _absolute.match(url_or_path):
        return url_or_path
    return f"{settings.BACKEND_URL.rstrip('/')}{_with_slash(url_or_path)}"
