from typing import Any, Callable, Iterable, Optional

import httpx
from httpx import AsyncClient
from structlog import get_logger

from ibarize.config import settings
from ibarize.core.urls import api_path
from ibarize.schemas.media import UploadResponse
from ibarize.schemas.property import CreatedResponse, normalize_property
from ibarize.services.uploads import LocalFile, ProgressStream

logger = get_logger()

class ApiError(Exception):
    """Failure talking to the listing backend. status_code is None for transport errors."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code

class ApiService:
    """Single client for the external listing backend.

    A client is opened per call the same way the proxy routers do it. Tests pass an
    httpx transport to keep everything in-process.
    """

    def __init__(self, transport: httpx.AsyncBaseTransport | None = None, timeout: float | None = None):
        self._transport = transport
        self._timeout = timeout if timeout is not None else settings.HTTP_TIMEOUT

    def _client(self) -> AsyncClient:
        return AsyncClient(timeout=self._timeout, transport=self._transport)

    async def _request(self, path: str, method: str = "GET", json: Any = None, params: dict | None = None):
        url = api_path(path)
        try:
            async with self._client() as client:
                resp = await client.request(
                    method,
                    url,
                    json=json,
                    params=params,
                    headers={"Content-Type": "application/json"},
                )
            if not resp.is_success:
                raise ApiError(f"HTTP error! status: {resp.status_code}", resp.status_code)
            try:
                return resp.json()
            except ValueError as e:
                raise ApiError("Invalid JSON response", resp.status_code) from e
        except ApiError as e:
            logger.error("API request failed", method=method, url=url, status_code=e.status_code, error=str(e))
            raise
        except httpx.HTTPError as e:
            logger.error("API request failed", method=method, url=url, error=str(e))
            raise ApiError(f"Network error: {e}") from e

    # Properties
    async def get_properties(self) -> list[dict]:
        data = await self._request("/api/properties")
        return [normalize_property(p) for p in (data or [])]

    async def get_property(self, property_id: str) -> dict:
        data = await self._request(f"/api/properties/{property_id}")
        return normalize_property(data)

    async def create_property(self, property_data: dict) -> dict:
        url = api_path("/api/properties")
        logger.info(
            "Creating property",
            title=property_data.get("title"),
            images=property_data.get("images"),
            videos=property_data.get("videos"),
        )
        try:
            async with self._client() as client:
                resp = await client.post(url, json=property_data, headers={"Content-Type": "application/json"})
        except httpx.HTTPError as e:
            logger.error("Property creation failed", url=url, error=str(e))
            raise ApiError(f"Network error: {e}") from e
        if not resp.is_success:
            try:
                err = resp.json()
            except ValueError:
                err = {"detail": resp.text or "Upstream error"}
            logger.error("Property creation failed", status_code=resp.status_code, error=err)
            raise ApiError(f"Failed to create property: {resp.status_code}", resp.status_code)
        try:
            result = resp.json()
        except ValueError as e:
            logger.error("Property creation returned invalid JSON", status_code=resp.status_code)
            raise ApiError("Invalid JSON response", resp.status_code) from e
        if not isinstance(result, dict) or result.get("id") is None:
            logger.error("Property creation returned no id", status_code=resp.status_code, body=result)
            raise ApiError("Invalid create response: missing id", resp.status_code)
        created = CreatedResponse(id=str(result["id"]), message=str(result.get("message") or ""))
        logger.info("Property created", id=created.id)
        return created.model_dump()

    async def update_property(self, property_id: str, property_data: dict) -> dict:
        return await self._request(f"/api/properties/{property_id}", method="PUT", json=property_data)

    async def delete_property(self, property_id: str) -> dict:
        return await self._request(f"/api/properties/{property_id}", method="DELETE")

    # Files
    async def upload_files(
        self,
        files: Iterable[LocalFile],
        on_progress: Optional[Callable[[int], None]] = None,
    ) -> dict:
        """Multipart POST of every file under the `files` field.
        on_progress receives whole percentages while the body is streamed.
        """
        url = api_path("/api/upload")
        payload = [("files", (f.name, f.content, f.content_type)) for f in files]
        try:
            async with self._client() as client:
                request = client.build_request("POST", url, files=payload)
                if on_progress is not None:
                    total = int(request.headers.get("Content-Length") or 0)
                    request.stream = ProgressStream(request.stream, total, on_progress)
                resp = await client.send(request)
        except httpx.HTTPError as e:
            logger.error("Upload transport error", url=url, error=str(e))
            raise ApiError("Network error during upload") from e
        if not 200 <= resp.status_code < 300:
            logger.warning("Upload rejected", url=url, status_code=resp.status_code)
            raise ApiError(f"Upload failed: {resp.status_code}", resp.status_code)
        try:
            data = UploadResponse.model_validate(resp.json())
        except ValueError as e:
            logger.error("Upload returned an unexpected body", url=url, error=str(e))
            raise ApiError("Invalid JSON response", resp.status_code) from e
        logger.info("Uploaded files", count=len(data.files))
        return data.model_dump()

    async def get_files(self, page: int = 1, limit: int = 12) -> dict:
        return await self._request("/api/files", params={"page": page, "limit": limit})

    # User
    async def get_user(self) -> dict:
        return await self._request("/api/user")

    async def update_user(self, user: dict) -> dict:
        return await self._request("/api/user", method="PUT", json=user)

    async def get_analytics(self) -> dict:
        return await self._request("/api/analytics")

    async def update_settings(self, settings_data: dict) -> dict:
        return await self._request("/api/settings", method="PUT", json=settings_data)

    async def health_check(self) -> dict:
        return await self._request("/api/health")

api_service = ApiService()
