from typing import List, Optional

from structlog import get_logger

from ibarize.config import settings
from ibarize.core.urls import media_url
from ibarize.schemas.dashboard import ActionResult, Toast
from ibarize.schemas.media import ExistingFile, MediaKind, MediaState
from ibarize.services.api import ApiError, ApiService
from ibarize.services.uploads import LocalFile, UploadZone

logger = get_logger()

class MediaManager:
    """Attach images and videos to an existing property.

    Uploaded URLs are staged locally; nothing reaches the property record until save().
    """

    def __init__(self, api: ApiService, max_size_mb: int | None = None):
        self.api = api
        self.property: Optional[dict] = None
        self.images: List[str] = []
        self.videos: List[str] = []
        self.zone = UploadZone(max_size_mb=max_size_mb or settings.MAX_UPLOAD_SIZE_MB)

    async def open(self, property_id: str) -> ActionResult:
        try:
            prop = await self.api.get_property(property_id)
        except ApiError as e:
            logger.error("Media manager load failed", property_id=property_id, error=str(e))
            return ActionResult(toast=Toast(title="Error", description="Failed to load property", variant="destructive"))
        self.property = prop
        self.images = list(prop.get("images") or []) if isinstance(prop.get("images"), list) else []
        self.videos = list(prop.get("videos") or []) if isinstance(prop.get("videos"), list) else []
        return ActionResult(data=self.state())

    def existing_files(self, kind: MediaKind) -> List[ExistingFile]:
        urls = self.images if kind == "images" else self.videos
        fallback = "image" if kind == "images" else "video"
        return [
            ExistingFile(url=media_url(u), filename=u.rstrip("/").split("/")[-1] or fallback, type=fallback)
            for u in urls
        ]

    def state(self) -> MediaState:
        return MediaState(
            property_id=str((self.property or {}).get("id", "")),
            title=(self.property or {}).get("title", ""),
            images=self.existing_files("images"),
            videos=self.existing_files("videos"),
        )

    async def upload(self, files: List[LocalFile], kind: MediaKind) -> ActionResult:
        async def direct_upload(valid: List[LocalFile]) -> ActionResult:
            self.zone.start()
            try:
                res = await self.api.upload_files(valid, on_progress=self.zone.set_progress)
            except ApiError as e:
                logger.error("Media upload failed", kind=kind, error=str(e))
                return ActionResult(toast=Toast(title="Upload failed", description="Please try again.", variant="destructive"))
            finally:
                self.zone.finish()
            urls = [f["url"] for f in res.get("files", [])]
            if kind == "images":
                self.images = [*self.images, *urls]
            else:
                self.videos = [*self.videos, *urls]
            logger.info("Staged uploaded media", kind=kind, count=len(urls))
            return ActionResult(
                toast=Toast(title="Upload successful", description=f"{len(valid)} file(s) uploaded."),
                data=self.state(),
            )

        self.zone.on_direct_upload = direct_upload
        pending = self.zone.handle_files(files)
        if pending is None:
            return ActionResult(toast=Toast(
                title="Upload rejected",
                description=self.zone.error or "Upload already in progress.",
                variant="destructive",
            ))
        return await pending

    def remove(self, index: int, kind: MediaKind) -> MediaState:
        if kind == "images":
            self.images = [u for i, u in enumerate(self.images) if i != index]
        else:
            self.videos = [u for i, u in enumerate(self.videos) if i != index]
        return self.state()

    async def save(self) -> ActionResult:
        if self.property is None:
            return ActionResult(toast=Toast(title="Save failed", description="No property loaded.", variant="destructive"))
        record = {k: v for k, v in self.property.items() if k not in ("id", "createdAt")}
        record.update(images=self.images, videos=self.videos, yearBuilt=self.property.get("yearBuilt"))
        try:
            await self.api.update_property(str(self.property["id"]), record)
        except ApiError as e:
            logger.error("Media save failed", property_id=self.property.get("id"), error=str(e))
            return ActionResult(toast=Toast(title="Save failed", description="Unable to save media changes.", variant="destructive"))
        self.property = {**self.property, "images": self.images, "videos": self.videos}
        return ActionResult(toast=Toast(title="Saved", description="Media updated for property."), data=self.state())
