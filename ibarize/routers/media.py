from typing import List

from fastapi import APIRouter, Depends, File, UploadFile
from structlog import get_logger

from ibarize.config import settings
from ibarize.dependencies.auth import require_broker
from ibarize.dependencies.services import get_api, get_media_manager
from ibarize.routers.common import action_response
from ibarize.schemas.dashboard import ActionResult, Toast
from ibarize.schemas.media import MediaKind, MediaState
from ibarize.services.api import ApiError, ApiService
from ibarize.services.media import MediaManager
from ibarize.services.uploads import MB, LocalFile, UploadForm

logger = get_logger()
router = APIRouter(prefix="/api/v1/media", tags=["media"], dependencies=[Depends(require_broker)])

async def _read(files: List[UploadFile]) -> List[LocalFile]:
    return [
        LocalFile(
            name=f.filename or "upload",
            content=await f.read(),
            content_type=f.content_type or "application/octet-stream",
        )
        for f in files
    ]

@router.get("/files")
async def list_files(page: int = 1, limit: int = 12, api: ApiService = Depends(get_api)):
    try:
        data = await api.get_files(page=page, limit=limit)
    except ApiError as e:
        logger.error("Error fetching media files", error=str(e))
        return action_response(ActionResult(toast=Toast(title="Error", description="Failed to load files", variant="destructive")))
    logger.info("Fetched media files", page=page)
    return data

@router.post("/upload", response_model=ActionResult)
async def upload_form(files: List[UploadFile] = File(...), api: ApiService = Depends(get_api)):
    """Gallery upload path: MIME type and size gate, then a single multipart POST."""
    form = UploadForm(max_file_size=settings.MAX_UPLOAD_SIZE_MB * MB)
    if not form.select(await _read(files)):
        return action_response(ActionResult(toast=Toast(title="Validation Error", description=form.error, variant="destructive")))
    uploaded = await form.upload(api)
    if form.error:
        return action_response(ActionResult(toast=Toast(title="Upload failed", description=form.error, variant="destructive")))
    return ActionResult(toast=Toast(title="Upload successful", description=f"{len(uploaded)} file(s) uploaded."), data=uploaded)

@router.get("/{property_id}", response_model=MediaState)
async def open_media(property_id: str, manager: MediaManager = Depends(get_media_manager)):
    return action_response(await manager.open(property_id)).data

@router.post("/{property_id}/{kind}", response_model=ActionResult)
async def upload_media(
    property_id: str,
    kind: MediaKind,
    files: List[UploadFile] = File(...),
    manager: MediaManager = Depends(get_media_manager),
):
    if manager.property is None:
        action_response(await manager.open(property_id))
    result = await manager.upload(await _read(files), kind)
    return action_response(result)

@router.delete("/{property_id}/{kind}/{index}", response_model=MediaState)
async def remove_media(property_id: str, kind: MediaKind, index: int, manager: MediaManager = Depends(get_media_manager)):
    if manager.property is None:
        action_response(await manager.open(property_id))
    return manager.remove(index, kind)

@router.put("/{property_id}", response_model=ActionResult)
async def save_media(property_id: str, manager: MediaManager = Depends(get_media_manager)):
    if manager.property is None:
        action_response(await manager.open(property_id))
    return action_response(await manager.save())
