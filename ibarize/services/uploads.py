import math
import os
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple

import httpx
from structlog import get_logger

logger = get_logger()

MB = 1024 * 1024
IMAGE_EXTENSIONS = {"jpg", "jpeg", "png", "gif", "webp"}
VIDEO_EXTENSIONS = {"mp4", "avi", "mov", "wmv"}
ALLOWED_TYPES = (
    "image/jpeg",
    "image/png",
    "image/gif",
    "video/mp4",
    "video/avi",
    "video/mov",
    "video/wmv",
)

@dataclass
class LocalFile:
    name: str
    content: bytes
    content_type: str = "application/octet-stream"

    @property
    def size(self) -> int:
        return len(self.content)

def validate_files(files: List[LocalFile], max_size_mb: int = 50) -> Tuple[List[LocalFile], List[str]]:
    valid, errors = [], []
    max_size_bytes = max_size_mb * MB
    for f in files:
        if f.size > max_size_bytes:
            errors.append(f"{f.name} is too large (max {max_size_mb}MB)")
        else:
            valid.append(f)
    return valid, errors

def file_kind(filename: str) -> str:
    ext = os.path.splitext(filename)[1].lstrip(".").lower()
    if ext in IMAGE_EXTENSIONS:
        return "image"
    if ext in VIDEO_EXTENSIONS:
        return "video"
    return "document"

def format_file_size(size: int) -> str:
    if size == 0:
        return "0 Bytes"
    units = ["Bytes", "KB", "MB", "GB"]
    i = 0
    while i < len(units) - 1 and size >= 1024 ** (i + 1):
        i += 1
    value = round(size / 1024 ** i, 2)
    # 1.50 -> 1.5, 2.00 -> 2
    return f"{value:g} {units[i]}"

def form_payload(files: List[LocalFile]) -> list:
    """Form-encoded shape of a selection: one ("files", file) pair per file."""
    return [("files", (f.name, f.content, f.content_type)) for f in files]

class ProgressStream(httpx.AsyncByteStream):
    """Wraps a request body and reports whole upload percentages as chunks go out."""

    def __init__(self, stream, total: int, on_progress: Callable[[int], None]):
        self._stream = stream
        self._total = total
        self._sent = 0
        self._on_progress = on_progress

    async def __aiter__(self):
        async for chunk in self._stream:
            self._sent += len(chunk)
            if self._total > 0:
                self._on_progress(math.floor(self._sent / self._total * 100 + 0.5))
            yield chunk

    async def aclose(self):
        close = getattr(self._stream, "aclose", None)
        if close is not None:
            await close()

@dataclass
class UploadZone:
    """Drop/select target that validates a batch and hands it on.

    Valid batches go to on_direct_upload when it is wired; otherwise they are re-packed
    as a form payload for on_files_change. A batch with any oversized file is dropped whole.
    """
    max_size_mb: int = 50
    on_direct_upload: Optional[Callable[[List[LocalFile]], object]] = None
    on_files_change: Optional[Callable[[list], object]] = None
    error: Optional[str] = None
    is_uploading: bool = False
    upload_progress: int = 0

    def handle_files(self, files: List[LocalFile]):
        if self.is_uploading:
            return None
        valid, errors = validate_files(list(files), self.max_size_mb)
        if errors:
            self.error = ", ".join(errors)
            logger.info("Upload batch rejected", errors=errors)
            return None
        self.error = None
        if self.on_direct_upload is not None:
            return self.on_direct_upload(valid)
        if self.on_files_change is not None:
            return self.on_files_change(form_payload(valid))
        return None

    def set_progress(self, progress: int):
        self.upload_progress = progress

    def start(self):
        self.is_uploading = True
        self.upload_progress = 0

    def finish(self):
        self.is_uploading = False
        self.upload_progress = 0

@dataclass
class UploadForm:
    """Standalone gallery uploader: type and size gate, then a plain multipart POST."""
    max_file_size: int = 50 * MB
    allowed_types: Tuple[str, ...] = ALLOWED_TYPES
    selected: List[LocalFile] = field(default_factory=list)
    error: Optional[str] = None

    def select(self, files: List[LocalFile]) -> bool:
        valid = []
        for f in files:
            if f.content_type not in self.allowed_types:
                self.error = "Only images and videos are allowed."
                return False
            if f.size > self.max_file_size:
                self.error = "File size must be less than 50MB."
                return False
            valid.append(f)
        self.error = None
        self.selected = valid
        return True

    async def upload(self, api) -> list:
        if not self.selected:
            self.error = "Please select files to upload."
            return []
        try:
            data = await api.upload_files(self.selected)
        except Exception as e:
            logger.warning("Gallery upload failed", error=str(e))
            self.error = "Upload failed. Please try again."
            return []
        self.selected = []
        self.error = None
        return data.get("files", [])
