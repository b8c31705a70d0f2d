from typing import List, Literal

from pydantic import BaseModel, field_validator

MediaKind = Literal["images", "videos"]

class UploadedFile(BaseModel):
    id: str
    filename: str
    url: str
    mimetype: str
    size: int
    uploadedAt: str

    @field_validator("id", mode="before")
    @classmethod
    def id_as_text(cls, value):
        return str(value)

class UploadResponse(BaseModel):
    files: List[UploadedFile]

class ExistingFile(BaseModel):
    url: str
    filename: str
    type: str

class MediaState(BaseModel):
    property_id: str
    title: str
    images: List[ExistingFile]
    videos: List[ExistingFile]
