#taxsurvey/schemas/images.py
from __future__ import annotations

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, field_validator


class ImageResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    property_id: str
    image_type: str
    file_name: str
    file_size: int
    mime_type: str
    uploaded_by: Optional[str] = None
    uploaded_at: Optional[datetime] = None

    @field_validator("id", mode="before")
    @classmethod
    def _id_str(cls, v: Any) -> str:
        return str(v)


class ImageUploadResponse(BaseModel):
    image: ImageResponse
    cleanup: str


class ImageListResponse(BaseModel):
    property_id: str
    images: List[ImageResponse]


class ImageUrlResponse(BaseModel):
    id: str
    url: str
    file_name: str
    mime_type: str
