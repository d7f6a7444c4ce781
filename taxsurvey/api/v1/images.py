#taxsurvey/api/v1/images.py
from __future__ import annotations

import logging
import uuid

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import Response
from sqlalchemy.orm import Session

from taxsurvey.core.auth_deps import get_current_principal
from taxsurvey.core.deps import get_asset_store
from taxsurvey.db.session import get_db
from taxsurvey.policies.rbac import Principal
from taxsurvey.schemas.images import (
    ImageListResponse,
    ImageResponse,
    ImageUploadResponse,
    ImageUrlResponse,
)
from taxsurvey.services.asset_store import AssetStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/images")


@router.post("/upload", response_model=ImageUploadResponse, status_code=201)
def upload_image(
    propertyId: str = Form(..., min_length=1, max_length=100),
    imageType: str = Form(...),
    image: UploadFile = File(...),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
    store: AssetStore = Depends(get_asset_store),
):
    content = image.file.read()
    logger.info(
        "[images] upload property=%s type=%s file=%s bytes=%d",
        propertyId, imageType, image.filename, len(content),
    )

    result = store.upload(
        db,
        property_id=propertyId,
        image_type=imageType,
        content=content,
        file_name=image.filename or "",
        uploader=principal,
        content_type=image.content_type,
    )
    return {
        "image": ImageResponse.model_validate(result.record),
        "cleanup": result.cleanup.value,
    }


@router.get("/property/{property_id}", response_model=ImageListResponse)
def list_property_images(
    property_id: str,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
    store: AssetStore = Depends(get_asset_store),
):
    store.check_access(db, principal, property_id, None)
    rows = store.list_for_property(db, property_id)
    return {
        "property_id": property_id,
        "images": [ImageResponse.model_validate(r) for r in rows],
    }


@router.get("/{image_id}/url", response_model=ImageUrlResponse)
def image_url(
    image_id: uuid.UUID,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
    store: AssetStore = Depends(get_asset_store),
):
    row = store.get(db, image_id)
    store.check_access(db, principal, row.property_id, row.uploaded_by)
    return {
        "id": str(row.id),
        "url": row.remote_url,
        "file_name": row.file_name,
        "mime_type": row.mime_type,
    }


@router.get("/{image_id}")
def get_image(
    image_id: uuid.UUID,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
    store: AssetStore = Depends(get_asset_store),
):
    row = store.get(db, image_id)
    store.check_access(db, principal, row.property_id, row.uploaded_by)

    fetched = store.fetch(db, image_id)
    return Response(
        content=fetched.content,
        media_type=fetched.record.mime_type,
        headers={
            "Cache-Control": "private, max-age=3600",
        },
    )


@router.delete("/{image_id}")
def delete_image(
    image_id: uuid.UUID,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
    store: AssetStore = Depends(get_asset_store),
):
    result = store.delete(db, image_id, principal)
    return {
        "status": "deleted",
        "id": str(image_id),
        "remoteMissing": result.missing,
    }
