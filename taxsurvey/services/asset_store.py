# taxsurvey/services/asset_store.py
from __future__ import annotations

import logging
import os
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from taxsurvey.core.config import AssetStoreConfig
from taxsurvey.core.errors import (
    AccessDenied,
    AssetNotFound,
    AssetSlotConflict,
    InvalidAsset,
    RemoteError,
    UploadFailed,
)
from taxsurvey.models.enums import ImageType
from taxsurvey.models.property_image import PropertyImage
from taxsurvey.policies.rbac import Principal
from taxsurvey.services.asset_repository import AssetRepositoryClient, DeleteResult
from taxsurvey.services.audit_service import AuditAction, AuditService

logger = logging.getLogger(__name__)

# (db, principal, property_id, uploaded_by) -> allowed
AccessCheck = Callable[[Session, Principal, str, Optional[str]], bool]

EXTENSION_MIME = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".webp": "image/webp",
    ".bmp": "image/bmp",
}

MIME_EXTENSION = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "image/webp": ".webp",
    "image/bmp": ".bmp",
}


class CleanupOutcome(str, Enum):
    nothing_to_clean = "nothing_to_clean"
    cleaned = "cleaned"
    cleanup_failed_continuing = "cleanup_failed_continuing"


@dataclass(frozen=True)
class UploadResult:
    record: PropertyImage
    cleanup: CleanupOutcome


@dataclass(frozen=True)
class FetchedAsset:
    record: PropertyImage
    content: bytes


def _normalize_mime(raw: Optional[str]) -> Optional[str]:
    if not raw:
        return None
    mime = raw.split(";", 1)[0].strip().lower()
    return "image/jpeg" if mime == "image/jpg" else mime


class AssetStore:
    """
    Keeps property_images rows consistent with objects in the remote repository.

    Rules:
    - at most one row per (property_id, image_type); the unique constraint decides races
    - a row is only written after the remote put is confirmed
    - cleanup of a superseded asset is best-effort and never blocks the new upload
    - an intentional delete aborts (row kept) if the remote delete fails
    """

    def __init__(
        self,
        config: AssetStoreConfig,
        repository: AssetRepositoryClient,
        access_check: AccessCheck,
        audit: Optional[AuditService] = None,
    ):
        self.config = config
        self.repository = repository
        self.access_check = access_check
        self.audit = audit or AuditService()

    # ─────────────────────────────────────────────
    # VALIDATION
    # ─────────────────────────────────────────────

    def _validate(
        self,
        image_type: str,
        content: bytes,
        file_name: str,
        content_type: Optional[str],
    ) -> Tuple[ImageType, str, str]:
        try:
            slot = ImageType(image_type)
        except ValueError:
            allowed = ", ".join(t.value for t in ImageType)
            raise InvalidAsset(f"Invalid image type. Must be one of: {allowed}")

        if not content:
            raise InvalidAsset("No image content provided.")
        if len(content) > self.config.max_bytes:
            raise InvalidAsset(
                f"File size exceeds {self.config.max_bytes // (1024 * 1024)}MB limit."
            )

        ext = os.path.splitext(file_name or "")[1].lower()
        mime = EXTENSION_MIME.get(ext) or _normalize_mime(content_type)
        if not mime or mime not in self.config.allowed_mime_types:
            raise InvalidAsset(f"File type {mime or 'unknown'} is not allowed.")

        if ext not in EXTENSION_MIME:
            ext = MIME_EXTENSION.get(mime, "")
        return slot, mime, ext

    def check_access(
        self, db: Session, principal: Principal, property_id: str, uploaded_by: Optional[str]
    ) -> None:
        if not self.access_check(db, principal, property_id, uploaded_by):
            raise AccessDenied("You can only manage images of your own surveys.")

    # ─────────────────────────────────────────────
    # READS
    # ─────────────────────────────────────────────

    def get(self, db: Session, asset_id: uuid.UUID) -> PropertyImage:
        row = db.get(PropertyImage, asset_id)
        if row is None:
            raise AssetNotFound("Image not found.")
        return row

    def get_for_slot(self, db: Session, property_id: str, image_type: str) -> Optional[PropertyImage]:
        return db.execute(
            select(PropertyImage).where(
                PropertyImage.property_id == property_id,
                PropertyImage.image_type == image_type,
            )
        ).scalar_one_or_none()

    def list_for_property(self, db: Session, property_id: str) -> List[PropertyImage]:
        return list(
            db.execute(
                select(PropertyImage)
                .where(PropertyImage.property_id == property_id)
                .order_by(PropertyImage.uploaded_at.desc())
            ).scalars().all()
        )

    def fetch(self, db: Session, asset_id: uuid.UUID) -> FetchedAsset:
        """
        Row first, then content. AssetNotFound means no such asset;
        RemoteNotFound / RemoteReadError mean storage trouble.
        """
        row = self.get(db, asset_id)
        content = self.repository.get(row.remote_path)
        return FetchedAsset(record=row, content=content)

    # ─────────────────────────────────────────────
    # UPLOAD
    # ─────────────────────────────────────────────

    def _cleanup_slot(
        self, db: Session, property_id: str, slot: ImageType, actor: Principal
    ) -> CleanupOutcome:
        existing = self.get_for_slot(db, property_id, slot.value)
        if existing is None:
            return CleanupOutcome.nothing_to_clean

        old_path = existing.remote_path
        remote_ok = True
        try:
            self.repository.delete(
                old_path, f"Replace {slot.value} for property {property_id}"
            )
        except RemoteError as exc:
            remote_ok = False
            logger.warning(
                "[asset-store] cleanup remote delete failed property=%s slot=%s path=%s: %s",
                property_id, slot.value, old_path, exc.message,
            )

        try:
            db.delete(existing)
            self.audit.record(
                db,
                property_id=property_id,
                principal=actor,
                action=AuditAction.ASSET_SUPERSEDED,
                details={"imageType": slot.value, "remotePath": old_path, "remoteDeleted": remote_ok},
            )
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            logger.warning(
                "[asset-store] cleanup row delete failed property=%s slot=%s: %s",
                property_id, slot.value, exc,
            )
            return CleanupOutcome.cleanup_failed_continuing

        if not remote_ok:
            return CleanupOutcome.cleanup_failed_continuing
        return CleanupOutcome.cleaned

    def upload(
        self,
        db: Session,
        *,
        property_id: str,
        image_type: str,
        content: bytes,
        file_name: str,
        uploader: Principal,
        content_type: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> UploadResult:
        slot, mime, ext = self._validate(image_type, content, file_name, content_type)
        # replacing an occupant is held to the same rule as deleting it
        occupant = self.get_for_slot(db, property_id, slot.value)
        self.check_access(
            db,
            uploader,
            property_id,
            occupant.uploaded_by if occupant is not None else uploader.user_id,
        )

        cleanup = self._cleanup_slot(db, property_id, slot, uploader)
        logger.info(
            "[asset-store] cleanup property=%s slot=%s outcome=%s",
            property_id, slot.value, cleanup.value,
        )

        path = self.repository.build_path(property_id, slot.value, ext, now)
        try:
            self.repository.put(path, content, f"Upload {slot.value} for property {property_id}")
        except RemoteError as exc:
            logger.error(
                "[asset-store] upload failed property=%s slot=%s path=%s: %s",
                property_id, slot.value, path, exc.message,
            )
            raise UploadFailed(f"Failed to upload {slot.value}: {exc.message}") from exc

        record = PropertyImage(
            property_id=property_id,
            image_type=slot.value,
            remote_path=path,
            remote_url=self.repository.public_url(path),
            file_name=file_name or os.path.basename(path),
            file_size=len(content),
            mime_type=mime,
            uploaded_by=uploader.user_id,
            uploaded_at=now or datetime.now(timezone.utc),
        )
        db.add(record)
        self.audit.record(
            db,
            property_id=property_id,
            principal=uploader,
            action=AuditAction.ASSET_INSTALLED,
            details={"imageType": slot.value, "remotePath": path, "cleanup": cleanup.value},
        )
        try:
            db.commit()
        except IntegrityError as exc:
            db.rollback()
            # remote object at `path` is now an orphan
            logger.warning(
                "[asset-store] slot taken concurrently property=%s slot=%s orphan=%s",
                property_id, slot.value, path,
            )
            raise AssetSlotConflict(
                f"Another {slot.value} was installed for property {property_id} concurrently."
            ) from exc

        db.refresh(record)
        logger.info(
            "[asset-store] installed id=%s property=%s slot=%s bytes=%d",
            record.id, property_id, slot.value, record.file_size,
        )
        return UploadResult(record=record, cleanup=cleanup)

    # ─────────────────────────────────────────────
    # DELETE
    # ─────────────────────────────────────────────

    def delete(self, db: Session, asset_id: uuid.UUID, principal: Principal) -> DeleteResult:
        row = self.get(db, asset_id)
        property_id = row.property_id
        self.check_access(db, principal, property_id, row.uploaded_by)

        # RemoteDeleteError propagates and the row stays
        result = self.repository.delete(
            row.remote_path, f"Delete image: {os.path.basename(row.remote_path)}"
        )

        db.delete(row)
        self.audit.record(
            db,
            property_id=property_id,
            principal=principal,
            action=AuditAction.ASSET_DELETED,
            details={
                "imageType": row.image_type,
                "remotePath": row.remote_path,
                "remoteMissing": result.missing,
            },
        )
        db.commit()
        logger.info("[asset-store] deleted id=%s property=%s", asset_id, property_id)
        return result
