# taxsurvey/models/property_image.py
from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, Integer, String, UniqueConstraint, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from taxsurvey.db.base import Base


class PropertyImage(Base):
    """
    One row per live binary asset held in the remote repository.

    property_id is a soft reference (no FK): uploads may land before the
    survey row exists. Rows are inserted or hard-deleted, never updated.
    """

    __tablename__ = "property_images"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    property_id: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    image_type: Mapped[str] = mapped_column(String(32), nullable=False)

    remote_path: Mapped[str] = mapped_column(String(512), nullable=False)
    remote_url: Mapped[str] = mapped_column(String(1024), nullable=False)
    file_name: Mapped[str] = mapped_column(String(255), nullable=False)
    file_size: Mapped[int] = mapped_column(Integer, nullable=False)
    mime_type: Mapped[str] = mapped_column(String(64), nullable=False)

    uploaded_by: Mapped[str] = mapped_column(String(64), nullable=False)
    uploaded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=func.now(),
    )

    __table_args__ = (
        UniqueConstraint("property_id", "image_type", name="uq_property_images_slot"),
    )
