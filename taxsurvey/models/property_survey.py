# taxsurvey/models/property_survey.py
from __future__ import annotations

import uuid
from datetime import date, datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy import JSON, Boolean, Date, DateTime, Index, Integer, Numeric, String, Text, Uuid, func, text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from taxsurvey.db.base import Base

_JSON = JSON().with_variant(JSONB(), "postgresql")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PropertySurvey(Base):
    """
    One row per surveyed property.

    - property_id is caller-assigned and immutable
    - survey_status / approval_status are the coupled status pair
    - never hard-deleted
    """

    __tablename__ = "property_surveys"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    # Identity
    property_id: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    survey_number: Mapped[Optional[str]] = mapped_column(String(100), nullable=True, unique=True)
    old_mc_property_number: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    register_no: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    # Owner
    owner_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    owner_father_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    owner_phone: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    owner_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    aadhar_number: Mapped[Optional[str]] = mapped_column(String(14), nullable=True)

    # Address
    house_number: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    street_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    locality: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    ward_number: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    pincode: Mapped[Optional[str]] = mapped_column(String(6), nullable=True)
    zone: Mapped[Optional[str]] = mapped_column(String(1), nullable=True)

    # Construction
    property_type: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    construction_type: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    construction_year: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    number_of_floors: Mapped[int] = mapped_column(Integer, nullable=False, default=1, server_default=text("1"))

    building_permission: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=text("false"))
    bp_number: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    bp_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    # Measurements
    plot_area: Mapped[Optional[float]] = mapped_column(Numeric(10, 2, asdecimal=False), nullable=True)
    built_up_area: Mapped[Optional[float]] = mapped_column(Numeric(10, 2, asdecimal=False), nullable=True)
    carpet_area: Mapped[Optional[float]] = mapped_column(Numeric(10, 2, asdecimal=False), nullable=True)
    property_use_details: Mapped[Optional[Dict[str, Any]]] = mapped_column(_JSON, nullable=True)

    # Utilities
    water_connection: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    water_connection_number: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    water_connection_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    electricity_connection: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=text("false"))
    electricity_connection_number: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    sewage_connection: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=text("false"))
    solar_panel: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=text("false"))
    rain_water_harvesting: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=text("false"))

    # Location
    latitude: Mapped[Optional[float]] = mapped_column(Numeric(10, 8, asdecimal=False), nullable=True)
    longitude: Mapped[Optional[float]] = mapped_column(Numeric(11, 8, asdecimal=False), nullable=True)

    # Assessment
    assessment_year: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    estimated_tax: Mapped[Optional[float]] = mapped_column(Numeric(12, 2, asdecimal=False), nullable=True)
    remarks: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Status pair
    survey_status: Mapped[str] = mapped_column(String(16), nullable=False, default="draft", server_default=text("'draft'"))
    approval_status: Mapped[Optional[str]] = mapped_column(String(24), nullable=True)  # NULL until first submit

    # Ownership / legacy review
    surveyed_by: Mapped[str] = mapped_column(String(64), nullable=False)
    survey_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)
    reviewed_by: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    reviewed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    review_remarks: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Approval workflow
    approved_by: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    approved_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    rejection_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    admin_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Edit tracking
    edit_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default=text("0"))
    last_edit_comment: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    last_edit_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    last_edit_by: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow, server_default=func.now()
    )

    __table_args__ = (
        Index("ix_property_surveys_surveyed_by", "surveyed_by"),
        Index("ix_property_surveys_status", "survey_status", "approval_status"),
        Index("ix_property_surveys_zone_type", "zone", "property_type"),
        Index("ix_property_surveys_created_at", "created_at"),
    )
