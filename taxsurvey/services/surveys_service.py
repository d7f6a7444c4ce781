# taxsurvey/services/surveys_service.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.sql.elements import ColumnElement

from taxsurvey.core.errors import AccessDenied, AlreadyExists, NotFound, ValidationError
from taxsurvey.models.enums import ApprovalStatus, SurveyStatus
from taxsurvey.models.property_survey import PropertySurvey
from taxsurvey.policies.rbac import Principal, is_field_executive, require_field_executive
from taxsurvey.policies.survey_policy import can_access_survey
from taxsurvey.services.audit_service import AuditAction, AuditService

logger = logging.getLogger(__name__)

# Columns a client may write on create/edit. Identity, ownership, status,
# edit tracking and decision fields are owned by the services.
DESCRIPTIVE_FIELDS = frozenset(
    {
        "survey_number",
        "old_mc_property_number",
        "register_no",
        "owner_name",
        "owner_father_name",
        "owner_phone",
        "owner_email",
        "aadhar_number",
        "house_number",
        "street_name",
        "locality",
        "ward_number",
        "pincode",
        "zone",
        "property_type",
        "construction_type",
        "construction_year",
        "number_of_floors",
        "building_permission",
        "bp_number",
        "bp_date",
        "plot_area",
        "built_up_area",
        "carpet_area",
        "property_use_details",
        "water_connection",
        "water_connection_number",
        "water_connection_date",
        "electricity_connection",
        "electricity_connection_number",
        "sewage_connection",
        "solar_panel",
        "rain_water_harvesting",
        "latitude",
        "longitude",
        "assessment_year",
        "estimated_tax",
        "remarks",
    }
)


def _now() -> datetime:
    return datetime.now(timezone.utc)


# ─────────────────────────────────────────────
# FILTERING / PAGINATION (shared with approvals)
# ─────────────────────────────────────────────


@dataclass
class SurveyFilter:
    survey_status: Optional[str] = None
    approval_status: Optional[str] = None
    property_type: Optional[str] = None
    zone: Optional[str] = None
    ward_number: Optional[int] = None
    surveyed_by: Optional[str] = None
    search: Optional[str] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None


@dataclass(frozen=True)
class Page:
    items: List[PropertySurvey]
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        if self.limit <= 0:
            return 0
        return (self.total + self.limit - 1) // self.limit


def survey_filter_clauses(
    f: SurveyFilter, principal: Optional[Principal] = None
) -> List[ColumnElement[bool]]:
    """
    The single predicate builder behind every survey listing and aggregate,
    so counts always agree with the rows a caller can page through.
    Field executives are always scoped to their own surveys.
    """
    clauses: List[ColumnElement[bool]] = []

    if principal is not None and is_field_executive(principal):
        clauses.append(PropertySurvey.surveyed_by == principal.user_id)
    elif f.surveyed_by:
        clauses.append(PropertySurvey.surveyed_by == f.surveyed_by)

    if f.survey_status:
        clauses.append(PropertySurvey.survey_status == f.survey_status)
    if f.approval_status:
        clauses.append(PropertySurvey.approval_status == f.approval_status)
    if f.property_type:
        clauses.append(PropertySurvey.property_type == f.property_type)
    if f.zone:
        clauses.append(PropertySurvey.zone == f.zone)
    if f.ward_number is not None:
        clauses.append(PropertySurvey.ward_number == f.ward_number)

    if f.search and f.search.strip():
        like = f"%{f.search.strip()}%"
        clauses.append(
            or_(
                PropertySurvey.owner_name.ilike(like),
                PropertySurvey.property_id.ilike(like),
                PropertySurvey.survey_number.ilike(like),
                PropertySurvey.locality.ilike(like),
            )
        )

    # date range is inclusive of both days
    if f.date_from:
        clauses.append(
            PropertySurvey.created_at >= datetime.combine(f.date_from, time.min, tzinfo=timezone.utc)
        )
    if f.date_to:
        clauses.append(
            PropertySurvey.created_at
            < datetime.combine(f.date_to + timedelta(days=1), time.min, tzinfo=timezone.utc)
        )

    return clauses


def paginate(
    db: Session,
    clauses: List[ColumnElement[bool]],
    *,
    page: int,
    limit: int,
    order_by: Any,
) -> Page:
    page = max(page, 1)
    limit = max(limit, 1)

    total = db.execute(
        select(func.count()).select_from(PropertySurvey).where(*clauses)
    ).scalar_one()

    rows = db.execute(
        select(PropertySurvey)
        .where(*clauses)
        .order_by(order_by)
        .offset((page - 1) * limit)
        .limit(limit)
    ).scalars().all()

    return Page(items=list(rows), total=int(total), page=page, limit=limit)


# ─────────────────────────────────────────────
# RECORD STORE
# ─────────────────────────────────────────────


class SurveyRecordStore:
    def __init__(self, audit: Optional[AuditService] = None):
        self.audit = audit or AuditService()

    def get(self, db: Session, property_id: str, *, for_update: bool = False) -> PropertySurvey:
        stmt = select(PropertySurvey).where(PropertySurvey.property_id == property_id)
        if for_update:
            stmt = stmt.with_for_update()
        survey = db.execute(stmt).scalar_one_or_none()
        if survey is None:
            raise NotFound("Property survey not found.")
        return survey

    def get_visible(self, db: Session, property_id: str, principal: Principal) -> PropertySurvey:
        survey = self.get(db, property_id)
        if not can_access_survey(principal, survey):
            raise AccessDenied("You can only access your own surveys.")
        return survey

    def create(
        self,
        db: Session,
        principal: Principal,
        *,
        property_id: str,
        fields: Dict[str, Any],
        survey_status: str = SurveyStatus.draft.value,
    ) -> PropertySurvey:
        """
        Creating directly as `submitted` is the creator's first submission and
        opens the approval gate; a draft has no approval status yet.
        """
        require_field_executive(principal, "create_survey")

        unknown = set(fields) - DESCRIPTIVE_FIELDS
        if unknown:
            raise ValidationError(f"Unknown or read-only fields: {', '.join(sorted(unknown))}")
        if survey_status not in (SurveyStatus.draft.value, SurveyStatus.submitted.value):
            raise ValidationError("New surveys must be draft or submitted.")

        keys = [PropertySurvey.property_id == property_id]
        if fields.get("survey_number"):
            keys.append(PropertySurvey.survey_number == fields["survey_number"])
        existing = db.execute(
            select(PropertySurvey.property_id, PropertySurvey.survey_number).where(or_(*keys))
        ).first()
        if existing is not None:
            if existing.property_id == property_id:
                raise AlreadyExists(f"Property ID {property_id} already exists.")
            raise AlreadyExists(f"Survey number {fields.get('survey_number')} already exists.")

        now = _now()
        survey = PropertySurvey(
            property_id=property_id,
            surveyed_by=principal.user_id,
            survey_date=now,
            survey_status=survey_status,
            approval_status=(
                ApprovalStatus.pending_approval.value
                if survey_status == SurveyStatus.submitted.value
                else None
            ),
            edit_count=0,
            created_at=now,
            updated_at=now,
            **fields,
        )
        db.add(survey)
        self.audit.record(
            db,
            property_id=property_id,
            principal=principal,
            action=AuditAction.SURVEY_CREATED,
            details={"surveyStatus": survey_status},
        )
        try:
            db.commit()
        except IntegrityError as exc:
            # lost a race on property_id / survey_number
            db.rollback()
            raise AlreadyExists(f"Property ID {property_id} or its survey number already exists.") from exc

        db.refresh(survey)
        logger.info("[surveys] created property=%s status=%s by=%s", property_id, survey_status, principal.user_id)
        return survey

    def apply_fields(self, survey: PropertySurvey, fields: Dict[str, Any]) -> List[str]:
        """
        Copy allow-listed descriptive fields onto the row; returns changed names.
        Caller commits.
        """
        unknown = set(fields) - DESCRIPTIVE_FIELDS
        if unknown:
            raise ValidationError(f"Unknown or read-only fields: {', '.join(sorted(unknown))}")

        changed: List[str] = []
        for key, value in fields.items():
            if getattr(survey, key) != value:
                setattr(survey, key, value)
                changed.append(key)
        return changed

    def ensure_survey_number_free(self, db: Session, survey: PropertySurvey, survey_number: Optional[str]) -> None:
        if not survey_number or not survey_number.strip():
            raise ValidationError("Survey number cannot be cleared.")
        if survey_number == survey.survey_number:
            return
        clash = db.execute(
            select(PropertySurvey.id).where(
                PropertySurvey.survey_number == survey_number,
                PropertySurvey.id != survey.id,
            )
        ).first()
        if clash is not None:
            raise AlreadyExists(f"Survey number {survey_number} already exists.")

    def list(
        self,
        db: Session,
        principal: Principal,
        f: SurveyFilter,
        *,
        page: int = 1,
        limit: int = 20,
    ) -> Page:
        return paginate(
            db,
            survey_filter_clauses(f, principal),
            page=page,
            limit=limit,
            order_by=PropertySurvey.created_at.desc(),
        )

    def status_counts(self, db: Session, principal: Principal, f: Optional[SurveyFilter] = None) -> Dict[str, int]:
        """Dashboard counts per survey_status, plus `total`."""
        clauses = survey_filter_clauses(f or SurveyFilter(), principal)
        rows = db.execute(
            select(PropertySurvey.survey_status, func.count())
            .where(*clauses)
            .group_by(PropertySurvey.survey_status)
        ).all()

        counts = {s.value: 0 for s in SurveyStatus}
        for status, n in rows:
            counts[status] = int(n)
        counts["total"] = sum(counts.values())
        return counts
