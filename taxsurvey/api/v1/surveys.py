# taxsurvey/api/v1/surveys.py
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from taxsurvey.core.auth_deps import get_current_principal
from taxsurvey.core.dates import coerce_date
from taxsurvey.core.deps import Pagination, get_lifecycle, get_record_store
from taxsurvey.db.session import get_db
from taxsurvey.models.enums import ApprovalStatus, ReviewDecision, SurveyStatus
from taxsurvey.policies.rbac import Principal
from taxsurvey.schemas.surveys import (
    DashboardStatsResponse,
    ReviewRequest,
    SurveyCreateRequest,
    SurveyListResponse,
    SurveyResponse,
    SurveyUpdateRequest,
)
from taxsurvey.services.survey_lifecycle import SurveyLifecycleEngine
from taxsurvey.services.surveys_service import Page, SurveyFilter, SurveyRecordStore

router = APIRouter(prefix="/surveys")


def _resp(s) -> SurveyResponse:
    return SurveyResponse.model_validate(s)


def _page(p: Page) -> dict:
    return {
        "items": [_resp(s) for s in p.items],
        "pagination": {
            "page": p.page,
            "limit": p.limit,
            "total": p.total,
            "total_pages": p.total_pages,
        },
    }


@router.post("", response_model=SurveyResponse, status_code=201)
def create_survey(
    body: SurveyCreateRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
    records: SurveyRecordStore = Depends(get_record_store),
):
    survey = records.create(
        db,
        principal,
        property_id=body.property_id,
        fields=body.to_fields(),
        survey_status=body.survey_status,
    )
    return _resp(survey)


@router.get("", response_model=SurveyListResponse)
def list_surveys(
    status: Optional[SurveyStatus] = Query(default=None),
    approval_status: Optional[ApprovalStatus] = Query(default=None),
    property_type: Optional[str] = Query(default=None),
    zone: Optional[str] = Query(default=None, pattern=r"^[A-Z]$"),
    ward_number: Optional[int] = Query(default=None, ge=1),
    surveyed_by: Optional[str] = Query(default=None),
    search: Optional[str] = Query(default=None, max_length=100),
    date_from: Optional[str] = Query(default=None),
    date_to: Optional[str] = Query(default=None),
    pagination: Pagination = Depends(),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
    records: SurveyRecordStore = Depends(get_record_store),
):
    f = SurveyFilter(
        survey_status=status.value if status else None,
        approval_status=approval_status.value if approval_status else None,
        property_type=property_type,
        zone=zone,
        ward_number=ward_number,
        surveyed_by=surveyed_by,
        search=search,
        date_from=coerce_date(date_from),
        date_to=coerce_date(date_to),
    )
    return _page(records.list(db, principal, f, page=pagination.page, limit=pagination.limit))


@router.get("/dashboard/stats", response_model=DashboardStatsResponse)
def dashboard_stats(
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
    records: SurveyRecordStore = Depends(get_record_store),
):
    return records.status_counts(db, principal)


@router.get("/{property_id}", response_model=SurveyResponse)
def get_survey(
    property_id: str,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
    records: SurveyRecordStore = Depends(get_record_store),
):
    return _resp(records.get_visible(db, property_id, principal))


@router.put("/{property_id}", response_model=SurveyResponse)
def update_survey(
    property_id: str,
    body: SurveyUpdateRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
    lifecycle: SurveyLifecycleEngine = Depends(get_lifecycle),
):
    survey = lifecycle.edit(
        db,
        property_id=property_id,
        principal=principal,
        fields=body.to_fields(),
        edit_comment=body.edit_comment,
    )
    return _resp(survey)


@router.patch("/{property_id}/submit", response_model=SurveyResponse)
def submit_survey(
    property_id: str,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
    lifecycle: SurveyLifecycleEngine = Depends(get_lifecycle),
):
    return _resp(lifecycle.submit(db, property_id=property_id, principal=principal))


@router.patch("/{property_id}/review", response_model=SurveyResponse)
def review_survey(
    property_id: str,
    body: ReviewRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
    lifecycle: SurveyLifecycleEngine = Depends(get_lifecycle),
):
    decision = ReviewDecision.approved if body.action == "approve" else ReviewDecision.rejected
    survey = lifecycle.review(
        db,
        property_id=property_id,
        principal=principal,
        decision=decision,
        remarks=body.remarks,
    )
    return _resp(survey)
