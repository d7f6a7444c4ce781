# taxsurvey/api/v1/admin.py
from __future__ import annotations

from datetime import date
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from taxsurvey.core.auth_deps import get_elevated_principal
from taxsurvey.core.dates import coerce_date
from taxsurvey.core.deps import Pagination, get_approvals, get_asset_store
from taxsurvey.db.session import get_db
from taxsurvey.policies.rbac import Principal
from taxsurvey.schemas.admin import (
    ApprovalDetailsResponse,
    ApprovalStatsResponse,
    ApproveRequest,
    RejectRequest,
)
from taxsurvey.schemas.images import ImageResponse
from taxsurvey.schemas.surveys import SurveyListResponse, SurveyResponse
from taxsurvey.services.approval_service import ApprovalWorkflow
from taxsurvey.services.asset_store import AssetStore
from taxsurvey.services.surveys_service import SurveyFilter

router = APIRouter(prefix="/admin")


def _filter(
    zone: Optional[str] = Query(default=None, pattern=r"^[A-Z]$"),
    property_type: Optional[str] = Query(default=None),
    date_from: Optional[str] = Query(default=None),
    date_to: Optional[str] = Query(default=None),
) -> SurveyFilter:
    return SurveyFilter(
        zone=zone,
        property_type=property_type,
        date_from=_as_date(date_from),
        date_to=_as_date(date_to),
    )


def _as_date(raw: Optional[str]) -> Optional[date]:
    return coerce_date(raw) if raw else None


@router.get("/pending-approvals", response_model=SurveyListResponse)
def pending_approvals(
    f: SurveyFilter = Depends(_filter),
    sort_by: str = Query(default="created_at"),
    sort_order: Literal["asc", "desc", "ASC", "DESC"] = Query(default="desc"),
    pagination: Pagination = Depends(),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_elevated_principal),
    approvals: ApprovalWorkflow = Depends(get_approvals),
):
    p = approvals.pending(
        db,
        principal,
        f,
        page=pagination.page,
        limit=pagination.limit,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    return {
        "items": [SurveyResponse.model_validate(s) for s in p.items],
        "pagination": {
            "page": p.page,
            "limit": p.limit,
            "total": p.total,
            "total_pages": p.total_pages,
        },
    }


@router.get("/approval-stats", response_model=ApprovalStatsResponse)
def approval_stats(
    f: SurveyFilter = Depends(_filter),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_elevated_principal),
    approvals: ApprovalWorkflow = Depends(get_approvals),
):
    return approvals.stats(db, principal, f)


@router.get("/property/{property_id}", response_model=ApprovalDetailsResponse)
def property_for_approval(
    property_id: str,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_elevated_principal),
    approvals: ApprovalWorkflow = Depends(get_approvals),
    store: AssetStore = Depends(get_asset_store),
):
    survey = approvals.details(db, property_id=property_id, principal=principal)
    return {
        "property": SurveyResponse.model_validate(survey),
        "images": [ImageResponse.model_validate(r) for r in store.list_for_property(db, property_id)],
    }


@router.post("/approve/{property_id}", response_model=SurveyResponse)
def approve_survey(
    property_id: str,
    body: Optional[ApproveRequest] = None,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_elevated_principal),
    approvals: ApprovalWorkflow = Depends(get_approvals),
):
    survey = approvals.approve(
        db,
        property_id=property_id,
        principal=principal,
        notes=body.admin_notes if body else None,
    )
    return SurveyResponse.model_validate(survey)


@router.post("/reject/{property_id}", response_model=SurveyResponse)
def reject_survey(
    property_id: str,
    body: RejectRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_elevated_principal),
    approvals: ApprovalWorkflow = Depends(get_approvals),
):
    survey = approvals.reject(
        db,
        property_id=property_id,
        principal=principal,
        reason=body.rejection_reason,
        notes=body.admin_notes,
    )
    return SurveyResponse.model_validate(survey)
