# taxsurvey/services/approval_service.py
from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from taxsurvey.core.errors import AlreadyDecided, InvalidTransition, ReasonRequired
from taxsurvey.models.enums import ApprovalStatus
from taxsurvey.models.property_survey import PropertySurvey
from taxsurvey.policies.rbac import Principal, require_elevated
from taxsurvey.services.audit_service import AuditAction, AuditService
from taxsurvey.services.surveys_service import (
    Page,
    SurveyFilter,
    SurveyRecordStore,
    paginate,
    survey_filter_clauses,
)

logger = logging.getLogger(__name__)

SORTABLE_COLUMNS = {
    "created_at": PropertySurvey.created_at,
    "updated_at": PropertySurvey.updated_at,
    "survey_date": PropertySurvey.survey_date,
    "property_id": PropertySurvey.property_id,
    "owner_name": PropertySurvey.owner_name,
    "zone": PropertySurvey.zone,
}


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _clean(text: Optional[str]) -> Optional[str]:
    if text is None:
        return None
    text = text.strip()
    return text or None


class ApprovalWorkflow:
    """
    Admin decision gate over approval_status.

    pending_approval -> approved | rejected, and only from pending_approval.
    The decision is mirrored into survey_status.
    """

    def __init__(
        self,
        records: Optional[SurveyRecordStore] = None,
        audit: Optional[AuditService] = None,
    ):
        self.audit = audit or AuditService()
        self.records = records or SurveyRecordStore(audit=self.audit)

    # ─────────────────────────────────────────────
    # DECISIONS
    # ─────────────────────────────────────────────

    def _require_pending(self, survey: PropertySurvey) -> None:
        status = survey.approval_status
        if status in (ApprovalStatus.approved.value, ApprovalStatus.rejected.value):
            raise AlreadyDecided(status)
        if status != ApprovalStatus.pending_approval.value:
            raise InvalidTransition("Survey has not been submitted for approval.")

    def _decide(
        self,
        db: Session,
        *,
        property_id: str,
        principal: Principal,
        decision: ApprovalStatus,
        notes: Optional[str],
        reason: Optional[str] = None,
    ) -> PropertySurvey:
        survey = self.records.get(db, property_id, for_update=True)
        self._require_pending(survey)

        now = _now()
        survey.approval_status = decision.value
        survey.survey_status = decision.value
        survey.approved_by = principal.user_id
        survey.approved_at = now
        survey.admin_notes = _clean(notes)
        survey.rejection_reason = reason
        survey.updated_at = now

        self.audit.record(
            db,
            property_id=property_id,
            principal=principal,
            action=(
                AuditAction.SURVEY_APPROVED
                if decision == ApprovalStatus.approved
                else AuditAction.SURVEY_REJECTED
            ),
            details={"adminNotes": survey.admin_notes, "rejectionReason": reason},
        )
        db.commit()
        db.refresh(survey)

        logger.info("[approvals] %s property=%s by=%s", decision.value, property_id, principal.user_id)
        return survey

    def approve(
        self,
        db: Session,
        *,
        property_id: str,
        principal: Principal,
        notes: Optional[str] = None,
    ) -> PropertySurvey:
        require_elevated(principal, "approve_survey")
        return self._decide(
            db,
            property_id=property_id,
            principal=principal,
            decision=ApprovalStatus.approved,
            notes=notes,
        )

    def reject(
        self,
        db: Session,
        *,
        property_id: str,
        principal: Principal,
        reason: Optional[str],
        notes: Optional[str] = None,
    ) -> PropertySurvey:
        require_elevated(principal, "reject_survey")
        reason = _clean(reason)
        if not reason:
            raise ReasonRequired("Rejection reason is required.")
        return self._decide(
            db,
            property_id=property_id,
            principal=principal,
            decision=ApprovalStatus.rejected,
            notes=notes,
            reason=reason,
        )

    # ─────────────────────────────────────────────
    # READS
    # ─────────────────────────────────────────────

    def pending(
        self,
        db: Session,
        principal: Principal,
        f: SurveyFilter,
        *,
        page: int = 1,
        limit: int = 10,
        sort_by: str = "created_at",
        sort_order: str = "desc",
    ) -> Page:
        require_elevated(principal, "list_pending_approvals")
        f = replace(f, approval_status=ApprovalStatus.pending_approval.value)

        column = SORTABLE_COLUMNS.get(sort_by, PropertySurvey.created_at)
        order_by = column.asc() if sort_order.lower() == "asc" else column.desc()
        return paginate(db, survey_filter_clauses(f, principal), page=page, limit=limit, order_by=order_by)

    def details(self, db: Session, *, property_id: str, principal: Principal) -> PropertySurvey:
        require_elevated(principal, "view_for_approval")
        return self.records.get(db, property_id)

    def stats(self, db: Session, principal: Principal, f: SurveyFilter) -> Dict[str, Any]:
        """
        Read-only aggregate over the same predicates the listings use.
        Surveys never submitted (approval_status NULL) count toward `total` only.
        """
        require_elevated(principal, "approval_stats")
        clauses = survey_filter_clauses(f, principal)

        by_status = {s.value: 0 for s in ApprovalStatus}
        for status, n in db.execute(
            select(PropertySurvey.approval_status, func.count())
            .where(*clauses)
            .group_by(PropertySurvey.approval_status)
        ).all():
            if status is not None:
                by_status[status] = int(n)

        total = int(
            db.execute(select(func.count()).select_from(PropertySurvey).where(*clauses)).scalar_one()
        )
        approved = by_status[ApprovalStatus.approved.value]
        rejected = by_status[ApprovalStatus.rejected.value]
        approval_rate = round(approved / total * 100, 2) if total else 0.0

        return {
            "summary": {
                "total": total,
                "pending": by_status[ApprovalStatus.pending_approval.value],
                "approved": approved,
                "rejected": rejected,
                "approval_rate": approval_rate,
            },
            "zone_distribution": self._distribution(db, PropertySurvey.zone, clauses),
            "type_distribution": self._distribution(db, PropertySurvey.property_type, clauses),
        }

    def _distribution(self, db: Session, column, clauses) -> List[Dict[str, Any]]:
        rows = db.execute(
            select(column, PropertySurvey.approval_status, func.count())
            .where(*clauses)
            .group_by(column, PropertySurvey.approval_status)
            .order_by(column, PropertySurvey.approval_status)
        ).all()
        return [
            {"key": key, "approval_status": status, "count": int(n)}
            for key, status, n in rows
        ]
