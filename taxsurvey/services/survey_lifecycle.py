# taxsurvey/services/survey_lifecycle.py
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from taxsurvey.core.errors import (
    AccessDenied,
    AlreadyDecided,
    EditCommentRequired,
    InvalidTransition,
)
from taxsurvey.models.enums import ApprovalStatus, ReviewDecision, SurveyStatus
from taxsurvey.models.property_survey import PropertySurvey
from taxsurvey.policies.rbac import Principal, is_elevated, is_field_executive, require_elevated
from taxsurvey.policies.survey_policy import is_survey_owner
from taxsurvey.services.audit_service import AuditAction, AuditService
from taxsurvey.services.surveys_service import SurveyRecordStore

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


class SurveyLifecycleEngine:
    """
    State machine over survey_status.

        draft --submit--> submitted --review(approve)--> approved
                                   \\--review(reject)---> rejected
        (any state) --edit(owner)--> same state, edit_count + 1

    Rules:
    - surveys stay editable in every status; owner edits past draft need a comment
    - a field executive may (re)submit their own survey from any status
    - other roles may only submit drafts
    - every precondition is checked before anything is written
    """

    def __init__(
        self,
        records: Optional[SurveyRecordStore] = None,
        audit: Optional[AuditService] = None,
    ):
        self.audit = audit or AuditService()
        self.records = records or SurveyRecordStore(audit=self.audit)

    # ─────────────────────────────────────────────
    # EDIT
    # ─────────────────────────────────────────────

    def edit(
        self,
        db: Session,
        *,
        property_id: str,
        principal: Principal,
        fields: Dict[str, Any],
        edit_comment: Optional[str] = None,
    ) -> PropertySurvey:
        survey = self.records.get(db, property_id, for_update=True)
        comment = (edit_comment or "").strip()

        tracked = is_field_executive(principal)
        if tracked:
            if not is_survey_owner(principal, survey):
                raise AccessDenied("You can only edit your own surveys.")
            if survey.survey_status != SurveyStatus.draft.value and not comment:
                raise EditCommentRequired(
                    "Edit comment is required when modifying a submitted survey."
                )
        elif not is_elevated(principal):
            raise AccessDenied(f"Role {principal.role.value} may not edit surveys.")

        if "survey_number" in fields:
            self.records.ensure_survey_number_free(db, survey, fields["survey_number"])

        changed = self.records.apply_fields(survey, fields)
        if not changed:
            # no-op edit: nothing to track or audit; ends the locking transaction
            db.commit()
            logger.info("[lifecycle] edit property=%s by=%s no changes", property_id, principal.user_id)
            return survey

        now = _now()
        survey.updated_at = now

        if tracked:
            survey.last_edit_comment = comment or None
            survey.last_edit_date = now
            survey.last_edit_by = principal.user_id
            # evaluated in SQL against the current row value
            survey.edit_count = PropertySurvey.edit_count + 1

        self.audit.record(
            db,
            property_id=property_id,
            principal=principal,
            action=AuditAction.SURVEY_EDITED,
            details={
                "changedFields": changed,
                "editComment": comment or None,
                "surveyStatus": survey.survey_status,
            },
        )
        db.commit()
        db.refresh(survey)

        logger.info(
            "[lifecycle] edit property=%s by=%s fields=%d edit_count=%s",
            property_id, principal.user_id, len(changed), survey.edit_count,
        )
        return survey

    # ─────────────────────────────────────────────
    # SUBMIT
    # ─────────────────────────────────────────────

    def submit(self, db: Session, *, property_id: str, principal: Principal) -> PropertySurvey:
        survey = self.records.get(db, property_id, for_update=True)
        previous = survey.survey_status

        if is_field_executive(principal):
            if not is_survey_owner(principal, survey):
                raise AccessDenied("You can only submit your own surveys.")
        elif previous != SurveyStatus.draft.value:
            raise InvalidTransition("Property is already submitted.")

        survey.survey_status = SurveyStatus.submitted.value
        survey.approval_status = ApprovalStatus.pending_approval.value
        # a new submission reopens the gate; the previous decision no longer applies
        survey.approved_by = None
        survey.approved_at = None
        survey.rejection_reason = None
        survey.updated_at = _now()

        self.audit.record(
            db,
            property_id=property_id,
            principal=principal,
            action=AuditAction.SURVEY_SUBMITTED,
            details={"from": previous, "resubmission": previous != SurveyStatus.draft.value},
        )
        db.commit()
        db.refresh(survey)

        logger.info("[lifecycle] submit property=%s from=%s by=%s", property_id, previous, principal.user_id)
        return survey

    # ─────────────────────────────────────────────
    # REVIEW (legacy single-field path)
    # ─────────────────────────────────────────────

    def review(
        self,
        db: Session,
        *,
        property_id: str,
        principal: Principal,
        decision: ReviewDecision,
        remarks: Optional[str] = None,
    ) -> PropertySurvey:
        """
        Decides survey_status directly. approval_status is left to the
        approval workflow.
        """
        require_elevated(principal, "review_survey")
        survey = self.records.get(db, property_id, for_update=True)

        status = survey.survey_status
        if status in (SurveyStatus.approved.value, SurveyStatus.rejected.value):
            raise AlreadyDecided(status)
        if status != SurveyStatus.submitted.value:
            raise InvalidTransition("Property is not in submitted status.")

        now = _now()
        survey.survey_status = decision.value
        survey.reviewed_by = principal.user_id
        survey.reviewed_at = now
        if remarks and remarks.strip():
            survey.review_remarks = remarks.strip()
        survey.updated_at = now

        self.audit.record(
            db,
            property_id=property_id,
            principal=principal,
            action=AuditAction.SURVEY_REVIEWED,
            details={"decision": decision.value},
        )
        db.commit()
        db.refresh(survey)

        logger.info("[lifecycle] review property=%s decision=%s by=%s", property_id, decision.value, principal.user_id)
        return survey
