from __future__ import annotations

from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from taxsurvey.core.logging import request_id_var
from taxsurvey.models.audit_log import SurveyAuditLog
from taxsurvey.policies.rbac import Principal


class AuditAction:
    # Survey lifecycle
    SURVEY_CREATED = "SURVEY_CREATED"
    SURVEY_EDITED = "SURVEY_EDITED"
    SURVEY_SUBMITTED = "SURVEY_SUBMITTED"
    SURVEY_REVIEWED = "SURVEY_REVIEWED"

    # Approval gate
    SURVEY_APPROVED = "SURVEY_APPROVED"
    SURVEY_REJECTED = "SURVEY_REJECTED"

    # Assets
    ASSET_INSTALLED = "ASSET_INSTALLED"
    ASSET_SUPERSEDED = "ASSET_SUPERSEDED"
    ASSET_DELETED = "ASSET_DELETED"


class AuditService:
    def record(
        self,
        db: Session,
        *,
        property_id: str,
        principal: Optional[Principal],
        action: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> SurveyAuditLog:
        """
        Stage an append-only audit row. The caller owns the transaction, so the
        row commits (or rolls back) together with the change it describes.
        """
        row = SurveyAuditLog(
            property_id=property_id,
            actor_user_id=principal.user_id if principal else None,
            actor_role=principal.role.value if principal else None,
            action=action,
            request_id=request_id_var.get(),
            details_json=details or {},
        )
        db.add(row)
        return row
