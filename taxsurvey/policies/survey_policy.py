from __future__ import annotations

from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from taxsurvey.models.property_survey import PropertySurvey
from taxsurvey.policies.rbac import Principal, is_elevated


def is_survey_owner(principal: Principal, survey: PropertySurvey) -> bool:
    return survey.surveyed_by == principal.user_id


def can_access_survey(principal: Principal, survey: PropertySurvey) -> bool:
    """
    Elevated roles see everything; field executives only their own surveys.
    """
    return is_elevated(principal) or is_survey_owner(principal, survey)


def can_manage_asset(
    db: Session,
    principal: Principal,
    property_id: str,
    uploaded_by: Optional[str] = None,
) -> bool:
    """
    Asset access check handed to the asset store.

    Assets reference surveys by property_id only, so the survey may not exist
    yet; in that case only the uploader (or an elevated role) may touch it.
    """
    if is_elevated(principal):
        return True

    survey = db.execute(
        select(PropertySurvey).where(PropertySurvey.property_id == property_id)
    ).scalar_one_or_none()
    if survey is None:
        return uploaded_by is not None and uploaded_by == principal.user_id
    return is_survey_owner(principal, survey)
