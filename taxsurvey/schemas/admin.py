from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from taxsurvey.schemas.images import ImageResponse
from taxsurvey.schemas.surveys import SurveyResponse


class ApproveRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    admin_notes: Optional[str] = Field(default=None, max_length=2000)


class RejectRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    # blank / missing is a lifecycle error (reason_required), not a schema error
    rejection_reason: Optional[str] = Field(default=None, max_length=2000)
    admin_notes: Optional[str] = Field(default=None, max_length=2000)


class ApprovalSummary(BaseModel):
    total: int
    pending: int
    approved: int
    rejected: int
    approval_rate: float


class DistributionRow(BaseModel):
    key: Optional[str] = None
    approval_status: Optional[str] = None
    count: int


class ApprovalStatsResponse(BaseModel):
    summary: ApprovalSummary
    zone_distribution: List[DistributionRow]
    type_distribution: List[DistributionRow]


class ApprovalDetailsResponse(BaseModel):
    property: SurveyResponse
    images: List[ImageResponse]
