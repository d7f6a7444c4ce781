from taxsurvey.schemas.surveys import (
    SurveyCreateRequest,
    SurveyUpdateRequest,
    ReviewRequest,
    SurveyResponse,
    SurveyListResponse,
    DashboardStatsResponse,
)
from taxsurvey.schemas.images import ImageResponse, ImageUploadResponse, ImageListResponse, ImageUrlResponse
from taxsurvey.schemas.admin import ApproveRequest, RejectRequest, ApprovalStatsResponse, ApprovalDetailsResponse
