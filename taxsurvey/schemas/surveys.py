#taxsurvey/schemas/surveys.py
from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from taxsurvey.core.dates import coerce_date
from taxsurvey.models.enums import ConstructionType, PropertyType

# Columns a client can never clear (NOT NULL on the row, or a unique identity);
# an explicit null from a client means "leave as is".
_NEVER_CLEARED = frozenset(
    {
        "survey_number",
        "number_of_floors",
        "building_permission",
        "electricity_connection",
        "sewage_connection",
        "solar_panel",
        "rain_water_harvesting",
    }
)

# Required once a survey is created as submitted.
_SUBMISSION_REQUIRED = ("owner_name", "locality", "ward_number", "pincode", "property_type")


# -----------------------
# Descriptive field set (shared by create / edit)
# -----------------------


class SurveyFields(BaseModel):
    model_config = ConfigDict(extra="forbid", use_enum_values=True)

    survey_number: Optional[str] = Field(default=None, max_length=100)
    old_mc_property_number: Optional[str] = Field(default=None, max_length=50)
    register_no: Optional[str] = Field(default=None, max_length=50)

    owner_name: Optional[str] = Field(default=None, max_length=100)
    owner_father_name: Optional[str] = Field(default=None, max_length=100)
    owner_phone: Optional[str] = Field(default=None, max_length=15)
    owner_email: Optional[str] = Field(default=None, max_length=255, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    aadhar_number: Optional[str] = Field(default=None, pattern=r"^(\d{12}|\d{4}-\d{4}-\d{4})$")

    house_number: Optional[str] = Field(default=None, max_length=20)
    street_name: Optional[str] = Field(default=None, max_length=100)
    locality: Optional[str] = Field(default=None, max_length=100)
    ward_number: Optional[int] = Field(default=None, ge=1)
    pincode: Optional[str] = Field(default=None, pattern=r"^\d{6}$")
    zone: Optional[str] = Field(default=None, pattern=r"^[A-Z]$")

    property_type: Optional[PropertyType] = None
    construction_type: Optional[ConstructionType] = None
    construction_year: Optional[int] = Field(default=None, ge=1900)
    number_of_floors: Optional[int] = Field(default=None, ge=1, le=20)

    building_permission: Optional[bool] = None
    bp_number: Optional[str] = Field(default=None, max_length=50)
    bp_date: Optional[date] = None

    plot_area: Optional[float] = Field(default=None, ge=0)
    built_up_area: Optional[float] = Field(default=None, ge=0)
    carpet_area: Optional[float] = Field(default=None, ge=0)
    property_use_details: Optional[Dict[str, Any]] = None

    water_connection: Optional[int] = Field(default=None, ge=0, le=3)
    water_connection_number: Optional[str] = Field(default=None, max_length=50)
    water_connection_date: Optional[date] = None
    electricity_connection: Optional[bool] = None
    electricity_connection_number: Optional[str] = Field(default=None, max_length=50)
    sewage_connection: Optional[bool] = None
    solar_panel: Optional[bool] = None
    rain_water_harvesting: Optional[bool] = None

    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)

    assessment_year: Optional[int] = Field(default=None, ge=2020, le=2030)
    estimated_tax: Optional[float] = Field(default=None, ge=0)
    remarks: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _blank_strings_are_absent(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {k: (None if isinstance(v, str) and v.strip() == "" else v) for k, v in data.items()}
        return data

    @field_validator("bp_date", "water_connection_date", mode="before")
    @classmethod
    def _lenient_date(cls, v: Any) -> Optional[date]:
        return coerce_date(v)

    @field_validator("construction_year")
    @classmethod
    def _not_in_future(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v > datetime.now().year:
            raise ValueError("construction_year cannot be in the future")
        return v

    def to_fields(self) -> Dict[str, Any]:
        """Only fields the client actually sent, minus nulls for NOT NULL columns."""
        data = self.model_dump(exclude_unset=True, exclude=self._control_fields())
        return {k: v for k, v in data.items() if not (v is None and k in _NEVER_CLEARED)}

    @classmethod
    def _control_fields(cls) -> set:
        return set()


class SurveyCreateRequest(SurveyFields):
    property_id: str = Field(..., min_length=1, max_length=100, pattern=r"^[A-Z0-9_-]+$")
    survey_number: str = Field(..., min_length=1, max_length=100)
    survey_status: Literal["draft", "submitted"] = "draft"

    @model_validator(mode="after")
    def _submission_requires_core_fields(self) -> "SurveyCreateRequest":
        if self.survey_status == "submitted":
            missing = [f for f in _SUBMISSION_REQUIRED if getattr(self, f) in (None, "")]
            if missing:
                raise ValueError(f"Required for submitted surveys: {', '.join(missing)}")
        return self

    @classmethod
    def _control_fields(cls) -> set:
        return {"property_id", "survey_status"}


class SurveyUpdateRequest(SurveyFields):
    edit_comment: Optional[str] = Field(default=None, max_length=1000)

    @classmethod
    def _control_fields(cls) -> set:
        return {"edit_comment"}


class ReviewRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    action: Literal["approve", "reject"]
    remarks: Optional[str] = Field(default=None, max_length=2000)


# -----------------------
# Responses
# -----------------------


class SurveyResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    property_id: str
    survey_number: Optional[str] = None
    old_mc_property_number: Optional[str] = None
    register_no: Optional[str] = None

    owner_name: Optional[str] = None
    owner_father_name: Optional[str] = None
    owner_phone: Optional[str] = None
    owner_email: Optional[str] = None
    aadhar_number: Optional[str] = None

    house_number: Optional[str] = None
    street_name: Optional[str] = None
    locality: Optional[str] = None
    ward_number: Optional[int] = None
    pincode: Optional[str] = None
    zone: Optional[str] = None

    property_type: Optional[str] = None
    construction_type: Optional[str] = None
    construction_year: Optional[int] = None
    number_of_floors: Optional[int] = None
    building_permission: Optional[bool] = None
    bp_number: Optional[str] = None
    bp_date: Optional[date] = None

    plot_area: Optional[float] = None
    built_up_area: Optional[float] = None
    carpet_area: Optional[float] = None
    property_use_details: Optional[Dict[str, Any]] = None

    water_connection: Optional[int] = None
    water_connection_number: Optional[str] = None
    water_connection_date: Optional[date] = None
    electricity_connection: Optional[bool] = None
    electricity_connection_number: Optional[str] = None
    sewage_connection: Optional[bool] = None
    solar_panel: Optional[bool] = None
    rain_water_harvesting: Optional[bool] = None

    latitude: Optional[float] = None
    longitude: Optional[float] = None
    assessment_year: Optional[int] = None
    estimated_tax: Optional[float] = None
    remarks: Optional[str] = None

    survey_status: str
    approval_status: Optional[str] = None
    surveyed_by: str
    survey_date: Optional[datetime] = None
    reviewed_by: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    review_remarks: Optional[str] = None
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    admin_notes: Optional[str] = None

    edit_count: int = 0
    last_edit_comment: Optional[str] = None
    last_edit_date: Optional[datetime] = None
    last_edit_by: Optional[str] = None

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("id", mode="before")
    @classmethod
    def _id_str(cls, v: Any) -> str:
        return str(v)


class PaginationMeta(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int


class SurveyListResponse(BaseModel):
    items: List[SurveyResponse]
    pagination: PaginationMeta


class DashboardStatsResponse(BaseModel):
    total: int
    draft: int
    submitted: int
    under_review: int
    approved: int
    rejected: int
