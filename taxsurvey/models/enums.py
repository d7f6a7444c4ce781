#taxsurvey/models/enums.py
from __future__ import annotations
from enum import Enum


class UserRole(str, Enum):
    field_executive = "field_executive"
    municipal_officer = "municipal_officer"
    engineer = "engineer"
    admin = "admin"


class SurveyStatus(str, Enum):
    # survey_status (legacy single-field view)
    draft = "draft"
    submitted = "submitted"
    under_review = "under_review"
    approved = "approved"
    rejected = "rejected"


class ApprovalStatus(str, Enum):
    # approval gate; NULL on the row until first submission
    pending_approval = "pending_approval"
    approved = "approved"
    rejected = "rejected"


class ImageType(str, Enum):
    owner_photo = "owner_photo"
    signature = "signature"
    sketch_photo = "sketch_photo"
    # fixed documentation set, one per facade/angle
    static_photo_1 = "static_photo_1"
    static_photo_2 = "static_photo_2"
    static_photo_3 = "static_photo_3"
    static_photo_4 = "static_photo_4"


class PropertyType(str, Enum):
    residential = "residential"
    commercial = "commercial"
    industrial = "industrial"
    mixed = "mixed"
    institutional = "institutional"


class ConstructionType(str, Enum):
    rcc = "rcc"
    load_bearing = "load_bearing"
    tin_patra = "tin_patra"
    kaccha = "kaccha"


class ReviewDecision(str, Enum):
    approved = "approved"
    rejected = "rejected"
