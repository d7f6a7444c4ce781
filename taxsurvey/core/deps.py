# taxsurvey/core/deps.py
from __future__ import annotations

from functools import lru_cache
from typing import Optional

from fastapi import Depends, Query

from taxsurvey.core.config import (
    AssetRepositoryConfig,
    AssetStoreConfig,
    Settings,
    get_settings,
)
from taxsurvey.policies.survey_policy import can_manage_asset
from taxsurvey.services.approval_service import ApprovalWorkflow
from taxsurvey.services.asset_repository import AssetRepositoryClient
from taxsurvey.services.asset_store import AssetStore
from taxsurvey.services.survey_lifecycle import SurveyLifecycleEngine
from taxsurvey.services.surveys_service import SurveyRecordStore

# Composition root: settings are read here and handed down as explicit config.


@lru_cache(maxsize=1)
def get_asset_repository() -> AssetRepositoryClient:
    return AssetRepositoryClient(AssetRepositoryConfig.from_settings(get_settings()))


def get_asset_store(
    repository: AssetRepositoryClient = Depends(get_asset_repository),
) -> AssetStore:
    return AssetStore(
        AssetStoreConfig.from_settings(get_settings()),
        repository,
        access_check=can_manage_asset,
    )


def get_record_store() -> SurveyRecordStore:
    return SurveyRecordStore()


def get_lifecycle() -> SurveyLifecycleEngine:
    return SurveyLifecycleEngine()


def get_approvals() -> ApprovalWorkflow:
    return ApprovalWorkflow()


class Pagination:
    def __init__(
        self,
        page: int = Query(default=1, ge=1),
        limit: Optional[int] = Query(default=None, ge=1),
        settings: Settings = Depends(get_settings),
    ):
        self.page = page
        self.limit = min(limit or settings.default_page_size, settings.max_page_size)
