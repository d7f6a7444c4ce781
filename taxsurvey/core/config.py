# taxsurvey/core/config.py
from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import FrozenSet, List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )

    # ─────────── APP ───────────
    app_name: str = "Municipal Property Tax Survey"
    environment: str = "dev"
    log_level: str = "INFO"

    # ─────────── API ───────────
    api_prefix: str = "/api/v1"
    request_id_header: str = "X-Request-Id"
    default_page_size: int = 10
    max_page_size: int = 100

    # ─────────── DATABASE ───────────
    database_url: str

    # ─────────── JWT / AUTH ───────────
    jwt_secret_key: str
    jwt_algorithm: str = "HS256"
    jwt_access_token_minutes: int = 1440  # 24 hours

    # ─────────── ASSET REPOSITORY (GitLab) ───────────
    gitlab_api_url: str = "https://gitlab.com/api/v4"
    gitlab_project_id: str = ""
    gitlab_token: str = ""
    gitlab_branch: str = "main"
    gitlab_repo_path: str = "images/properties"
    gitlab_author_name: str = "Survey App System"
    gitlab_author_email: str = "system@surveyapp.com"
    gitlab_timeout_seconds: float = 30.0
    gitlab_connect_retries: int = 2

    # ─────────── UPLOADS ───────────
    max_upload_bytes: int = 10 * 1024 * 1024  # 10 MB
    allowed_image_types: List[str] = [
        "image/jpeg",
        "image/png",
        "image/gif",
        "image/webp",
    ]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


@dataclass(frozen=True)
class AssetRepositoryConfig:
    api_url: str
    project_id: str
    token: str
    branch: str = "main"
    repo_root: str = "images/properties"
    author_name: str = "Survey App System"
    author_email: str = "system@surveyapp.com"
    timeout_seconds: float = 30.0
    connect_retries: int = 2

    @classmethod
    def from_settings(cls, settings: Settings) -> "AssetRepositoryConfig":
        return cls(
            api_url=settings.gitlab_api_url.rstrip("/"),
            project_id=settings.gitlab_project_id,
            token=settings.gitlab_token,
            branch=settings.gitlab_branch,
            repo_root=settings.gitlab_repo_path.strip("/"),
            author_name=settings.gitlab_author_name,
            author_email=settings.gitlab_author_email,
            timeout_seconds=settings.gitlab_timeout_seconds,
            connect_retries=settings.gitlab_connect_retries,
        )


@dataclass(frozen=True)
class AssetStoreConfig:
    max_bytes: int
    allowed_mime_types: FrozenSet[str]

    @classmethod
    def from_settings(cls, settings: Settings) -> "AssetStoreConfig":
        return cls(
            max_bytes=settings.max_upload_bytes,
            allowed_mime_types=frozenset(settings.allowed_image_types),
        )
