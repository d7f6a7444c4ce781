import base64
import json
import os
from typing import Callable, Dict, List, Optional, Tuple
from urllib.parse import unquote

# settings are read once; set test values before any taxsurvey import
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret")
os.environ.setdefault("GITLAB_PROJECT_ID", "4242")
os.environ.setdefault("GITLAB_TOKEN", "test-token")

import httpx
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# FORCE model registration
import taxsurvey.models  # noqa: F401
from taxsurvey.core.config import AssetRepositoryConfig, AssetStoreConfig
from taxsurvey.db.base import Base
from taxsurvey.policies.survey_policy import can_manage_asset
from taxsurvey.services.asset_repository import AssetRepositoryClient
from taxsurvey.services.asset_store import AssetStore


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------

@pytest.fixture
def engine():
    """Fresh in-memory SQLite database per test."""
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(eng)
    yield eng
    Base.metadata.drop_all(eng)
    eng.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(bind=engine, autoflush=False)()
    try:
        yield session
    finally:
        session.close()


# ---------------------------------------------------------------------------
# Fake commit-based file API
# ---------------------------------------------------------------------------

class FakeGitLab:
    """
    In-memory stand-in for the repository files API, served via httpx.MockTransport.
    Flip the fail_* flags to make the matching verb return a server error.
    """

    def __init__(self):
        self.files: Dict[str, bytes] = {}
        self.commits: List[dict] = []
        self.calls: List[Tuple[str, str]] = []
        self.fail_put = False
        self.fail_get = False
        self.fail_delete = False
        self.on_put: Optional[Callable[[str], None]] = None

    def _path(self, request: httpx.Request) -> Tuple[str, bool]:
        raw = request.url.raw_path.decode("ascii").split("?", 1)[0]
        _, _, tail = raw.partition("/repository/files/")
        is_raw = tail.endswith("/raw")
        if is_raw:
            tail = tail[: -len("/raw")]
        return unquote(tail), is_raw

    def __call__(self, request: httpx.Request) -> httpx.Response:
        path, is_raw = self._path(request)
        self.calls.append((request.method, path))

        if request.method == "POST":
            if self.fail_put:
                return httpx.Response(500, json={"message": "internal failure"})
            if path in self.files:
                return httpx.Response(400, json={"message": "A file with this name already exists"})
            body = json.loads(request.content)
            self.commits.append(body)
            self.files[path] = base64.b64decode(body["content"])
            if self.on_put:
                self.on_put(path)
            return httpx.Response(201, json={"file_path": path, "branch": body["branch"]})

        if request.method == "GET" and is_raw:
            if self.fail_get:
                return httpx.Response(503, json={"message": "unavailable"})
            if path not in self.files:
                return httpx.Response(404, json={"message": "404 File Not Found"})
            return httpx.Response(200, content=self.files[path])

        if request.method == "DELETE":
            if self.fail_delete:
                return httpx.Response(500, json={"message": "internal failure"})
            if path not in self.files:
                return httpx.Response(400, json={"message": "A file with this name doesn't exist"})
            self.commits.append(json.loads(request.content))
            del self.files[path]
            return httpx.Response(204)

        return httpx.Response(405)


@pytest.fixture
def gitlab():
    return FakeGitLab()


@pytest.fixture
def repo_config():
    return AssetRepositoryConfig(
        api_url="https://gitlab.test/api/v4",
        project_id="4242",
        token="test-token",
        branch="main",
        repo_root="images/properties",
        timeout_seconds=5.0,
        connect_retries=2,
    )


@pytest.fixture
def repository(repo_config, gitlab):
    client = AssetRepositoryClient(repo_config, transport=httpx.MockTransport(gitlab))
    yield client
    client.close()


@pytest.fixture
def store_config():
    return AssetStoreConfig(
        max_bytes=1024 * 1024,
        allowed_mime_types=frozenset({"image/jpeg", "image/png", "image/gif", "image/webp"}),
    )


@pytest.fixture
def store(store_config, repository):
    return AssetStore(store_config, repository, access_check=can_manage_asset)


# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------

@pytest.fixture
def client(db, repository):
    from fastapi.testclient import TestClient

    from taxsurvey.core.deps import get_asset_repository
    from taxsurvey.db.session import get_db
    from taxsurvey.main import app

    def _get_db():
        yield db

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_asset_repository] = lambda: repository
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
