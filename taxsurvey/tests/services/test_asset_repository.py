import base64
import json
from datetime import datetime, timedelta, timezone

import httpx
import pytest

from taxsurvey.core.errors import (
    RemoteDeleteError,
    RemoteNotFound,
    RemoteReadError,
    RemoteWriteError,
)
from taxsurvey.services.asset_repository import AssetRepositoryClient


def test_build_path_uses_utc_year_month_and_second_stamp(repository):
    # 23:30 at UTC-2 is already the next month in UTC
    local = datetime(2025, 1, 31, 23, 30, 5, tzinfo=timezone(timedelta(hours=-2)))

    path = repository.build_path("P-1", "sketch_photo", ".JPG", local)

    assert path == "images/properties/2025/02/P-1/sketch_photo_2025-02-01_01-30-05.jpg"


def test_build_path_accepts_extension_without_dot(repository):
    now = datetime(2025, 6, 1, 8, 0, 0, tzinfo=timezone.utc)
    assert repository.build_path("P-9", "signature", "png", now).endswith("/P-9/signature_2025-06-01_08-00-00.png")


def test_public_url_is_deterministic(repository):
    path = "images/properties/2025/06/P-1/owner_photo_2025-06-01_08-00-00.jpg"

    url = repository.public_url(path)

    assert url == (
        "https://gitlab.test/api/v4/projects/4242/repository/files/"
        "images%2Fproperties%2F2025%2F06%2FP-1%2Fowner_photo_2025-06-01_08-00-00.jpg/raw?ref=main"
    )
    assert repository.public_url(path) == url


def test_put_sends_base64_commit_payload(repository, gitlab):
    result = repository.put("images/properties/a.png", b"abc", "Upload owner_photo for property P-1")

    assert result.confirmed is True
    assert gitlab.files["images/properties/a.png"] == b"abc"

    body = gitlab.commits[-1]
    assert body["branch"] == "main"
    assert body["encoding"] == "base64"
    assert base64.b64decode(body["content"]) == b"abc"
    assert body["commit_message"] == "Upload owner_photo for property P-1"
    assert body["author_name"] == "Survey App System"
    assert body["author_email"] == "system@surveyapp.com"


def test_put_failure_raises_remote_write_error_with_summary(repository, gitlab):
    gitlab.fail_put = True

    with pytest.raises(RemoteWriteError) as ei:
        repository.put("x.png", b"abc", "msg")

    assert "500" in ei.value.message
    assert "internal failure" not in ei.value.message


def test_get_returns_bytes_and_distinguishes_not_found(repository, gitlab):
    gitlab.files["a/b.png"] = b"content"

    assert repository.get("a/b.png") == b"content"

    with pytest.raises(RemoteNotFound):
        repository.get("a/missing.png")


def test_get_server_error_is_read_error_not_not_found(repository, gitlab):
    gitlab.files["a/b.png"] = b"content"
    gitlab.fail_get = True

    with pytest.raises(RemoteReadError) as ei:
        repository.get("a/b.png")

    assert not isinstance(ei.value, RemoteNotFound)


def test_delete_confirms(repository, gitlab):
    gitlab.files["a/b.png"] = b"content"

    result = repository.delete("a/b.png", "Delete image: b.png")

    assert result.confirmed is True
    assert result.missing is False
    assert "a/b.png" not in gitlab.files


def test_delete_of_missing_path_is_soft(repository):
    result = repository.delete("a/never-there.png", "Delete image: never-there.png")

    assert result.confirmed is False
    assert result.missing is True


def test_delete_server_error_raises(repository, gitlab):
    gitlab.files["a/b.png"] = b"content"
    gitlab.fail_delete = True

    with pytest.raises(RemoteDeleteError):
        repository.delete("a/b.png", "Delete image: b.png")

    assert "a/b.png" in gitlab.files


def test_connect_errors_are_retried(repo_config, gitlab):
    failures = {"left": 2}

    def flaky(request):
        if failures["left"]:
            failures["left"] -= 1
            raise httpx.ConnectError("connection refused", request=request)
        return gitlab(request)

    client = AssetRepositoryClient(repo_config, transport=httpx.MockTransport(flaky))
    try:
        assert client.put("r/a.png", b"abc", "msg").confirmed is True
    finally:
        client.close()

    assert failures["left"] == 0


def test_connect_errors_exhaust_retries(repo_config):
    attempts = []

    def down(request):
        attempts.append(request)
        raise httpx.ConnectError("connection refused", request=request)

    client = AssetRepositoryClient(repo_config, transport=httpx.MockTransport(down))
    try:
        with pytest.raises(RemoteReadError):
            client.get("r/a.png")
    finally:
        client.close()

    assert len(attempts) == 1 + repo_config.connect_retries


def test_timeouts_are_not_retried(repo_config):
    attempts = []

    def slow(request):
        attempts.append(request)
        raise httpx.ReadTimeout("timed out", request=request)

    client = AssetRepositoryClient(repo_config, transport=httpx.MockTransport(slow))
    try:
        with pytest.raises(RemoteWriteError):
            client.put("r/a.png", b"abc", "msg")
    finally:
        client.close()

    assert len(attempts) == 1


def test_requests_carry_bearer_token(repo_config):
    seen = {}

    def capture(request):
        seen["auth"] = request.headers.get("authorization")
        seen["body"] = json.loads(request.content)
        return httpx.Response(204)

    client = AssetRepositoryClient(repo_config, transport=httpx.MockTransport(capture))
    try:
        client.delete("r/a.png", "Delete image: a.png")
    finally:
        client.close()

    assert seen["auth"] == "Bearer test-token"
    assert seen["body"] == {"branch": "main", "commit_message": "Delete image: a.png"}
