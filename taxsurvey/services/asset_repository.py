# taxsurvey/services/asset_repository.py
from __future__ import annotations

import base64
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Type
from urllib.parse import quote

import httpx

from taxsurvey.core.config import AssetRepositoryConfig
from taxsurvey.core.errors import (
    RemoteDeleteError,
    RemoteError,
    RemoteNotFound,
    RemoteReadError,
    RemoteWriteError,
)

logger = logging.getLogger(__name__)

# GitLab answers 400 with this text when deleting a path that is already gone.
_MISSING_MARKERS = ("doesn't exist", "does not exist", "not found")


@dataclass(frozen=True)
class PutResult:
    path: str
    confirmed: bool = True


@dataclass(frozen=True)
class DeleteResult:
    path: str
    confirmed: bool
    missing: bool = False


class AssetRepositoryClient:
    """
    Thin client over a GitLab-style commit-based file API.

    Every call has a bounded timeout. Only connection-establishment failures
    (the request never reached the server) are retried; a timeout or an
    error response is surfaced as the matching Remote*Error.
    """

    def __init__(
        self,
        config: AssetRepositoryConfig,
        *,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.config = config
        self._client = httpx.Client(
            timeout=config.timeout_seconds,
            transport=transport,
            headers={"Authorization": f"Bearer {config.token}"},
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "AssetRepositoryClient":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    # ─────────────────────────────────────────────
    # PATHS / URLS
    # ─────────────────────────────────────────────

    def build_path(
        self,
        property_id: str,
        image_type: str,
        ext: str,
        now: Optional[datetime] = None,
    ) -> str:
        """
        {repo_root}/{YYYY}/{MM}/{property_id}/{image_type}_{YYYY-MM-DD_HH-MM-SS}{ext}

        Year, month and timestamp come from UTC.
        """
        now = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
        if ext and not ext.startswith("."):
            ext = f".{ext}"
        stamp = now.strftime("%Y-%m-%d_%H-%M-%S")
        return (
            f"{self.config.repo_root}/{now:%Y}/{now:%m}/{property_id}/"
            f"{image_type}_{stamp}{ext.lower()}"
        )

    def _files_url(self, path: str) -> str:
        project = quote(str(self.config.project_id), safe="")
        return f"{self.config.api_url}/projects/{project}/repository/files/{quote(path, safe='')}"

    def public_url(self, path: str) -> str:
        return f"{self._files_url(path)}/raw?ref={quote(self.config.branch, safe='')}"

    # ─────────────────────────────────────────────
    # TRANSPORT
    # ─────────────────────────────────────────────

    def _send(
        self,
        method: str,
        url: str,
        *,
        path: str,
        error_cls: Type[RemoteError],
        **kwargs: Any,
    ) -> httpx.Response:
        attempts = 1 + max(self.config.connect_retries, 0)
        for attempt in range(1, attempts + 1):
            try:
                return self._client.request(method, url, **kwargs)
            except httpx.ConnectError as exc:
                logger.warning(
                    "[asset-repo] %s connect failed path=%s attempt=%d/%d: %s",
                    method, path, attempt, attempts, exc,
                )
                if attempt == attempts:
                    raise error_cls("Asset repository unreachable.", path=path) from exc
            except httpx.TimeoutException as exc:
                logger.warning("[asset-repo] %s timed out path=%s: %s", method, path, exc)
                raise error_cls("Asset repository timed out.", path=path) from exc
            except httpx.HTTPError as exc:
                logger.warning("[asset-repo] %s transport error path=%s: %s", method, path, exc)
                raise error_cls("Asset repository request failed.", path=path) from exc
        raise error_cls("Asset repository unreachable.", path=path)

    def _log_failure(self, op: str, path: str, resp: httpx.Response) -> None:
        # provider body goes to logs only
        logger.error(
            "[asset-repo] %s failed path=%s status=%s body=%s",
            op, path, resp.status_code, resp.text[:500],
        )

    # ─────────────────────────────────────────────
    # OPERATIONS
    # ─────────────────────────────────────────────

    def put(self, path: str, content: bytes, commit_message: str) -> PutResult:
        body: Dict[str, Any] = {
            "branch": self.config.branch,
            "content": base64.b64encode(content).decode("ascii"),
            "encoding": "base64",
            "commit_message": commit_message,
            "author_email": self.config.author_email,
            "author_name": self.config.author_name,
        }
        resp = self._send("POST", self._files_url(path), path=path, error_cls=RemoteWriteError, json=body)
        if not resp.is_success:
            self._log_failure("put", path, resp)
            raise RemoteWriteError(
                f"Asset repository write failed (status {resp.status_code}).",
                path=path,
                status=resp.status_code,
            )

        logger.info("[asset-repo] put ok path=%s bytes=%d", path, len(content))
        return PutResult(path=path, confirmed=True)

    def get(self, path: str) -> bytes:
        resp = self._send(
            "GET",
            f"{self._files_url(path)}/raw",
            path=path,
            error_cls=RemoteReadError,
            params={"ref": self.config.branch},
        )
        if resp.status_code == 404:
            raise RemoteNotFound("Asset content not found in repository.", path=path, status=404)
        if not resp.is_success:
            self._log_failure("get", path, resp)
            raise RemoteReadError(
                f"Asset repository read failed (status {resp.status_code}).",
                path=path,
                status=resp.status_code,
            )
        return resp.content

    def delete(self, path: str, commit_message: str) -> DeleteResult:
        """
        A path that is already gone is a soft failure: logged, reported as
        missing, never raised.
        """
        resp = self._send(
            "DELETE",
            self._files_url(path),
            path=path,
            error_cls=RemoteDeleteError,
            json={"branch": self.config.branch, "commit_message": commit_message},
        )
        if resp.is_success:
            logger.info("[asset-repo] delete ok path=%s", path)
            return DeleteResult(path=path, confirmed=True)

        if _is_missing(resp):
            logger.warning("[asset-repo] delete of missing path=%s status=%s", path, resp.status_code)
            return DeleteResult(path=path, confirmed=False, missing=True)

        self._log_failure("delete", path, resp)
        raise RemoteDeleteError(
            f"Asset repository delete failed (status {resp.status_code}).",
            path=path,
            status=resp.status_code,
        )


def _is_missing(resp: httpx.Response) -> bool:
    if resp.status_code == 404:
        return True
    if resp.status_code != 400:
        return False
    text = resp.text.lower()
    return any(marker in text for marker in _MISSING_MARKERS)
