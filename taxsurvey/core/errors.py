# taxsurvey/core/errors.py
from __future__ import annotations

from typing import Optional


class SurveyError(Exception):
    """
    Root of every domain failure raised by the services.

    Each subclass carries a stable `kind` (used as the machine-readable error
    code in API responses) and the HTTP status the adapter maps it to.
    """

    kind: str = "error"
    status_code: int = 500

    def __init__(self, message: str = ""):
        super().__init__(message or self.__class__.__name__)
        self.message = message or self.__class__.__name__


# ─────────────────────────────────────────────
# INPUT
# ─────────────────────────────────────────────


class ValidationError(SurveyError):
    kind = "validation_error"
    status_code = 400


class InvalidAsset(ValidationError):
    kind = "invalid_asset"


# ─────────────────────────────────────────────
# LOOKUP / ACCESS
# ─────────────────────────────────────────────


class NotFound(SurveyError):
    kind = "not_found"
    status_code = 404


class AssetNotFound(NotFound):
    kind = "asset_not_found"


class AccessDenied(SurveyError):
    kind = "access_denied"
    status_code = 403


class AlreadyExists(SurveyError):
    kind = "already_exists"
    status_code = 409


# ─────────────────────────────────────────────
# LIFECYCLE
# ─────────────────────────────────────────────


class LifecycleError(SurveyError):
    kind = "lifecycle_error"
    status_code = 409


class AlreadyDecided(LifecycleError):
    kind = "already_decided"

    def __init__(self, status: str):
        super().__init__(f"Survey has already been {status}.")
        self.status = status


class InvalidTransition(LifecycleError):
    kind = "invalid_transition"


class EditCommentRequired(LifecycleError):
    kind = "edit_comment_required"
    status_code = 400


class ReasonRequired(LifecycleError):
    kind = "reason_required"
    status_code = 400


# ─────────────────────────────────────────────
# REMOTE REPOSITORY
# ─────────────────────────────────────────────


class RemoteError(SurveyError):
    """
    Failure talking to the asset repository. `message` is a short summary;
    provider response bodies are logged, never attached.
    """

    kind = "remote_error"
    status_code = 502

    def __init__(self, message: str = "", *, path: Optional[str] = None, status: Optional[int] = None):
        super().__init__(message)
        self.path = path
        self.status = status


class RemoteWriteError(RemoteError):
    kind = "remote_write_error"


class RemoteReadError(RemoteError):
    kind = "remote_read_error"


class RemoteNotFound(RemoteReadError):
    kind = "remote_not_found"
    status_code = 404


class RemoteDeleteError(RemoteError):
    kind = "remote_delete_error"


# ─────────────────────────────────────────────
# UPLOAD
# ─────────────────────────────────────────────


class UploadFailed(SurveyError):
    kind = "upload_failed"
    status_code = 502


class AssetSlotConflict(UploadFailed):
    """A concurrent upload installed the slot first; our remote object is orphaned."""

    kind = "asset_slot_conflict"
    status_code = 409
