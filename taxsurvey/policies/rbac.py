#taxsurvey/policies/rbac.py
from __future__ import annotations
from dataclasses import dataclass
from typing import FrozenSet

from taxsurvey.core.errors import AccessDenied
from taxsurvey.models.enums import UserRole


@dataclass(frozen=True)
class Principal:
    user_id: str
    role: UserRole
    display_name: str = "Unknown"


# Roles allowed to review, approve and manage any survey.
ELEVATED_ROLES: FrozenSet[UserRole] = frozenset(
    {
        UserRole.admin,
        UserRole.municipal_officer,
        UserRole.engineer,
    }
)


def is_elevated(principal: Principal) -> bool:
    return principal.role in ELEVATED_ROLES


def is_field_executive(principal: Principal) -> bool:
    return principal.role == UserRole.field_executive


def require_elevated(principal: Principal, action: str) -> None:
    if not is_elevated(principal):
        raise AccessDenied(
            f"Role {principal.role.value} not permitted for action {action}."
        )


def require_field_executive(principal: Principal, action: str) -> None:
    if not is_field_executive(principal):
        raise AccessDenied(
            f"Role {principal.role.value} not permitted for action {action}."
        )
