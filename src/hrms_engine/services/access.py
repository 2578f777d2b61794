"""Caller identity passed explicitly into every service call."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from uuid import UUID

from hrms_engine.services.errors import PermissionDeniedError


class Role(str, Enum):
    EMPLOYEE = "employee"
    HR = "hr"
    ADMIN = "admin"


@dataclass(frozen=True)
class Actor:
    """The authenticated user performing an action."""

    user_id: UUID
    role: Role

    @property
    def is_privileged(self) -> bool:
        """HR and admin can act on other employees' records."""
        return self.role in (Role.HR, Role.ADMIN)

    def require_privileged(self, action: str) -> None:
        if not self.is_privileged:
            raise PermissionDeniedError(f"Only HR or Admin can {action}")
