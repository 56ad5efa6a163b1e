"""Per-request authorization context.

The caller is passed explicitly into every service call; there is no
ambient "current user".
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from uuid import UUID

from payroll_hold.errors import AuthorizationError


class Role(str, Enum):
    """Caller roles."""

    EMPLOYEE = "employee"
    ADMIN = "admin"


class Access(str, Enum):
    """Access levels required by operations."""

    SELF = "self"  # caller is the subject employee
    ADMIN = "admin"  # caller may handle accounts


@dataclass(frozen=True)
class CallerContext:
    """Who is calling, resolved once per request."""

    user_id: UUID
    role: Role
    employee_id: UUID | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    @property
    def actor_type(self) -> str:
        return self.role.value

    @classmethod
    def admin(cls, user_id: UUID) -> CallerContext:
        return cls(user_id=user_id, role=Role.ADMIN)

    @classmethod
    def for_employee(cls, employee_id: UUID) -> CallerContext:
        return cls(user_id=employee_id, role=Role.EMPLOYEE, employee_id=employee_id)


def assert_access(
    caller: CallerContext,
    access: Access,
    subject_employee_id: UUID | None = None,
    allow_admin: bool = False,
) -> None:
    """Raise AuthorizationError unless the caller has the required access.

    Access.SELF is satisfied when the caller is the subject employee, or
    by an admin when allow_admin is set (read-only views).
    """
    if access == Access.ADMIN:
        if not caller.is_admin:
            raise AuthorizationError("Admin role required")
        return

    if subject_employee_id is None:
        raise AuthorizationError("Subject employee required for self-service access")
    if caller.employee_id is not None and caller.employee_id == subject_employee_id:
        return
    if allow_admin and caller.is_admin:
        return
    raise AuthorizationError(f"Caller may not act for employee {subject_employee_id}")
