"""
Role-based access rules.

Admins may read everything; only super admins may change anything.
"""
from dataclasses import dataclass
from typing import Union

from core.domain.value_objects import Role

VIEW_ROLE = Role.ADMIN
MODIFY_ROLE = Role.SUPER_ADMIN


@dataclass(frozen=True)
class Authorized:
    role: Role


@dataclass(frozen=True)
class Denied:
    required_role: Role

    @property
    def message(self) -> str:
        return f"Access denied - {self.required_role.label} required"


AccessResult = Union[Authorized, Denied]


def can_view(role: Role) -> bool:
    """Read access to administrative data."""
    return role >= VIEW_ROLE


def can_modify(role: Role) -> bool:
    """Write access to keys and accounts."""
    return role >= MODIFY_ROLE


def authorize(role: Role, required_role: Role) -> AccessResult:
    """
    Check role against the minimum required role.

    Args:
        role: Caller's role
        required_role: Minimum role for the operation

    Returns:
        Authorized or Denied
    """
    if role >= required_role:
        return Authorized(role=role)
    return Denied(required_role=required_role)
