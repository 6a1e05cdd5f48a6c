"""
Role checks for API views.

Every protected view goes through require_role so access decisions are
made in one place.
"""
from typing import Optional

from rest_framework.request import Request

from accounts.domain.access import MODIFY_ROLE, VIEW_ROLE, Denied, authorize
from accounts.domain.account import Account
from core.domain.exceptions import AccessDeniedError, NotAuthenticatedError
from core.domain.value_objects import Role


def current_account(request: Request) -> Account:
    """
    Return the authenticated account attached by the auth middleware.

    Raises:
        NotAuthenticatedError: If the request carries no valid token
    """
    account: Optional[Account] = getattr(request, "account", None)
    if account is None:
        raise NotAuthenticatedError()
    return account


def require_role(request: Request, required_role: Role) -> Account:
    """
    Return the caller if their role is at least required_role.

    Raises:
        NotAuthenticatedError: If the request carries no valid token
        AccessDeniedError: If the caller's role is too low
    """
    account = current_account(request)
    result = authorize(account.role, required_role)
    if isinstance(result, Denied):
        raise AccessDeniedError(result.message)
    return account


def require_view(request: Request) -> Account:
    """Caller must be allowed to read administrative data."""
    return require_role(request, VIEW_ROLE)


def require_modify(request: Request) -> Account:
    """Caller must be allowed to change keys and accounts."""
    return require_role(request, MODIFY_ROLE)
