"""
Bearer token authentication middleware.

This middleware verifies JWT bearer tokens for the administrative and
account APIs and attaches the caller's account to the request.
"""

import logging
from typing import Optional

from django.http import HttpRequest, HttpResponse, JsonResponse
from django.utils.deprecation import MiddlewareMixin

from accounts.infrastructure.models import Account as AccountModel
from accounts.infrastructure.repositories.django_account_repository import (
    DjangoAccountRepository,
)
from accounts.infrastructure.security import TokenService
from core.domain.exceptions import InvalidTokenError

logger = logging.getLogger(__name__)

PROTECTED_PREFIXES = (
    "/api/v1/keys/",
    "/api/v1/admin/",
    "/api/v1/auth/me/",
)


def _error(code: str, message: str, status: int = 401) -> JsonResponse:
    return JsonResponse({"error": {"code": code, "message": message}}, status=status)


class BearerTokenAuthenticationMiddleware(MiddlewareMixin):
    """
    Middleware for bearer token authentication.

    This middleware:
    1. Requires a bearer token on protected API paths
    2. Verifies the token signature and expiry
    3. Loads the account fresh from the database so role changes apply at once
    4. Returns 401 Unauthorized if authentication fails
    """

    token_service = TokenService()
    account_repository = DjangoAccountRepository()

    def process_request(self, request: HttpRequest) -> Optional[HttpResponse]:
        """
        Process request and validate authentication.

        Args:
            request: HTTP request

        Returns:
            HttpResponse with 401 if authentication fails, None otherwise
        """
        request.account = None  # type: ignore
        if not request.path.startswith(PROTECTED_PREFIXES):
            return None

        header = request.headers.get("Authorization", "")
        if not header.startswith("Bearer ") or not header[7:].strip():
            return _error("NOT_AUTHENTICATED", "No token provided")

        try:
            claims = self.token_service.decode(header[7:].strip())
        except InvalidTokenError as e:
            logger.info("Rejected bearer token on %s: %s", request.path, e.message)
            return _error(e.code, e.message)

        try:
            # pylint: disable=no-member
            model = AccountModel.objects.filter(id=claims.account_id).first()
        except Exception as e:  # pylint: disable=broad-exception-caught
            logger.error("Error loading account for token: %s", e, exc_info=True)
            return _error("INTERNAL_ERROR", "Authentication error", status=500)

        if model is None:
            return _error("INVALID_TOKEN", "User not found")

        # pylint: disable=protected-access
        request.account = self.account_repository._to_domain(model)  # type: ignore
        return None
