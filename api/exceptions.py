"""
API exception handling.

Every error leaves the API as {"error": {"code", "message"}}. Domain
exceptions pick their HTTP status from the exception family; anything
unexpected is logged with its traceback and reported as INTERNAL_ERROR.
"""

import logging
from typing import Any, Dict, Optional, Tuple, Type

from django.http import Http404
from rest_framework import status
from rest_framework.exceptions import APIException, ValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler

from core.domain.exceptions import (
    AccessDeniedError,
    AccountLockedError,
    AccountNotFoundError,
    AuthenticationException,
    DomainException,
    EmailAlreadyRegisteredError,
    KeyAlreadyClaimedError,
    KeyGenerationError,
    KeyNotFoundError,
)
from core.metrics import errors_total
from core.middleware.metrics import normalize_endpoint

logger = logging.getLogger(__name__)

# First match wins, so subclasses come before their bases
STATUS_BY_EXCEPTION: Tuple[Tuple[Type[DomainException], int], ...] = (
    (KeyNotFoundError, status.HTTP_404_NOT_FOUND),
    (AccountNotFoundError, status.HTTP_404_NOT_FOUND),
    (AccountLockedError, status.HTTP_429_TOO_MANY_REQUESTS),
    (AuthenticationException, status.HTTP_401_UNAUTHORIZED),
    (AccessDeniedError, status.HTTP_403_FORBIDDEN),
    (EmailAlreadyRegisteredError, status.HTTP_409_CONFLICT),
    (KeyAlreadyClaimedError, status.HTTP_409_CONFLICT),
    (KeyGenerationError, status.HTTP_503_SERVICE_UNAVAILABLE),
)


def status_for(exc: DomainException) -> int:
    """HTTP status for a domain exception, 400 when nothing more specific applies."""
    for exception_type, status_code in STATUS_BY_EXCEPTION:
        if isinstance(exc, exception_type):
            return status_code
    return status.HTTP_400_BAD_REQUEST


def _error(code: str, message: Any, status_code: int) -> Response:
    return Response({"error": {"code": code, "message": message}}, status=status_code)


def custom_exception_handler(exc: Exception, context: Dict[str, Any]) -> Response:
    """DRF exception handler producing the service's error envelope."""
    request = context.get("request")
    trace_id = _get_trace_id(request)
    endpoint = normalize_endpoint(request.path) if request else "unknown"

    if isinstance(exc, DomainException):
        errors_total.labels(error_type=exc.code, endpoint=endpoint).inc()
        logger.warning(
            "Domain exception: %s - %s", exc.code, exc.message, extra={"trace_id": trace_id}
        )
        response = _error(exc.code, exc.message, status_for(exc))
    elif isinstance(exc, ValidationError):
        response = _error("VALIDATION_ERROR", exc.detail, status.HTTP_400_BAD_REQUEST)
    elif isinstance(exc, APIException):
        response = exception_handler(exc, context)
        detail = response.data.get("detail", exc.default_detail) if response.data else exc.detail
        response.data = {
            "error": {"code": exc.default_code.upper().replace("-", "_"), "message": detail}
        }
    elif isinstance(exc, Http404):
        response = _error("NOT_FOUND", "Resource not found", status.HTTP_404_NOT_FOUND)
    else:
        errors_total.labels(error_type="internal_error", endpoint=endpoint).inc()
        logger.error("Unexpected error: %s", exc, extra={"trace_id": trace_id}, exc_info=True)
        response = _error(
            "INTERNAL_ERROR", "An internal error occurred", status.HTTP_500_INTERNAL_SERVER_ERROR
        )

    if trace_id:
        response["X-Trace-ID"] = trace_id
    return response


def _get_trace_id(request) -> Optional[str]:
    if request is None:
        return None
    return getattr(request, "trace_id", getattr(request, "correlation_id", None))
