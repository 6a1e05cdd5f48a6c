"""
Observability middleware.

Structured start/end records for every request, tagged with a correlation
id, the API surface the path belongs to and, when a span is active, the
OpenTelemetry trace id.
"""

import logging
import time
import uuid
from typing import Callable, Dict, Optional

from django.http import HttpRequest, HttpResponse
from opentelemetry import trace
from opentelemetry.trace import format_span_id, format_trace_id

from core.http import get_client_ip

logger = logging.getLogger(__name__)

# Longest prefix first
SURFACES = (
    ("/api/v1/validate/", "validate"),
    ("/api/v1/auth/", "auth"),
    ("/api/v1/keys/", "keys"),
    ("/api/v1/admin/", "admin"),
    ("/health/", "health"),
    ("/ready/", "health"),
)


def api_surface(path: str) -> str:
    """Name of the API surface a path belongs to."""
    for prefix, name in SURFACES:
        if path.startswith(prefix):
            return name
    return "other"


def _trace_fields() -> Dict[str, str]:
    context = trace.get_current_span().get_span_context()
    if not context.is_valid:
        return {}
    return {
        "trace_id": format_trace_id(context.trace_id),
        "span_id": format_span_id(context.span_id),
    }


class ObservabilityMiddleware:
    """
    Correlation ids, request timing and structured request logs.

    Responses carry X-Correlation-ID and X-Request-Duration, plus
    X-Trace-ID when tracing is active.
    """

    def __init__(self, get_response: Callable):
        self.get_response = get_response

    def __call__(self, request: HttpRequest) -> HttpResponse:
        correlation_id = request.headers.get("X-Correlation-ID") or str(uuid.uuid4())
        request.correlation_id = correlation_id  # type: ignore

        fields = {
            "correlation_id": correlation_id,
            "surface": api_surface(request.path),
            "method": request.method,
            "path": request.path,
        }
        fields.update(_trace_fields())
        trace_id: Optional[str] = fields.get("trace_id")
        if trace_id:
            request.trace_id = trace_id  # type: ignore

        logger.info(
            "Request started",
            extra={
                **fields,
                "remote_addr": get_client_ip(request),
                "user_agent": request.META.get("HTTP_USER_AGENT", ""),
            },
        )

        started = time.monotonic()
        try:
            response = self.get_response(request)
        except Exception as e:
            logger.error(
                "Request failed",
                extra={
                    **fields,
                    "error": str(e),
                    "error_type": type(e).__name__,
                    "duration_ms": round((time.monotonic() - started) * 1000, 2),
                },
                exc_info=True,
            )
            raise

        duration = time.monotonic() - started
        self._log_completion(request, response, fields, duration)

        response["X-Correlation-ID"] = correlation_id
        response["X-Request-Duration"] = f"{duration:.3f}"
        if trace_id:
            response["X-Trace-ID"] = trace_id
        return response

    def _log_completion(
        self, request: HttpRequest, response: HttpResponse, fields: Dict[str, str], duration: float
    ) -> None:
        extra = {
            **fields,
            "status_code": response.status_code,
            "duration_ms": round(duration * 1000, 2),
        }
        # Set by the bearer token middleware
        account = getattr(request, "account", None)
        if account is not None:
            extra["account_id"] = str(account.id)
            extra["account_role"] = account.role.value

        if response.status_code >= 500:
            logger.error("Request completed with server error", extra=extra)
        elif response.status_code >= 400:
            logger.warning("Request completed with client error", extra=extra)
        else:
            logger.info("Request completed", extra=extra)
