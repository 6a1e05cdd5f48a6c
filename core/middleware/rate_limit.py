"""
Rate limiting middleware.

Implements fixed-window rate limiting per client address.
"""

import hashlib
import time
from typing import Callable, Optional, Tuple

from django.conf import settings
from django.core.cache import cache
from django.http import HttpRequest, HttpResponse, JsonResponse

from core.http import get_client_ip
from core.metrics import rate_limited_total

VALIDATE_PATH = "/api/v1/validate/"


class RateLimitMiddleware:
    """
    Rate limiting middleware per client address.

    The public validation endpoint has its own, tighter budget and answers
    over-limit callers in its normal result shape with HTTP 200 so game
    clients never see a transport error. Other API paths get 429.
    """

    DEFAULT_VALIDATE_RATE_LIMIT = 30  # requests per minute
    DEFAULT_API_RATE_LIMIT = 100  # requests per minute
    RATE_LIMIT_WINDOW = 60  # seconds

    def __init__(self, get_response: Callable):
        """Initialize middleware."""
        self.get_response = get_response

    def _get_rate_limit_key(self, scope: str, client: str) -> str:
        client_hash = hashlib.sha256(client.encode()).hexdigest()[:16]
        return f"rate_limit:{scope}:{client_hash}"

    def _check_rate_limit(self, scope: str, client: str, limit: int) -> Tuple[bool, int, int]:
        """
        Check if request is within rate limit.

        Returns:
            Tuple of (is_allowed, remaining, reset_time)
        """
        window_start = int(time.time() / self.RATE_LIMIT_WINDOW)
        reset_time = (window_start + 1) * self.RATE_LIMIT_WINDOW
        full_key = f"{self._get_rate_limit_key(scope, client)}:{window_start}"

        if cache.get(full_key, 0) >= limit:
            return False, 0, reset_time

        try:
            new_count = cache.incr(full_key, 1)
        except ValueError:
            cache.set(full_key, 1, timeout=self.RATE_LIMIT_WINDOW)
            new_count = 1

        return True, max(0, limit - new_count), reset_time

    def _scope_for(self, request: HttpRequest) -> Optional[Tuple[str, int]]:
        if request.path.startswith(VALIDATE_PATH):
            return "validate", getattr(
                settings, "VALIDATE_RATE_LIMIT", self.DEFAULT_VALIDATE_RATE_LIMIT
            )
        if request.path.startswith("/api/v1/"):
            return "api", getattr(settings, "API_RATE_LIMIT", self.DEFAULT_API_RATE_LIMIT)
        return None

    def __call__(self, request: HttpRequest) -> HttpResponse:
        """
        Process request with rate limiting.

        Args:
            request: HTTP request

        Returns:
            HTTP response with rate limit headers
        """
        if not getattr(settings, "RATE_LIMIT_ENABLED", True):
            return self.get_response(request)

        scope = self._scope_for(request)
        if scope is None:
            return self.get_response(request)

        name, limit = scope
        client = get_client_ip(request) or "unknown"
        is_allowed, remaining, reset_time = self._check_rate_limit(name, client, limit)

        if is_allowed:
            response = self.get_response(request)
        else:
            rate_limited_total.labels(scope=name).inc()
            if name == "validate":
                response = JsonResponse(
                    {"valid": False, "error": "Rate limit exceeded. Please wait."}, status=200
                )
            else:
                response = JsonResponse(
                    {
                        "error": {
                            "code": "RATE_LIMIT_EXCEEDED",
                            "message": "Rate limit exceeded. Please try again later.",
                        }
                    },
                    status=429,
                )
                response["Retry-After"] = str(max(0, reset_time - int(time.time())))

        response["X-RateLimit-Limit"] = str(limit)
        response["X-RateLimit-Remaining"] = str(remaining)
        response["X-RateLimit-Reset"] = str(reset_time)
        return response
