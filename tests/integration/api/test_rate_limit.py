"""
Integration tests for rate limiting and health endpoints.
"""

from types import SimpleNamespace

import pytest
from django.core.cache import cache
from django.test import override_settings
from django.urls import reverse

from keys.infrastructure.models import UsageLog


@pytest.fixture
def rate_limited(monkeypatch):
    """Enable a limit of two requests per window with a frozen clock."""
    monkeypatch.setattr(
        "core.middleware.rate_limit.time", SimpleNamespace(time=lambda: 1_000_020.0)
    )
    cache.clear()
    with override_settings(RATE_LIMIT_ENABLED=True, VALIDATE_RATE_LIMIT=2, API_RATE_LIMIT=2):
        yield
    cache.clear()


@pytest.mark.django_db
@pytest.mark.integration
class TestRateLimit:
    """Integration tests for RateLimitMiddleware."""

    def test_validate_over_limit_answers_200(self, api_client, create_key_model, rate_limited):
        """Test validation callers over the limit get a normal-shaped answer."""
        key = create_key_model(max_uses=0)
        responses = [
            api_client.post(reverse("validate-key"), {"key": key.key_value}, format="json")
            for _ in range(3)
        ]

        assert [r.json()["valid"] for r in responses] == [True, True, False]
        assert responses[2].status_code == 200
        assert responses[2].json() == {"valid": False, "error": "Rate limit exceeded. Please wait."}
        assert responses[2]["X-RateLimit-Remaining"] == "0"
        assert UsageLog.objects.count() == 2

    def test_api_over_limit_is_429(self, admin_client, rate_limited):
        """Test other API paths answer 429 once over the limit."""
        for _ in range(2):
            assert admin_client.get(reverse("key-list")).status_code == 200

        response = admin_client.get(reverse("key-list"))

        assert response.status_code == 429
        assert response.json()["error"]["code"] == "RATE_LIMIT_EXCEEDED"
        assert response["Retry-After"] == "60"

    def test_limits_are_per_address(self, api_client, create_key_model, rate_limited):
        """Test each client address has its own budget."""
        key = create_key_model(max_uses=0)
        for _ in range(2):
            api_client.post(reverse("validate-key"), {"key": key.key_value}, format="json")

        response = api_client.post(
            reverse("validate-key"),
            {"key": key.key_value},
            format="json",
            REMOTE_ADDR="192.0.2.77",
        )

        assert response.json()["valid"] is True

    def test_health_not_limited(self, client, rate_limited):
        """Test health checks are outside the API budget."""
        for _ in range(3):
            assert client.get(reverse("health")).status_code == 200


@pytest.mark.django_db
@pytest.mark.integration
class TestHealth:
    """Integration tests for health endpoints."""

    def test_health(self, client):
        """Test the liveness endpoint."""
        response = client.get(reverse("health"))
        assert response.json() == {"status": "healthy", "service": "key-management-service"}

    def test_ready(self, client):
        """Test readiness checks database and cache."""
        response = client.get(reverse("ready"))
        assert response.status_code == 200
        assert response.json()["checks"] == {"database": True, "cache": True}

    def test_component_checks(self, client):
        """Test the database and cache checks."""
        assert client.get(reverse("health-db")).json()["database"] == "connected"
        assert client.get(reverse("health-cache")).json()["cache"] == "connected"
