"""
App configuration for Key Management Service.
"""

import logging
import os
import sys

from django.apps import AppConfig
from django.conf import settings

logger = logging.getLogger(__name__)

# Commands that never serve requests
SKIP_COMMANDS = {"migrate", "makemigrations", "collectstatic", "check"}


class KeyManagementServiceConfig(AppConfig):
    """App configuration for KeyManagementService."""

    name = "KeyManagementService"
    verbose_name = "Key Management Service"

    def ready(self):
        """Called when Django starts."""
        from core.infrastructure.event_handlers import register_event_handlers

        register_event_handlers()

        if len(sys.argv) > 1 and sys.argv[1] in SKIP_COMMANDS:
            return
        # Django's autoreloader runs ready() in a parent process too
        if os.environ.get("RUN_MAIN") == "false":
            return
        if getattr(settings, "OTEL_ENABLED", False):
            self.setup_observability()

    def setup_observability(self):
        """Setup tracing after apps are ready."""
        from core.instrumentation import setup_opentelemetry

        try:
            setup_opentelemetry()
        except Exception as e:  # pylint: disable=broad-exception-caught
            logger.warning("Failed to setup OpenTelemetry: %s", e, exc_info=True)
