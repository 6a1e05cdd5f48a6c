"""
Production settings for KeyManagementService.
"""

import os

from .base import *  # noqa: F403, F401

DEBUG = False

ENVIRONMENT = "production"

ALLOWED_HOSTS = os.environ.get("ALLOWED_HOSTS", "").split(",")

# Security settings
SECURE_SSL_REDIRECT = os.environ.get("SECURE_SSL_REDIRECT", "true").lower() == "true"
SESSION_COOKIE_SECURE = True
CSRF_COOKIE_SECURE = True
SECURE_CONTENT_TYPE_NOSNIFF = True
X_FRAME_OPTIONS = "DENY"

# Secrets must come from the environment
SECRET_KEY = os.environ["SECRET_KEY"]
JWT_SECRET = os.environ.get("JWT_SECRET", SECRET_KEY)

LOGGING = get_logging_config(ENVIRONMENT)  # noqa: F405
