"""
Test settings for KeyManagementService.
"""

import os
import urllib.parse

from .base import *  # noqa: F403, F401

DEBUG = False

ENVIRONMENT = "test"

# Use PostgreSQL in CI (from DATABASE_URL), SQLite in-memory for local tests
DATABASE_URL = os.environ.get("DATABASE_URL")
if DATABASE_URL and DATABASE_URL.startswith("postgresql"):
    parsed = urllib.parse.urlparse(DATABASE_URL)
    db_name = parsed.path.lstrip("/")
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.postgresql",
            "NAME": db_name,
            "USER": parsed.username or "postgres",
            "PASSWORD": parsed.password or "",
            "HOST": parsed.hostname or "localhost",
            "PORT": parsed.port or 5432,
            "TEST": {"NAME": db_name + "_test"},
        }
    }
else:
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.sqlite3",
            "NAME": ":memory:",
        }
    }

# The local apps ship no migrations; tables are created from the models
MIGRATION_MODULES = {}

# Use in-memory cache for tests
CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
    }
}

# Password hashers for faster tests
PASSWORD_HASHERS = [
    "django.contrib.auth.hashers.MD5PasswordHasher",
]

JWT_SECRET = "test-jwt-secret-with-enough-length-for-hs256"

# Individual tests turn this back on
RATE_LIMIT_ENABLED = False

OTEL_ENABLED = False
KEY_EXPIRY_SWEEP_ENABLED = False
CELERY_BEAT_SCHEDULE = {}
CELERY_TASK_ALWAYS_EAGER = True

# Disable logging during tests
LOGGING_CONFIG = None
