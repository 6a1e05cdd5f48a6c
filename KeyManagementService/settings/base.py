"""
Base Django settings for KeyManagementService.

These settings are shared across all environments.
Environment-specific overrides are in dev.py, test.py, and prod.py
"""
import os
from pathlib import Path

from .logging import get_logging_config

# Build paths inside the project
BASE_DIR = Path(__file__).resolve().parent.parent.parent

ENVIRONMENT = os.environ.get("ENVIRONMENT", "development")

# SECURITY WARNING: keep the secret key used in production secret!
SECRET_KEY = os.environ.get(
    "SECRET_KEY", "django-insecure-k3y-m4n4g3m3nt-5erv1ce-l0c4l-d3v3l0pm3nt-0nly"
)

# Application definition
INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    # Third party
    "rest_framework",
    "drf_spectacular",
    # Local apps
    "KeyManagementService.apps.KeyManagementServiceConfig",
    "core",
    "keys",
    "accounts",
    "api",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
    # Custom middleware
    "core.middleware.observability.ObservabilityMiddleware",
    "core.middleware.metrics.MetricsMiddleware",
    "core.middleware.rate_limit.RateLimitMiddleware",
    "core.middleware.auth.BearerTokenAuthenticationMiddleware",
]

ROOT_URLCONF = "KeyManagementService.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.debug",
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    },
]

WSGI_APPLICATION = "KeyManagementService.wsgi.application"
ASGI_APPLICATION = "KeyManagementService.asgi.application"

# Database
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.postgresql",
        "NAME": os.environ.get("DB_NAME", "key_service"),
        "USER": os.environ.get("DB_USER", "postgres"),
        "PASSWORD": os.environ.get("DB_PASSWORD", "postgres"),
        "HOST": os.environ.get("DB_HOST", "localhost"),
        "PORT": os.environ.get("DB_PORT", "5432"),
        "OPTIONS": {
            "connect_timeout": 10,
        },
    }
}

# Password validation
AUTH_PASSWORD_VALIDATORS = [
    {
        "NAME": "django.contrib.auth.password_validation.MinimumLengthValidator",
    },
]

# Internationalization
LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

# Static files (CSS, JavaScript, Images)
STATIC_URL = "static/"
STATIC_ROOT = BASE_DIR / "staticfiles"

# Default primary key field type
DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# REST Framework
REST_FRAMEWORK = {
    "DEFAULT_RENDERER_CLASSES": [
        "rest_framework.renderers.JSONRenderer",
    ],
    "DEFAULT_PARSER_CLASSES": [
        "rest_framework.parsers.JSONParser",
    ],
    "DEFAULT_AUTHENTICATION_CLASSES": [],
    "DEFAULT_PERMISSION_CLASSES": [],
    "UNAUTHENTICATED_USER": None,
    "EXCEPTION_HANDLER": "api.exceptions.custom_exception_handler",
    "DEFAULT_SCHEMA_CLASS": "drf_spectacular.openapi.AutoSchema",
    # ?format= selects the export format, not a renderer
    "URL_FORMAT_OVERRIDE": None,
    "TEST_REQUEST_DEFAULT_FORMAT": "json",
}

# drf-spectacular settings
SPECTACULAR_SETTINGS = {
    "TITLE": "Key Management Service API",
    "DESCRIPTION": (
        "License key validation and lifecycle service. Provides the public "
        "validation endpoint used by the client application and the "
        "administrative API for issuing and managing keys and accounts."
    ),
    "VERSION": "1.0.0",
    "SERVE_INCLUDE_SCHEMA": False,
    "COMPONENT_SPLIT_REQUEST": True,
    "SCHEMA_PATH_PREFIX": "/api/v1",
    "TAGS": [
        {"name": "Validation", "description": "Public key validation"},
        {"name": "Auth", "description": "Registration, login and profile"},
        {"name": "Keys", "description": "Key issuance and management"},
        {"name": "Admin", "description": "Reporting and account management"},
    ],
}

# Redis Cache
CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.redis.RedisCache",
        "LOCATION": os.environ.get("REDIS_URL", "redis://127.0.0.1:6379/1"),
        "OPTIONS": {
            "socket_connect_timeout": 5,
            "socket_timeout": 5,
        },
    }
}

# Keys
KEY_PREFIX = os.environ.get("KEY_PREFIX", "RNSXM")
KEY_BATCH_LIMIT = 100

# Accounts and tokens
JWT_SECRET = os.environ.get("JWT_SECRET", SECRET_KEY)
TOKEN_TTL_DAYS = int(os.environ.get("TOKEN_TTL_DAYS", "7"))
LOGIN_LOCKOUT_THRESHOLD = 5
LOGIN_LOCKOUT_MINUTES = 30

# Rate limiting (requests per minute per client address)
RATE_LIMIT_ENABLED = True
VALIDATE_RATE_LIMIT = int(os.environ.get("VALIDATE_RATE_LIMIT", "30"))
API_RATE_LIMIT = int(os.environ.get("API_RATE_LIMIT", "100"))

# Celery
CELERY_BROKER_URL = os.environ.get("CELERY_BROKER_URL", "redis://127.0.0.1:6379/0")
CELERY_RESULT_BACKEND = os.environ.get("CELERY_RESULT_BACKEND", CELERY_BROKER_URL)
CELERY_TASK_SERIALIZER = "json"
CELERY_ACCEPT_CONTENT = ["json"]
CELERY_TIMEZONE = TIME_ZONE

# Expiry is applied lazily on validation; the sweep only tidies up listings
KEY_EXPIRY_SWEEP_ENABLED = os.environ.get("KEY_EXPIRY_SWEEP_ENABLED", "false").lower() == "true"
KEY_EXPIRY_SWEEP_MINUTES = int(os.environ.get("KEY_EXPIRY_SWEEP_MINUTES", "15"))
CELERY_BEAT_SCHEDULE = {}
if KEY_EXPIRY_SWEEP_ENABLED:
    CELERY_BEAT_SCHEDULE["sweep-expired-keys"] = {
        "task": "keys.tasks.sweep_expired_keys",
        "schedule": KEY_EXPIRY_SWEEP_MINUTES * 60,
    }

# Observability
OTEL_ENABLED = os.environ.get("OTEL_ENABLED", "false").lower() == "true"
LOGGING = get_logging_config(ENVIRONMENT)
