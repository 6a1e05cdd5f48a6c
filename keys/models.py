"""
Model registration for the keys app.
"""
from keys.infrastructure.models import Key, UsageLog  # noqa: F401
