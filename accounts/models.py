"""
Model registration for the accounts app.
"""
from accounts.infrastructure.models import Account  # noqa: F401
