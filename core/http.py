"""
Request helpers.
"""
from typing import Optional

from django.http import HttpRequest

# Longest address stored in the usage log
MAX_CLIENT_ADDRESS_LENGTH = 64


def get_client_ip(request: HttpRequest) -> Optional[str]:
    """
    Client address, preferring the first X-Forwarded-For hop.

    The header is client-controlled, so the result is cut to
    MAX_CLIENT_ADDRESS_LENGTH characters.
    """
    address = None
    forwarded = request.META.get("HTTP_X_FORWARDED_FOR", "")
    if forwarded:
        address = forwarded.split(",")[0].strip() or None
    if address is None:
        address = request.META.get("REMOTE_ADDR")
    return address[:MAX_CLIENT_ADDRESS_LENGTH] if address else None
