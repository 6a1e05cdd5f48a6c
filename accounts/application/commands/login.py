"""
LoginCommand.
"""
from dataclasses import dataclass
from typing import Optional


@dataclass
class LoginCommand:
    """Command to exchange credentials for a bearer token."""

    email: str
    password: str
    ip_address: Optional[str] = None
