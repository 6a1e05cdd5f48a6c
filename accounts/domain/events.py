"""
Account domain events.
"""

from dataclasses import dataclass
from typing import Optional

from core.domain.events import DomainEvent


@dataclass(frozen=True)
class AccountRegistered(DomainEvent):
    """Event raised when an account is created."""

    role: str = "user"
    key_id: Optional[str] = None


@dataclass(frozen=True)
class AccountLoggedIn(DomainEvent):
    """Event raised on a successful login."""

    role: str = "user"


@dataclass(frozen=True)
class LoginFailed(DomainEvent):
    """Event raised on a failed login; aggregate_id is the attempted email."""

    locked: bool = False
