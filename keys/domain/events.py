"""
Key domain events.

Domain events represent something that happened to a key.
"""

from dataclasses import dataclass
from typing import Optional

from core.domain.events import DomainEvent


@dataclass(frozen=True)
class KeyIssued(DomainEvent):
    """Event raised when a key is created."""

    tier: str = ""
    batch_size: int = 1


@dataclass(frozen=True)
class KeyActivated(DomainEvent):
    """Event raised when a key binds to its first device."""

    hwid: str = ""


@dataclass(frozen=True)
class KeyValidated(DomainEvent):
    """Event raised on every successful validation."""

    tier: str = ""
    game_id: Optional[str] = None


@dataclass(frozen=True)
class KeyValidationRejected(DomainEvent):
    """Event raised when a known key fails validation."""

    reason: str = ""


@dataclass(frozen=True)
class KeyExpired(DomainEvent):
    """Event raised when a key transitions to expired."""

    source: str = "validation"
