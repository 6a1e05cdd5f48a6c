"""
Key domain entity.

This is the core domain entity representing a license key.
It contains business logic and is independent of infrastructure.
"""

import secrets
import string
import uuid
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Optional

from core.domain.value_objects import DEFAULT_KEY_PREFIX, KeyStatus, KeyTier

KEY_ALPHABET = string.ascii_uppercase + string.digits


def generate_key_value(prefix: str = DEFAULT_KEY_PREFIX) -> str:
    """
    Generate a key in format: PREFIX-XXXX-XXXX-XXXX-XXXX.

    Args:
        prefix: Key prefix (e.g., 'RNSXM')

    Returns:
        Generated key string
    """
    parts = ["".join(secrets.choice(KEY_ALPHABET) for _ in range(4)) for _ in range(4)]
    return f"{prefix.upper()}-{'-'.join(parts)}"


@dataclass(frozen=True)
class Key:
    """
    Key domain entity.

    A key gates access to the client application. It may be bound to one
    device (hwid), carries a usage ceiling (max_uses, 0 = unlimited) and an
    optional expiry. Instances are immutable; transitions return new instances.
    """

    id: uuid.UUID
    key_value: str
    status: KeyStatus
    tier: KeyTier
    skip_validation: bool
    validated: bool
    validated_at: Optional[datetime]
    expires_at: Optional[datetime]
    max_uses: int
    current_uses: int
    hwid: Optional[str]
    last_used: Optional[datetime]
    owner_id: Optional[uuid.UUID]
    note: str
    created_at: datetime
    updated_at: datetime

    def __post_init__(self):
        """Validate key entity."""
        if not self.key_value or len(self.key_value.strip()) == 0:
            raise ValueError("Key value cannot be empty")
        if self.max_uses < 0:
            raise ValueError("max_uses cannot be negative")
        if self.current_uses < 0:
            raise ValueError("current_uses cannot be negative")

    @classmethod
    def create(
        cls,
        key_value: str,
        tier: KeyTier = KeyTier.BASIC,
        expires_at: Optional[datetime] = None,
        max_uses: int = 1,
        skip_validation: bool = False,
        validated: bool = False,
        validated_at: Optional[datetime] = None,
        note: str = "",
        owner_id: Optional[uuid.UUID] = None,
        key_id: Optional[uuid.UUID] = None,
        now: Optional[datetime] = None,
    ) -> "Key":
        """
        Create a new active Key entity.

        Tier defaults are not applied here; use the issuance engine
        for keys that leave the domain.
        """
        now = now or datetime.now(timezone.utc)
        return cls(
            id=key_id or uuid.uuid4(),
            key_value=key_value,
            status=KeyStatus.ACTIVE,
            tier=tier,
            skip_validation=skip_validation,
            validated=validated,
            validated_at=validated_at,
            expires_at=expires_at,
            max_uses=max_uses,
            current_uses=0,
            hwid=None,
            last_used=None,
            owner_id=owner_id,
            note=note or "",
            created_at=now,
            updated_at=now,
        )

    @property
    def needs_validation(self) -> bool:
        """Whether the key must be registration-validated before use."""
        return not self.skip_validation and self.tier != KeyTier.ELEVATED

    @property
    def is_unlimited(self) -> bool:
        return self.max_uses == 0

    @property
    def uses_exhausted(self) -> bool:
        return self.max_uses > 0 and self.current_uses >= self.max_uses

    @property
    def is_claimed(self) -> bool:
        return self.owner_id is not None

    def is_expired(self, current_time: Optional[datetime] = None) -> bool:
        """
        Check whether the expiry timestamp has passed.

        Args:
            current_time: Current time (defaults to now, UTC)

        Returns:
            True if expires_at is set and in the past
        """
        if self.expires_at is None:
            return False
        return self.expires_at < (current_time or datetime.now(timezone.utc))

    def mark_expired(self, now: Optional[datetime] = None) -> "Key":
        """Return a copy transitioned to expired."""
        if self.status != KeyStatus.ACTIVE:
            raise ValueError(f"Cannot expire a key that is {self.status.value}")
        return replace(
            self, status=KeyStatus.EXPIRED, updated_at=now or datetime.now(timezone.utc)
        )

    def reset_hwid(self, now: Optional[datetime] = None) -> "Key":
        """Return a copy with the device binding cleared."""
        return replace(self, hwid=None, updated_at=now or datetime.now(timezone.utc))

    def reset_usage(self, now: Optional[datetime] = None) -> "Key":
        """Return a copy with the usage counter cleared."""
        return replace(self, current_uses=0, updated_at=now or datetime.now(timezone.utc))

    def claim(self, owner_id: uuid.UUID, now: Optional[datetime] = None) -> "Key":
        """
        Return a copy owned by an account and marked validated.

        Raises:
            ValueError: If the key already has an owner
        """
        if self.is_claimed:
            raise ValueError("Key already claimed")
        now = now or datetime.now(timezone.utc)
        return replace(
            self, owner_id=owner_id, validated=True, validated_at=now, updated_at=now
        )
