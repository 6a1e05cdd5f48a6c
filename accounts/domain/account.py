"""
Account domain entity.
"""
import uuid
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Optional

from core.domain.value_objects import Email, Role


@dataclass(frozen=True)
class Account:
    """
    Account domain entity.

    Holds a salted password hash, never the password itself.
    """

    id: uuid.UUID
    email: Email
    password_hash: str
    role: Role
    key_id: Optional[uuid.UUID]
    created_at: datetime

    def __post_init__(self):
        """Validate account entity."""
        if not self.password_hash:
            raise ValueError("Password hash is required")

    @classmethod
    def create(
        cls,
        email: str,
        password_hash: str,
        role: Role = Role.USER,
        key_id: Optional[uuid.UUID] = None,
        account_id: Optional[uuid.UUID] = None,
    ) -> "Account":
        """
        Create a new Account entity.

        Args:
            email: Email address (stored lower-cased)
            password_hash: Hashed password
            role: Account role
            key_id: Optional claimed key
            account_id: Optional UUID (generated if not provided)

        Returns:
            Account entity instance
        """
        return cls(
            id=account_id or uuid.uuid4(),
            email=Email(email.strip().lower()),
            password_hash=password_hash,
            role=role,
            key_id=key_id,
            created_at=datetime.now(timezone.utc),
        )

    def with_role(self, role: Role) -> "Account":
        """Return a copy with a different role."""
        return replace(self, role=role)

    def with_key(self, key_id: Optional[uuid.UUID]) -> "Account":
        """Return a copy linked to a key."""
        return replace(self, key_id=key_id)
