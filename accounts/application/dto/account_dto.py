"""
Account DTOs for API responses.
"""
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from accounts.domain.account import Account
from keys.application.dto.key_dto import KeyDTO


@dataclass
class AccountDTO:
    """DTO for account information. Never carries the password hash."""

    id: uuid.UUID
    email: str
    role: str
    key_id: Optional[uuid.UUID]
    created_at: datetime

    @classmethod
    def from_entity(cls, account: Account) -> "AccountDTO":
        return cls(
            id=account.id,
            email=account.email.value,
            role=account.role.value,
            key_id=account.key_id,
            created_at=account.created_at,
        )


@dataclass
class KeySummaryDTO:
    """Short description of an account's key."""

    key_value: str
    tier: str
    status: str
    expires_at: Optional[datetime]


@dataclass
class AccountListItemDTO:
    """DTO for the account list."""

    id: uuid.UUID
    email: str
    role: str
    created_at: datetime
    key: Optional[KeySummaryDTO]


@dataclass
class AuthTokenDTO:
    """DTO returned by login and registration."""

    token: str
    account: AccountDTO


@dataclass
class ProfileDTO:
    """The calling account and its key."""

    account: AccountDTO
    key: Optional[KeyDTO]
