"""
Account repository port (interface).
"""
import uuid
from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional

from accounts.domain.account import Account
from core.domain.value_objects import Role


class AccountRepository(ABC):
    """
    Abstract repository for Account entities.

    This is a port in hexagonal architecture - it defines
    what operations are available, not how they're implemented.
    """

    @abstractmethod
    async def save(self, account: Account) -> Account:
        """
        Insert or update an account.

        Raises:
            EmailAlreadyRegisteredError: If the email is taken by another account
        """
        pass

    @abstractmethod
    async def create_with_key(self, account: Account, key_id: uuid.UUID, now: datetime) -> Account:
        """
        Insert account and claim key in one transaction.

        The claim only succeeds while the key is active and unowned; it
        sets the key's owner and marks it validated.

        Raises:
            EmailAlreadyRegisteredError: If the email is taken
            KeyAlreadyClaimedError: If the key was claimed first
        """
        pass

    @abstractmethod
    async def find_by_id(self, account_id: uuid.UUID) -> Optional[Account]:
        """Find an account by ID."""
        pass

    @abstractmethod
    async def find_by_email(self, email: str) -> Optional[Account]:
        """Find an account by email (case-insensitive)."""
        pass

    @abstractmethod
    async def list_all(self) -> List[Account]:
        """List every account, newest first."""
        pass

    @abstractmethod
    async def update_role(self, account_id: uuid.UUID, role: Role) -> Optional[Account]:
        """Change an account's role; return None if it does not exist."""
        pass

    @abstractmethod
    async def delete(self, account_id: uuid.UUID) -> bool:
        """Delete an account. Keys it owns are kept and lose their owner."""
        pass

    @abstractmethod
    async def count(self) -> int:
        """Number of accounts."""
        pass
