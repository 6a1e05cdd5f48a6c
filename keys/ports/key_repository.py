"""
Key repository port (interface).

This defines the contract for key persistence operations.
Implementations are in the infrastructure layer.
"""
import uuid
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from core.domain.value_objects import KeyStatus, KeyTier
from keys.domain.key import Key
from keys.domain.lifecycle import Acceptance
from keys.domain.usage_log import UsageLogEntry


class KeyRepository(ABC):
    """
    Abstract repository for Key entities.

    This is a port in hexagonal architecture - it defines
    what operations are available, not how they're implemented.
    """

    @abstractmethod
    async def save(self, key: Key) -> Key:
        """
        Insert or update a key.

        A key with an owner also becomes that account's key; the account
        that held it before loses it.

        Raises:
            DuplicateKeyValueError: If a new key's value already exists
            AccountNotFoundError: If the owner does not exist
            KeyAlreadyClaimedError: If the owner already owns another key
        """
        pass

    @abstractmethod
    async def modify(self, key_id: uuid.UUID, change: Callable[[Key], Key]) -> Optional[Key]:
        """
        Apply change to the current key under a row lock.

        Only the fields change alters are written, so concurrent
        validations keep their binding and use count unless change
        replaces them. Owner changes follow the rules of save.

        Returns:
            The stored key afterwards, or None if it does not exist
        """
        pass

    @abstractmethod
    async def save_many(self, keys: List[Key]) -> List[Key]:
        """
        Insert new keys all-or-nothing.

        Raises:
            DuplicateKeyValueError: If any value already exists
        """
        pass

    @abstractmethod
    async def find_by_id(self, key_id: uuid.UUID) -> Optional[Key]:
        """Find a key by ID."""
        pass

    @abstractmethod
    async def find_by_value(self, key_value: str) -> Optional[Key]:
        """Find a key by its canonical value."""
        pass

    @abstractmethod
    async def find_by_owner(self, owner_id: uuid.UUID) -> List[Key]:
        """List keys owned by an account."""
        pass

    @abstractmethod
    async def search(
        self,
        search: Optional[str] = None,
        status: Optional[KeyStatus] = None,
        tier: Optional[KeyTier] = None,
        offset: int = 0,
        limit: int = 50,
    ) -> Tuple[List[Key], int]:
        """
        Search keys, newest first.

        Args:
            search: Case-insensitive substring of the key value
            status: Optional status filter
            tier: Optional tier filter
            offset: Rows to skip
            limit: Page size

        Returns:
            Tuple of (page of keys, total matching count)
        """
        pass

    @abstractmethod
    async def find_all(
        self, status: Optional[KeyStatus] = None, tier: Optional[KeyTier] = None
    ) -> List[Key]:
        """List every key matching the filters, newest first."""
        pass

    @abstractmethod
    async def record_use(
        self, key_id: uuid.UUID, decision: Acceptance, now: datetime, usage: UsageLogEntry
    ) -> bool:
        """
        Apply an accepted validation as one conditional update and log it.

        The update only applies while the facts the decision was based on
        still hold (key active, device binding unchanged, usage ceiling not
        reached).

        usage is appended to the usage log in the same transaction; if
        the append fails the update is rolled back.

        Returns:
            True if the update applied, False if a concurrent change won
        """
        pass

    @abstractmethod
    async def mark_expired(self, key_id: uuid.UUID, now: datetime) -> bool:
        """
        Transition an active key to expired.

        Returns:
            True if this call performed the transition
        """
        pass

    @abstractmethod
    async def find_due_for_expiry(self, now: datetime) -> List[Key]:
        """List active keys whose expiry has passed."""
        pass

    @abstractmethod
    async def expire_due(self, now: datetime) -> int:
        """Mark every active key past its expiry as expired; return the count."""
        pass

    @abstractmethod
    async def delete(self, key_id: uuid.UUID) -> bool:
        """Delete a key; return False if it did not exist."""
        pass

    @abstractmethod
    async def delete_many(self, key_ids: Iterable[uuid.UUID]) -> int:
        """Delete keys by id; return the number deleted."""
        pass

    @abstractmethod
    async def update_status_many(
        self, key_ids: Iterable[uuid.UUID], status: KeyStatus, now: datetime
    ) -> int:
        """Set status on keys by id; return the number updated."""
        pass

    @abstractmethod
    async def count_by_status(self) -> Dict[str, int]:
        """Return key counts keyed by status value."""
        pass

    @abstractmethod
    async def count_by_tier(self) -> Dict[str, int]:
        """Return key counts keyed by tier value."""
        pass
