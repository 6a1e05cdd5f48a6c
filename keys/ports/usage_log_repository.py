"""
Usage log repository port (interface).
"""
import uuid
from abc import ABC, abstractmethod
from datetime import date, datetime
from typing import Dict, List, Optional, Tuple

from keys.domain.usage_log import UsageLogEntry


class UsageLogRepository(ABC):
    """Abstract append-only store for usage log entries."""

    @abstractmethod
    async def append(self, entry: UsageLogEntry) -> UsageLogEntry:
        """Persist a new entry."""
        pass

    @abstractmethod
    async def search(
        self, key_id: Optional[uuid.UUID] = None, offset: int = 0, limit: int = 50
    ) -> Tuple[List[UsageLogEntry], int]:
        """Return a page of entries, newest first, and the total count."""
        pass

    @abstractmethod
    async def recent(self, limit: int = 10) -> List[UsageLogEntry]:
        """Return the newest entries with key_value filled in."""
        pass

    @abstractmethod
    async def daily_counts_since(self, since: datetime) -> Dict[date, int]:
        """Entries per UTC day at or after since, keyed by day; empty days are absent."""
        pass

    @abstractmethod
    async def top_games_since(self, since: datetime, limit: int = 10) -> List[Tuple[str, int]]:
        """(game_id, count) pairs at or after since, most used first."""
        pass

    @abstractmethod
    async def count_since(self, since: datetime) -> int:
        """Count entries used at or after since."""
        pass

    @abstractmethod
    async def count_distinct_addresses_since(self, since: datetime) -> int:
        """Count distinct client addresses at or after since."""
        pass
