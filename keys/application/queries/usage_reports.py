"""
Usage reporting queries.
"""
import uuid
from dataclasses import dataclass
from typing import Optional

from core.application.pagination import DEFAULT_PAGE_SIZE


@dataclass
class GetStatsQuery:
    """Dashboard counters and breakdowns."""

    recent_limit: int = 10


@dataclass
class ListUsageLogsQuery:
    """Paginated usage log, optionally for one key."""

    key_id: Optional[uuid.UUID] = None
    page: int = 1
    limit: int = DEFAULT_PAGE_SIZE


@dataclass
class GetAnalyticsQuery:
    """Daily validation counts and most-used game ids over the last days."""

    days: int = 7
    top_games: int = 10
