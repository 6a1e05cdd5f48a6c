"""
Usage report handlers.

Read-only aggregates over keys, accounts and the usage log.
"""

from datetime import datetime, time, timedelta, timezone
from typing import Callable

from accounts.ports.account_repository import AccountRepository
from core.application.pagination import clamp_limit, offset_for, total_pages
from core.domain.exceptions import InvalidInputError
from core.domain.value_objects import KeyStatus
from keys.application.dto.key_dto import (
    AnalyticsDTO,
    DailyUsageDTO,
    GameUsageDTO,
    StatsDTO,
    UsageLogDTO,
    UsageLogPageDTO,
)
from keys.application.queries.usage_reports import (
    GetAnalyticsQuery,
    GetStatsQuery,
    ListUsageLogsQuery,
)
from keys.ports.key_repository import KeyRepository
from keys.ports.usage_log_repository import UsageLogRepository

MAX_ANALYTICS_DAYS = 90


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _start_of_day(moment: datetime) -> datetime:
    return datetime.combine(moment.astimezone(timezone.utc).date(), time.min, tzinfo=timezone.utc)


class GetStatsHandler:
    """Handler for GetStatsQuery."""

    def __init__(
        self,
        key_repository: KeyRepository,
        usage_log_repository: UsageLogRepository,
        account_repository: AccountRepository,
        clock: Callable[[], datetime] = _utcnow,
    ):
        """Initialize handler with repositories."""
        self.key_repository = key_repository
        self.usage_log_repository = usage_log_repository
        self.account_repository = account_repository
        self.clock = clock

    async def handle(self, query: GetStatsQuery) -> StatsDTO:
        """
        Handle get stats query.

        "Today" starts at UTC midnight.
        """
        today = _start_of_day(self.clock())
        status_breakdown = await self.key_repository.count_by_status()
        tier_breakdown = await self.key_repository.count_by_tier()
        recent = await self.usage_log_repository.recent(query.recent_limit)

        return StatsDTO(
            total_keys=sum(status_breakdown.values()),
            active_keys=status_breakdown.get(KeyStatus.ACTIVE.value, 0),
            total_users=await self.account_repository.count(),
            today_validations=await self.usage_log_repository.count_since(today),
            unique_users_today=await self.usage_log_repository.count_distinct_addresses_since(
                today
            ),
            status_breakdown=status_breakdown,
            tier_breakdown=tier_breakdown,
            recent_activity=[UsageLogDTO.from_entity(entry) for entry in recent],
        )


class ListUsageLogsHandler:
    """Handler for ListUsageLogsQuery."""

    def __init__(self, usage_log_repository: UsageLogRepository):
        self.usage_log_repository = usage_log_repository

    async def handle(self, query: ListUsageLogsQuery) -> UsageLogPageDTO:
        limit = clamp_limit(query.limit)
        page = max(1, query.page)
        entries, total = await self.usage_log_repository.search(
            key_id=query.key_id, offset=offset_for(page, limit), limit=limit
        )
        return UsageLogPageDTO(
            logs=[UsageLogDTO.from_entity(entry) for entry in entries],
            total=total,
            page=page,
            total_pages=total_pages(total, limit),
        )


class GetAnalyticsHandler:
    """Handler for GetAnalyticsQuery."""

    def __init__(
        self,
        usage_log_repository: UsageLogRepository,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.usage_log_repository = usage_log_repository
        self.clock = clock

    async def handle(self, query: GetAnalyticsQuery) -> AnalyticsDTO:
        """
        Daily validation counts (zero-filled, oldest first) and the most
        frequent game ids over the last query.days days, today included.

        Raises:
            InvalidInputError: If days is outside 1..90
        """
        if not 1 <= query.days <= MAX_ANALYTICS_DAYS:
            raise InvalidInputError(f"days must be between 1 and {MAX_ANALYTICS_DAYS}")

        today = _start_of_day(self.clock())
        start = today - timedelta(days=query.days - 1)
        per_day = await self.usage_log_repository.daily_counts_since(start)
        daily_usage = [
            DailyUsageDTO(date=day, count=per_day.get(day, 0))
            for day in ((start + timedelta(days=offset)).date() for offset in range(query.days))
        ]

        top_games = [
            GameUsageDTO(game_id=game_id, count=count)
            for game_id, count in await self.usage_log_repository.top_games_since(
                start, query.top_games
            )
        ]
        return AnalyticsDTO(days=query.days, daily_usage=daily_usage, top_games=top_games)
