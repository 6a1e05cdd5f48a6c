"""
Django implementation of UsageLogRepository port.
"""
import uuid
from datetime import date, datetime, timezone
from typing import Dict, List, Optional, Tuple

from asgiref.sync import sync_to_async
from django.db.models import Count
from django.db.models.functions import TruncDate

from keys.domain.usage_log import UsageLogEntry
from keys.infrastructure.models import UsageLog as UsageLogModel
from keys.ports.usage_log_repository import UsageLogRepository


def to_usage_log_model(entry: UsageLogEntry) -> UsageLogModel:
    """Unsaved UsageLog row for an entry."""
    return UsageLogModel(
        id=entry.id,
        key_id=entry.key_id,
        used_at=entry.used_at,
        ip_address=entry.ip_address,
        hwid=entry.hwid,
        game_id=entry.game_id,
        executor=entry.executor,
    )


class DjangoUsageLogRepository(UsageLogRepository):
    """Django ORM implementation of UsageLogRepository."""

    def _to_domain(self, model: UsageLogModel, with_key: bool = False) -> UsageLogEntry:
        """Convert Django model to domain entity."""
        return UsageLogEntry(
            id=model.id,
            key_id=model.key_id,
            used_at=model.used_at,
            ip_address=model.ip_address,
            hwid=model.hwid,
            game_id=model.game_id,
            executor=model.executor,
            key_value=model.key.key_value if with_key else None,
        )

    @sync_to_async
    def append(self, entry: UsageLogEntry) -> UsageLogEntry:
        """Insert a new entry."""
        model = to_usage_log_model(entry)
        model.save(force_insert=True)
        return self._to_domain(model)

    @sync_to_async
    def search(
        self, key_id: Optional[uuid.UUID] = None, offset: int = 0, limit: int = 50
    ) -> Tuple[List[UsageLogEntry], int]:
        """Return a page of entries, newest first."""
        queryset = UsageLogModel.objects.select_related("key").order_by("-used_at")
        if key_id:
            queryset = queryset.filter(key_id=key_id)
        total = queryset.count()
        page = queryset[offset : offset + limit]
        return [self._to_domain(model, with_key=True) for model in page], total

    @sync_to_async
    def recent(self, limit: int = 10) -> List[UsageLogEntry]:
        """Return the newest entries."""
        queryset = UsageLogModel.objects.select_related("key").order_by("-used_at")[:limit]
        return [self._to_domain(model, with_key=True) for model in queryset]

    @sync_to_async
    def daily_counts_since(self, since: datetime) -> Dict[date, int]:
        """Entries per UTC day at or after since; days without entries are absent."""
        rows = (
            UsageLogModel.objects.filter(used_at__gte=since)
            .annotate(day=TruncDate("used_at", tzinfo=timezone.utc))
            .order_by()
            .values("day")
            .annotate(count=Count("id"))
        )
        return {row["day"]: row["count"] for row in rows}

    @sync_to_async
    def top_games_since(self, since: datetime, limit: int = 10) -> List[Tuple[str, int]]:
        """Most frequent game ids at or after since, most used first."""
        rows = (
            UsageLogModel.objects.filter(used_at__gte=since, game_id__isnull=False)
            .exclude(game_id="")
            .order_by()
            .values("game_id")
            .annotate(count=Count("id"))
            .order_by("-count", "game_id")[:limit]
        )
        return [(row["game_id"], row["count"]) for row in rows]

    @sync_to_async
    def count_since(self, since: datetime) -> int:
        """Count entries used at or after since."""
        return UsageLogModel.objects.filter(used_at__gte=since).count()

    @sync_to_async
    def count_distinct_addresses_since(self, since: datetime) -> int:
        """Count distinct client addresses at or after since."""
        return (
            UsageLogModel.objects.filter(used_at__gte=since, ip_address__isnull=False)
            .order_by()
            .values("ip_address")
            .distinct()
            .count()
        )
