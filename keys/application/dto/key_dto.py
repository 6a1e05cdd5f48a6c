"""
Key DTOs for API responses.
"""
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Dict, List, Optional, Union

from keys.domain.key import Key
from keys.domain.usage_log import UsageLogEntry


@dataclass
class KeyDTO:
    """DTO for key information."""

    id: uuid.UUID
    key_value: str
    status: str
    tier: str
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

    @classmethod
    def from_entity(cls, key: Key) -> "KeyDTO":
        return cls(
            id=key.id,
            key_value=key.key_value,
            status=key.status.value,
            tier=key.tier.value,
            skip_validation=key.skip_validation,
            validated=key.validated,
            validated_at=key.validated_at,
            expires_at=key.expires_at,
            max_uses=key.max_uses,
            current_uses=key.current_uses,
            hwid=key.hwid,
            last_used=key.last_used,
            owner_id=key.owner_id,
            note=key.note,
            created_at=key.created_at,
            updated_at=key.updated_at,
        )


@dataclass
class KeyPageDTO:
    """DTO for a page of keys."""

    keys: List[KeyDTO]
    total: int
    page: int
    total_pages: int


@dataclass
class BatchResultDTO:
    """DTO for batch mutations."""

    affected: int


@dataclass
class KeyExportDTO:
    """DTO for an export: records for json, newline-joined values for txt."""

    format: str
    count: int
    keys: List[KeyDTO] = field(default_factory=list)
    text: str = ""


@dataclass
class ValidationDataDTO:
    """DTO for the payload of a successful validation."""

    tier: str
    expires_at: Optional[datetime]
    time_remaining: Optional[str]
    uses_remaining: Union[int, str]


@dataclass
class ValidationResultDTO:
    """DTO for a validation outcome. Rejections carry error, success carries data."""

    valid: bool
    message: Optional[str] = None
    error: Optional[str] = None
    requires_registration: bool = False
    data: Optional[ValidationDataDTO] = None

    @classmethod
    def rejected(cls, reason: str, requires_registration: bool = False) -> "ValidationResultDTO":
        return cls(valid=False, error=reason, requires_registration=requires_registration)


@dataclass
class KeyStatusDTO:
    """DTO for the read-only status check."""

    valid: bool
    status: Optional[str] = None
    tier: Optional[str] = None
    expires_at: Optional[datetime] = None


@dataclass
class UsageLogDTO:
    """DTO for a usage log entry."""

    id: uuid.UUID
    key_id: uuid.UUID
    key_value: Optional[str]
    used_at: datetime
    ip_address: Optional[str]
    hwid: Optional[str]
    game_id: Optional[str]
    executor: Optional[str]

    @classmethod
    def from_entity(cls, entry: UsageLogEntry) -> "UsageLogDTO":
        return cls(
            id=entry.id,
            key_id=entry.key_id,
            key_value=entry.key_value,
            used_at=entry.used_at,
            ip_address=entry.ip_address,
            hwid=entry.hwid,
            game_id=entry.game_id,
            executor=entry.executor,
        )


@dataclass
class UsageLogPageDTO:
    """DTO for a page of usage log entries."""

    logs: List[UsageLogDTO]
    total: int
    page: int
    total_pages: int


@dataclass
class StatsDTO:
    """DTO for dashboard statistics."""

    total_keys: int
    active_keys: int
    total_users: int
    today_validations: int
    unique_users_today: int
    status_breakdown: Dict[str, int]
    tier_breakdown: Dict[str, int]
    recent_activity: List[UsageLogDTO]


@dataclass
class DailyUsageDTO:
    date: date
    count: int


@dataclass
class GameUsageDTO:
    game_id: str
    count: int


@dataclass
class AnalyticsDTO:
    """DTO for usage analytics."""

    days: int
    daily_usage: List[DailyUsageDTO]
    top_games: List[GameUsageDTO]


@dataclass
class MaintenanceResultDTO:
    """DTO for sweep and repair runs."""

    matched: List[str]
    changed: int
    dry_run: bool
