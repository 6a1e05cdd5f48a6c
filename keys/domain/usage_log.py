"""
Usage log entry domain entity.
"""
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class UsageLogEntry:
    """
    One successful validation.

    Entries are append-only; key_value is filled in by readers that
    join the key for display.
    """

    id: uuid.UUID
    key_id: uuid.UUID
    used_at: datetime
    ip_address: Optional[str] = None
    hwid: Optional[str] = None
    game_id: Optional[str] = None
    executor: Optional[str] = None
    key_value: Optional[str] = None

    @classmethod
    def create(
        cls,
        key_id: uuid.UUID,
        used_at: datetime,
        ip_address: Optional[str] = None,
        hwid: Optional[str] = None,
        game_id: Optional[str] = None,
        executor: Optional[str] = None,
    ) -> "UsageLogEntry":
        """Create a new log entry."""
        return cls(
            id=uuid.uuid4(),
            key_id=key_id,
            used_at=used_at,
            ip_address=ip_address,
            hwid=hwid,
            game_id=game_id,
            executor=executor,
        )
