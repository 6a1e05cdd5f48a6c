"""
CheckKeyStatusHandler.

Read-only counterpart of validation: status and expiry only, no mutation,
no usage log.
"""

from datetime import datetime, timezone
from typing import Callable

from core.domain.value_objects import DEFAULT_KEY_PREFIX, KeyValue
from keys.application.dto.key_dto import KeyStatusDTO
from keys.application.queries.check_key_status import CheckKeyStatusQuery
from keys.domain import lifecycle
from keys.ports.key_repository import KeyRepository


class CheckKeyStatusHandler:
    """Handler for CheckKeyStatusQuery."""

    def __init__(
        self,
        key_repository: KeyRepository,
        key_prefix: str = DEFAULT_KEY_PREFIX,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        """Initialize handler with repository."""
        self.key_repository = key_repository
        self.key_prefix = key_prefix
        self.clock = clock

    async def handle(self, query: CheckKeyStatusQuery) -> KeyStatusDTO:
        """
        Handle check key status query.

        Args:
            query: CheckKeyStatusQuery

        Returns:
            KeyStatusDTO; valid=False with no details for malformed or unknown keys
        """
        try:
            key_value = KeyValue.parse(query.key, prefix=self.key_prefix)
        except ValueError:
            return KeyStatusDTO(valid=False)

        key = await self.key_repository.find_by_value(str(key_value))
        if key is None:
            return KeyStatusDTO(valid=False)

        snapshot = lifecycle.snapshot(key, self.clock())
        return KeyStatusDTO(
            valid=snapshot.valid,
            status=snapshot.status,
            tier=snapshot.tier,
            expires_at=snapshot.expires_at,
        )
