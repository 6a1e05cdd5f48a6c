"""
Key maintenance handlers.

Background and operator-driven fixes: the expiry sweep and the elevated
key repair. Neither is needed for correctness of validation.
"""

import logging
from dataclasses import replace
from datetime import datetime, timezone
from typing import Callable

from core.domain.value_objects import KeyTier
from core.infrastructure.events import event_bus
from keys.application.commands.key_maintenance import (
    ExpireDueKeysCommand,
    RepairElevatedKeysCommand,
)
from keys.application.dto.key_dto import MaintenanceResultDTO
from keys.domain.events import KeyExpired
from keys.domain.key import Key
from keys.domain.tier_policy import apply_tier_defaults
from keys.ports.key_repository import KeyRepository

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def violates_tier_defaults(key: Key) -> bool:
    """True for an elevated key that would require registration."""
    return key.tier == KeyTier.ELEVATED and (
        not key.skip_validation or not key.validated or key.validated_at is None
    )


class ExpireDueKeysHandler:
    """
    Handler for ExpireDueKeysCommand.

    Each key is expired with the same guarded transition validation uses,
    so a key edited meanwhile is left alone.
    """

    def __init__(self, key_repository: KeyRepository, clock: Callable[[], datetime] = _utcnow):
        self.key_repository = key_repository
        self.clock = clock

    async def handle(self, command: ExpireDueKeysCommand) -> MaintenanceResultDTO:
        now = self.clock()
        due = await self.key_repository.find_due_for_expiry(now)
        matched = [key.key_value for key in due]
        if command.dry_run:
            return MaintenanceResultDTO(matched=matched, changed=0, dry_run=True)

        changed = 0
        for key in due:
            if await self.key_repository.mark_expired(key.id, now):
                changed += 1
                await event_bus.publish(KeyExpired(aggregate_id=str(key.id), source="sweep"))
        logger.info("Expiry sweep: %d due, %d expired", len(due), changed)
        return MaintenanceResultDTO(matched=matched, changed=changed, dry_run=False)


class RepairElevatedKeysHandler:
    """Handler for RepairElevatedKeysCommand."""

    def __init__(self, key_repository: KeyRepository, clock: Callable[[], datetime] = _utcnow):
        self.key_repository = key_repository
        self.clock = clock

    async def handle(self, command: RepairElevatedKeysCommand) -> MaintenanceResultDTO:
        broken = [
            key
            for key in await self.key_repository.find_all(tier=KeyTier.ELEVATED)
            if violates_tier_defaults(key)
        ]
        matched = [key.key_value for key in broken]
        if command.dry_run:
            return MaintenanceResultDTO(matched=matched, changed=0, dry_run=True)

        now = self.clock()

        def repair(key: Key) -> Key:
            flags = apply_tier_defaults(
                tier=key.tier,
                skip_validation=key.skip_validation,
                validated=key.validated,
                validated_at=key.validated_at,
                now=now,
            )
            return replace(
                key,
                skip_validation=flags.skip_validation,
                validated=flags.validated,
                validated_at=flags.validated_at,
                updated_at=now,
            )

        for key in broken:
            await self.key_repository.modify(key.id, repair)
        logger.info("Repaired %d elevated key(s)", len(broken))
        return MaintenanceResultDTO(matched=matched, changed=len(broken), dry_run=False)
