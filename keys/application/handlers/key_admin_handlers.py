"""
Administrative key mutation handlers.

Handles key edits, HWID and usage resets, deletion and batch operations.
"""

import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from accounts.ports.account_repository import AccountRepository
from core.domain.exceptions import (
    AccountNotFoundError,
    BatchLimitExceededError,
    KeyNotFoundError,
)
from core.domain.value_objects import KeyStatus
from core.infrastructure.events import event_bus
from keys.application.commands.key_maintenance import (
    BatchDeleteKeysCommand,
    BatchUpdateStatusCommand,
    DeleteKeyCommand,
    ResetHwidCommand,
    ResetUsageCommand,
)
from keys.application.commands.update_key import UpdateKeyCommand
from keys.application.dto.key_dto import BatchResultDTO, KeyDTO
from keys.domain.editing import apply_changes, parse_status
from keys.domain.events import KeyExpired
from keys.domain.issuance import MAX_BATCH_SIZE
from keys.domain.key import Key
from keys.ports.key_repository import KeyRepository

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _check_batch(key_ids) -> None:
    if not key_ids:
        raise BatchLimitExceededError("At least 1 key id is required")
    if len(key_ids) > MAX_BATCH_SIZE:
        raise BatchLimitExceededError(f"Maximum {MAX_BATCH_SIZE} keys per batch")


class UpdateKeyHandler:
    """Handler for UpdateKeyCommand."""

    def __init__(
        self,
        key_repository: KeyRepository,
        account_repository: Optional[AccountRepository] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        """Initialize handler with repositories."""
        self.key_repository = key_repository
        self.account_repository = account_repository
        self.clock = clock

    async def handle(self, command: UpdateKeyCommand) -> KeyDTO:
        """
        Handle update key command.

        Raises:
            KeyNotFoundError: If the key does not exist
            AccountNotFoundError: If owner_id names an unknown account
            InvalidTierError, InvalidKeyStatusError: On bad enum values
        """
        owner_id = command.changes.get("owner_id")
        if owner_id and self.account_repository:
            if await self.account_repository.find_by_id(owner_id) is None:
                raise AccountNotFoundError(f"User {owner_id} not found")

        now = self.clock()
        previous = {}

        def change(current: Key) -> Key:
            previous["status"] = current.status
            return apply_changes(current, command.changes, now)

        saved = await self.key_repository.modify(command.key_id, change)
        if saved is None:
            raise KeyNotFoundError(f"Key {command.key_id} not found")
        logger.info("Key %s updated: %s", saved.id, sorted(command.changes))

        if previous["status"] != KeyStatus.EXPIRED and saved.status == KeyStatus.EXPIRED:
            await event_bus.publish(KeyExpired(aggregate_id=str(saved.id), source="admin"))
        return KeyDTO.from_entity(saved)


class ResetHwidHandler:
    """Handler for ResetHwidCommand."""

    def __init__(self, key_repository: KeyRepository, clock: Callable[[], datetime] = _utcnow):
        self.key_repository = key_repository
        self.clock = clock

    async def handle(self, command: ResetHwidCommand) -> KeyDTO:
        """Clear the device binding so the next device can activate the key."""
        now = self.clock()
        saved = await self.key_repository.modify(command.key_id, lambda key: key.reset_hwid(now))
        if saved is None:
            raise KeyNotFoundError(f"Key {command.key_id} not found")
        logger.info("HWID reset for key %s", saved.id)
        return KeyDTO.from_entity(saved)


class ResetUsageHandler:
    """Handler for ResetUsageCommand."""

    def __init__(self, key_repository: KeyRepository, clock: Callable[[], datetime] = _utcnow):
        self.key_repository = key_repository
        self.clock = clock

    async def handle(self, command: ResetUsageCommand) -> KeyDTO:
        now = self.clock()
        saved = await self.key_repository.modify(command.key_id, lambda key: key.reset_usage(now))
        if saved is None:
            raise KeyNotFoundError(f"Key {command.key_id} not found")
        logger.info("Usage reset for key %s", saved.id)
        return KeyDTO.from_entity(saved)


class DeleteKeyHandler:
    """Handler for DeleteKeyCommand."""

    def __init__(self, key_repository: KeyRepository):
        self.key_repository = key_repository

    async def handle(self, command: DeleteKeyCommand) -> None:
        if not await self.key_repository.delete(command.key_id):
            raise KeyNotFoundError(f"Key {command.key_id} not found")
        logger.info("Key %s deleted", command.key_id)


class BatchDeleteKeysHandler:
    """Handler for BatchDeleteKeysCommand."""

    def __init__(self, key_repository: KeyRepository):
        self.key_repository = key_repository

    async def handle(self, command: BatchDeleteKeysCommand) -> BatchResultDTO:
        """
        Delete up to 100 keys.

        Raises:
            BatchLimitExceededError: If no ids or more than 100 ids are given
        """
        _check_batch(command.key_ids)
        deleted = await self.key_repository.delete_many(command.key_ids)
        logger.info("Batch deleted %d key(s)", deleted)
        return BatchResultDTO(affected=deleted)


class BatchUpdateStatusHandler:
    """Handler for BatchUpdateStatusCommand."""

    def __init__(self, key_repository: KeyRepository, clock: Callable[[], datetime] = _utcnow):
        self.key_repository = key_repository
        self.clock = clock

    async def handle(self, command: BatchUpdateStatusCommand) -> BatchResultDTO:
        """
        Set the status of up to 100 keys.

        Raises:
            BatchLimitExceededError: If no ids or more than 100 ids are given
            InvalidKeyStatusError: If the status is unknown
        """
        _check_batch(command.key_ids)
        status = parse_status(command.status)
        updated = await self.key_repository.update_status_many(
            command.key_ids, status, self.clock()
        )
        logger.info("Batch set %d key(s) to %s", updated, status.value)
        return BatchResultDTO(affected=updated)
