"""
Key issuance handlers.

Handles single and batch key creation.
"""

import logging
from datetime import datetime, timezone
from typing import Callable, List, Optional

from accounts.ports.account_repository import AccountRepository
from core.domain.exceptions import (
    AccountNotFoundError,
    DuplicateKeyValueError,
    KeyGenerationError,
)
from core.infrastructure.events import event_bus
from keys.application.commands.create_key import CreateKeyBatchCommand, CreateKeyCommand
from keys.application.dto.key_dto import KeyDTO
from keys.domain.events import KeyIssued
from keys.domain.issuance import KeyIssuer
from keys.domain.tier_policy import parse_tier
from keys.ports.key_repository import KeyRepository

logger = logging.getLogger(__name__)

MAX_GENERATION_ATTEMPTS = 5


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CreateKeyHandler:
    """Handler for CreateKeyCommand."""

    def __init__(
        self,
        key_repository: KeyRepository,
        account_repository: Optional[AccountRepository] = None,
        issuer: Optional[KeyIssuer] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        """Initialize handler with repository."""
        self.key_repository = key_repository
        self.account_repository = account_repository
        self.issuer = issuer or KeyIssuer()
        self.clock = clock

    async def handle(self, command: CreateKeyCommand) -> KeyDTO:
        """
        Handle create key command.

        Args:
            command: CreateKeyCommand

        Returns:
            KeyDTO of the stored key

        Raises:
            InvalidTierError: If the tier is unknown
            AccountNotFoundError: If owner_id names an unknown account
            KeyGenerationError: If no unique value was found
        """
        tier = parse_tier(command.tier)
        if command.owner_id and self.account_repository:
            if await self.account_repository.find_by_id(command.owner_id) is None:
                raise AccountNotFoundError(f"User {command.owner_id} not found")
        key = self.issuer.issue(
            tier=tier,
            now=self.clock(),
            expires_at=command.expires_at,
            max_uses=command.max_uses,
            skip_validation=command.skip_validation,
            note=command.note,
            owner_id=command.owner_id,
        )

        for _ in range(MAX_GENERATION_ATTEMPTS):
            try:
                saved = await self.key_repository.save(key)
                break
            except DuplicateKeyValueError:
                logger.warning("Generated key value collided, regenerating")
                key = self.issuer.regenerate(key)
        else:
            raise KeyGenerationError()

        await event_bus.publish(KeyIssued(aggregate_id=str(saved.id), tier=tier.value))
        return KeyDTO.from_entity(saved)


class CreateKeyBatchHandler:
    """Handler for CreateKeyBatchCommand."""

    def __init__(
        self,
        key_repository: KeyRepository,
        issuer: Optional[KeyIssuer] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        """Initialize handler with repository."""
        self.key_repository = key_repository
        self.issuer = issuer or KeyIssuer()
        self.clock = clock

    async def handle(self, command: CreateKeyBatchCommand) -> List[KeyDTO]:
        """
        Handle create key batch command.

        The batch size and tier are checked before anything is written;
        the batch is stored all-or-nothing.

        Raises:
            BatchLimitExceededError: If count is outside 1..100
            InvalidTierError: If the tier is unknown
            KeyGenerationError: If no unique set of values was found
        """
        self.issuer.check_batch_size(command.count)
        tier = parse_tier(command.tier)
        keys = self.issuer.issue_batch(
            count=command.count,
            tier=tier,
            now=self.clock(),
            expires_at=command.expires_at,
            max_uses=command.max_uses,
            skip_validation=command.skip_validation,
            label_prefix=command.prefix,
        )

        for _ in range(MAX_GENERATION_ATTEMPTS):
            try:
                saved = await self.key_repository.save_many(keys)
                break
            except DuplicateKeyValueError:
                logger.warning("Generated key value collided in batch, regenerating")
                keys = [self.issuer.regenerate(key) for key in keys]
        else:
            raise KeyGenerationError()

        logger.info("Issued %d %s key(s)", len(saved), tier.value)
        for key in saved:
            await event_bus.publish(
                KeyIssued(aggregate_id=str(key.id), tier=tier.value, batch_size=len(saved))
            )
        return [KeyDTO.from_entity(key) for key in saved]
