"""
ValidateKeyHandler.

Handles the validate key command issued by the client application.
"""

import logging
from datetime import datetime, timezone
from typing import Callable

from core.domain.value_objects import DEFAULT_KEY_PREFIX, KeyValue
from core.infrastructure.events import event_bus
from keys.application.commands.validate_key import ValidateKeyCommand
from keys.application.dto.key_dto import ValidationDataDTO, ValidationResultDTO
from keys.domain import lifecycle
from keys.domain.events import KeyActivated, KeyExpired, KeyValidated, KeyValidationRejected
from keys.domain.lifecycle import Acceptance, Rejection
from keys.domain.usage_log import UsageLogEntry
from keys.ports.key_repository import KeyRepository

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 3


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ValidateKeyHandler:
    """
    Handler for ValidateKeyCommand.

    Every outcome is returned as a ValidationResultDTO; rejections are
    values, not exceptions. Storage faults propagate to the caller.
    """

    def __init__(
        self,
        key_repository: KeyRepository,
        key_prefix: str = DEFAULT_KEY_PREFIX,
        clock: Callable[[], datetime] = _utcnow,
        max_attempts: int = MAX_ATTEMPTS,
    ):
        """Initialize handler with the key repository."""
        self.key_repository = key_repository
        self.key_prefix = key_prefix
        self.clock = clock
        self.max_attempts = max_attempts

    async def handle(self, command: ValidateKeyCommand) -> ValidationResultDTO:
        """
        Handle validate key command.

        Args:
            command: ValidateKeyCommand

        Returns:
            ValidationResultDTO
        """
        if not command.key or not command.key.strip():
            return ValidationResultDTO.rejected(lifecycle.NO_KEY_PROVIDED)

        try:
            key_value = KeyValue.parse(command.key, prefix=self.key_prefix)
        except ValueError:
            return ValidationResultDTO.rejected(lifecycle.INVALID_KEY_FORMAT)

        hwid = command.hwid.strip() if command.hwid and command.hwid.strip() else None

        for attempt in range(1, self.max_attempts + 1):
            key = await self.key_repository.find_by_value(str(key_value))
            if key is None:
                return ValidationResultDTO.rejected(lifecycle.INVALID_KEY)

            now = self.clock()
            decision = lifecycle.evaluate(key, hwid, now)

            if isinstance(decision, Rejection):
                if decision.expire and await self.key_repository.mark_expired(key.id, now):
                    logger.info("Key %s expired on validation", key.id)
                    await event_bus.publish(KeyExpired(aggregate_id=str(key.id)))
                await event_bus.publish(
                    KeyValidationRejected(aggregate_id=str(key.id), reason=decision.reason)
                )
                return ValidationResultDTO.rejected(
                    decision.reason, requires_registration=decision.requires_registration
                )

            usage = self._usage_entry(key.id, command, hwid, now)
            if not await self.key_repository.record_use(key.id, decision, now, usage):
                logger.info(
                    "Concurrent update on key %s, re-evaluating (attempt %d)", key.id, attempt
                )
                continue

            await self._publish_success(key.id, key.tier.value, decision, command)

            summary = lifecycle.summarize(key, decision, now)
            return ValidationResultDTO(
                valid=True,
                message=lifecycle.VALIDATION_SUCCEEDED,
                data=ValidationDataDTO(
                    tier=summary.tier,
                    expires_at=summary.expires_at,
                    time_remaining=summary.time_remaining,
                    uses_remaining=summary.uses_remaining,
                ),
            )

        logger.warning("Giving up on key %s after %d attempts", key_value, self.max_attempts)
        return ValidationResultDTO.rejected(lifecycle.VALIDATION_FAILED)

    def _usage_entry(self, key_id, command: ValidateKeyCommand, hwid, now) -> UsageLogEntry:
        return UsageLogEntry.create(
            key_id=key_id,
            used_at=now,
            ip_address=command.ip_address,
            hwid=hwid,
            game_id=command.game_id,
            executor=command.executor,
        )

    async def _publish_success(
        self, key_id, tier: str, decision: Acceptance, command: ValidateKeyCommand
    ) -> None:
        if decision.first_activation:
            await event_bus.publish(KeyActivated(aggregate_id=str(key_id), hwid=decision.hwid))
        await event_bus.publish(
            KeyValidated(aggregate_id=str(key_id), tier=tier, game_id=command.game_id)
        )
