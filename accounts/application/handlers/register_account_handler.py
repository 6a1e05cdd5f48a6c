"""
RegisterAccountHandler.

Handles self-registration, optionally claiming a key.
"""

import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from accounts.application.commands.register_account import RegisterAccountCommand
from accounts.application.dto.account_dto import AccountDTO, AuthTokenDTO
from accounts.domain.account import Account
from accounts.domain.events import AccountRegistered
from accounts.infrastructure.security import TokenService, hash_password
from accounts.ports.account_repository import AccountRepository
from core.domain.exceptions import (
    EmailAlreadyRegisteredError,
    InvalidInputError,
    InvalidKeyFormatError,
    InvalidKeyStatusError,
    KeyAlreadyClaimedError,
    KeyNotFoundError,
)
from core.domain.value_objects import DEFAULT_KEY_PREFIX, KeyStatus, KeyValue, Role
from core.infrastructure.events import event_bus
from keys.ports.key_repository import KeyRepository

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8


def check_password_strength(password: str) -> None:
    """
    Raises:
        InvalidInputError: If the password is too short
    """
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise InvalidInputError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
        )


class RegisterAccountHandler:
    """Handler for RegisterAccountCommand."""

    def __init__(
        self,
        account_repository: AccountRepository,
        key_repository: KeyRepository,
        token_service: Optional[TokenService] = None,
        key_prefix: str = DEFAULT_KEY_PREFIX,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        """Initialize handler with repositories."""
        self.account_repository = account_repository
        self.key_repository = key_repository
        self.token_service = token_service or TokenService()
        self.key_prefix = key_prefix
        self.clock = clock

    async def handle(self, command: RegisterAccountCommand) -> AuthTokenDTO:
        """
        Handle register account command.

        Args:
            command: RegisterAccountCommand

        Returns:
            AuthTokenDTO for the new account

        Raises:
            InvalidInputError: On a malformed email or short password
            EmailAlreadyRegisteredError: If the email is taken
            InvalidKeyFormatError, KeyNotFoundError, InvalidKeyStatusError,
            KeyAlreadyClaimedError: If the supplied key cannot be claimed
        """
        check_password_strength(command.password)
        try:
            account = Account.create(
                email=command.email or "",
                password_hash=hash_password(command.password),
                role=Role.USER,
            )
        except ValueError as e:
            raise InvalidInputError(str(e)) from None

        if await self.account_repository.find_by_email(account.email.value):
            raise EmailAlreadyRegisteredError()

        if command.key:
            key = await self._claimable_key(command.key)
            saved = await self.account_repository.create_with_key(
                account.with_key(key.id), key.id, self.clock()
            )
            logger.info("Account %s registered and claimed key %s", saved.id, key.id)
        else:
            saved = await self.account_repository.save(account)
            logger.info("Account %s registered", saved.id)

        await event_bus.publish(
            AccountRegistered(
                aggregate_id=str(saved.id),
                role=saved.role.value,
                key_id=str(saved.key_id) if saved.key_id else None,
            )
        )
        return AuthTokenDTO(
            token=self.token_service.issue(saved), account=AccountDTO.from_entity(saved)
        )

    async def _claimable_key(self, raw_key: str):
        try:
            key_value = KeyValue.parse(raw_key, prefix=self.key_prefix)
        except ValueError:
            raise InvalidKeyFormatError() from None

        key = await self.key_repository.find_by_value(str(key_value))
        if key is None:
            raise KeyNotFoundError("Invalid key")
        if key.status != KeyStatus.ACTIVE:
            raise InvalidKeyStatusError(f"Key is {key.status.value}")
        if key.is_claimed:
            raise KeyAlreadyClaimedError()
        return key
