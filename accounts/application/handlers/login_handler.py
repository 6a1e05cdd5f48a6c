"""
LoginHandler.

Handles credential checks with failed-attempt lockout.
"""

import logging
from typing import Optional

from accounts.application.commands.login import LoginCommand
from accounts.application.dto.account_dto import AccountDTO, AuthTokenDTO
from accounts.domain.events import AccountLoggedIn, LoginFailed
from accounts.domain.lockout import LoginAttemptTracker
from accounts.infrastructure.security import TokenService, verify_password
from accounts.ports.account_repository import AccountRepository
from core.domain.exceptions import AccountLockedError, InvalidCredentialsError
from core.infrastructure.events import event_bus

logger = logging.getLogger(__name__)


class LoginHandler:
    """
    Handler for LoginCommand.

    The attempt tracker is owned by the caller so its lifetime matches the
    authentication boundary that creates it.
    """

    def __init__(
        self,
        account_repository: AccountRepository,
        attempt_tracker: LoginAttemptTracker,
        token_service: Optional[TokenService] = None,
    ):
        """Initialize handler with repository and lockout tracker."""
        self.account_repository = account_repository
        self.attempt_tracker = attempt_tracker
        self.token_service = token_service or TokenService()

    async def handle(self, command: LoginCommand) -> AuthTokenDTO:
        """
        Handle login command.

        Args:
            command: LoginCommand

        Returns:
            AuthTokenDTO

        Raises:
            AccountLockedError: If the email/address pair is locked out
            InvalidCredentialsError: If the email or password is wrong
        """
        identifier = LoginAttemptTracker.identifier(command.email, command.ip_address)
        if self.attempt_tracker.is_locked(identifier):
            minutes = int(self.attempt_tracker.window.total_seconds() // 60)
            logger.warning("Login refused for locked identifier %s", identifier)
            raise AccountLockedError(
                "Account temporarily locked due to too many failed attempts. "
                f"Try again in {minutes} minutes."
            )

        account = await self.account_repository.find_by_email(command.email or "")
        if account is None or not verify_password(command.password or "", account.password_hash):
            failures = self.attempt_tracker.record_failure(identifier)
            locked = failures >= self.attempt_tracker.threshold
            logger.info("Failed login for %s (%d failure(s))", identifier, failures)
            await event_bus.publish(
                LoginFailed(aggregate_id=(command.email or "").lower(), locked=locked)
            )
            raise InvalidCredentialsError()

        self.attempt_tracker.clear(identifier)
        await event_bus.publish(
            AccountLoggedIn(aggregate_id=str(account.id), role=account.role.value)
        )
        return AuthTokenDTO(
            token=self.token_service.issue(account), account=AccountDTO.from_entity(account)
        )
