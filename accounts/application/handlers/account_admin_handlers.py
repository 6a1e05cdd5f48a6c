"""
Account administration handlers.

Handles account listing, admin account creation, role changes, deletion
and the caller's own profile.
"""

import logging
import uuid
from typing import List

from accounts.application.commands.manage_accounts import (
    CreateAdminAccountCommand,
    DeleteAccountCommand,
    UpdateAccountRoleCommand,
)
from accounts.application.dto.account_dto import (
    AccountDTO,
    AccountListItemDTO,
    KeySummaryDTO,
    ProfileDTO,
)
from accounts.application.handlers.register_account_handler import check_password_strength
from accounts.domain.account import Account
from accounts.domain.events import AccountRegistered
from accounts.infrastructure.security import hash_password
from accounts.ports.account_repository import AccountRepository
from core.domain.exceptions import (
    AccountNotFoundError,
    EmailAlreadyRegisteredError,
    InvalidInputError,
    InvalidRoleError,
    SelfModificationError,
)
from core.domain.value_objects import Role
from core.infrastructure.events import event_bus
from keys.application.dto.key_dto import KeyDTO
from keys.ports.key_repository import KeyRepository

logger = logging.getLogger(__name__)

ADMIN_ROLES = (Role.ADMIN, Role.SUPER_ADMIN)


def parse_role(value) -> Role:
    """
    Raises:
        InvalidRoleError: If value is not a known role
    """
    if isinstance(value, Role):
        return value
    try:
        return Role(str(value).strip().lower())
    except ValueError:
        raise InvalidRoleError(f"Invalid role: {value}") from None


class ListAccountsHandler:
    """Lists every account with a summary of its key."""

    def __init__(self, account_repository: AccountRepository, key_repository: KeyRepository):
        self.account_repository = account_repository
        self.key_repository = key_repository

    async def handle(self) -> List[AccountListItemDTO]:
        items = []
        for account in await self.account_repository.list_all():
            summary = None
            if account.key_id:
                key = await self.key_repository.find_by_id(account.key_id)
                if key:
                    summary = KeySummaryDTO(
                        key_value=key.key_value,
                        tier=key.tier.value,
                        status=key.status.value,
                        expires_at=key.expires_at,
                    )
            items.append(
                AccountListItemDTO(
                    id=account.id,
                    email=account.email.value,
                    role=account.role.value,
                    created_at=account.created_at,
                    key=summary,
                )
            )
        return items


class CreateAdminAccountHandler:
    """Handler for CreateAdminAccountCommand."""

    def __init__(self, account_repository: AccountRepository):
        self.account_repository = account_repository

    async def handle(self, command: CreateAdminAccountCommand) -> AccountDTO:
        """
        Create an admin or super admin account.

        Raises:
            InvalidRoleError: If role is not admin or super_admin
            InvalidInputError: On a malformed email or short password
            EmailAlreadyRegisteredError: If the email is taken
        """
        role = parse_role(command.role)
        if role not in ADMIN_ROLES:
            raise InvalidRoleError("Role must be admin or super_admin")
        check_password_strength(command.password)
        try:
            account = Account.create(
                email=command.email or "",
                password_hash=hash_password(command.password),
                role=role,
            )
        except ValueError as e:
            raise InvalidInputError(str(e)) from None

        if await self.account_repository.find_by_email(account.email.value):
            raise EmailAlreadyRegisteredError()

        saved = await self.account_repository.save(account)
        logger.info("Created %s account %s", role.value, saved.id)
        await event_bus.publish(AccountRegistered(aggregate_id=str(saved.id), role=role.value))
        return AccountDTO.from_entity(saved)


class UpdateAccountRoleHandler:
    """Handler for UpdateAccountRoleCommand."""

    def __init__(self, account_repository: AccountRepository):
        self.account_repository = account_repository

    async def handle(self, command: UpdateAccountRoleCommand) -> AccountDTO:
        """
        Change an account's role.

        Raises:
            InvalidRoleError: If the role is unknown
            SelfModificationError: If the caller tries to demote themselves
            AccountNotFoundError: If the account does not exist
        """
        role = parse_role(command.role)
        if command.actor_id == command.account_id and role != Role.SUPER_ADMIN:
            raise SelfModificationError("Cannot demote yourself")

        updated = await self.account_repository.update_role(command.account_id, role)
        if updated is None:
            raise AccountNotFoundError()
        logger.info("Account %s role set to %s by %s", updated.id, role.value, command.actor_id)
        return AccountDTO.from_entity(updated)


class DeleteAccountHandler:
    """Handler for DeleteAccountCommand."""

    def __init__(self, account_repository: AccountRepository):
        self.account_repository = account_repository

    async def handle(self, command: DeleteAccountCommand) -> None:
        """
        Delete an account; its key is kept.

        Raises:
            SelfModificationError: If the caller tries to delete themselves
            AccountNotFoundError: If the account does not exist
        """
        if command.actor_id == command.account_id:
            raise SelfModificationError("Cannot delete yourself")
        if not await self.account_repository.delete(command.account_id):
            raise AccountNotFoundError()
        logger.info("Account %s deleted by %s", command.account_id, command.actor_id)


class GetProfileHandler:
    """Returns the calling account and its key."""

    def __init__(self, account_repository: AccountRepository, key_repository: KeyRepository):
        self.account_repository = account_repository
        self.key_repository = key_repository

    async def handle(self, account_id: uuid.UUID) -> ProfileDTO:
        account = await self.account_repository.find_by_id(account_id)
        if account is None:
            raise AccountNotFoundError()
        key = await self.key_repository.find_by_id(account.key_id) if account.key_id else None
        return ProfileDTO(
            account=AccountDTO.from_entity(account),
            key=KeyDTO.from_entity(key) if key else None,
        )
