"""
Administrative account commands.
"""
import uuid
from dataclasses import dataclass


@dataclass
class CreateAdminAccountCommand:
    """Command to create an admin or super admin account."""

    email: str
    password: str
    role: str


@dataclass
class UpdateAccountRoleCommand:
    """Command to change an account's role; actor_id is the caller."""

    actor_id: uuid.UUID
    account_id: uuid.UUID
    role: str


@dataclass
class DeleteAccountCommand:
    """Command to delete an account; actor_id is the caller."""

    actor_id: uuid.UUID
    account_id: uuid.UUID
