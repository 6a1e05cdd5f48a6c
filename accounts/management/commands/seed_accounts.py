"""
Django management command to create or promote an account.

Used to bootstrap the first super admin, and to change the role of an
existing account from the shell.
"""

from asgiref.sync import async_to_sync
from django.core.management.base import BaseCommand, CommandError

from accounts.application.handlers.account_admin_handlers import parse_role
from accounts.application.handlers.register_account_handler import check_password_strength
from accounts.domain.account import Account
from accounts.infrastructure.repositories.django_account_repository import (
    DjangoAccountRepository,
)
from accounts.infrastructure.security import hash_password
from core.domain.exceptions import DomainException
from core.domain.value_objects import Role


class Command(BaseCommand):
    """Command to create an account or upgrade its role."""

    help = "Create an account with the given role, or set the role of an existing one"

    def add_arguments(self, parser):
        """Add command arguments."""
        parser.add_argument("--email", required=True, help="Account email")
        parser.add_argument(
            "--password",
            help="Password for a new account (ignored when the account exists)",
        )
        parser.add_argument(
            "--role",
            default=Role.SUPER_ADMIN.value,
            choices=[role.value for role in Role],
            help="Role to grant (default: super_admin)",
        )

    def handle(self, *args, **options):
        """Execute the command."""
        repository = DjangoAccountRepository()
        role = parse_role(options["role"])
        email = options["email"].strip().lower()

        existing = async_to_sync(repository.find_by_email)(email)
        if existing:
            async_to_sync(repository.update_role)(existing.id, role)
            # pylint: disable=no-member
            self.stdout.write(self.style.SUCCESS(f"Set role of {email} to {role.value}"))
            return

        password = options.get("password")
        if not password:
            raise CommandError("--password is required to create a new account")

        try:
            check_password_strength(password)
            account = Account.create(email=email, password_hash=hash_password(password), role=role)
            saved = async_to_sync(repository.save)(account)
        except (DomainException, ValueError) as e:
            raise CommandError(str(e)) from e

        # pylint: disable=no-member
        self.stdout.write(self.style.SUCCESS(f"Created {role.value} account {saved.email.value}"))
