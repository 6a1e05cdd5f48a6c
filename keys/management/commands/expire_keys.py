"""
Django management command to mark overdue keys as expired.

Validation expires keys on its own; this keeps listings and stats tidy
and can be run from cron when the Celery sweep is not enabled.
"""

from asgiref.sync import async_to_sync
from django.core.management.base import BaseCommand

from keys.application.commands.key_maintenance import ExpireDueKeysCommand
from keys.application.handlers.maintenance_handlers import ExpireDueKeysHandler
from keys.infrastructure.repositories.django_key_repository import DjangoKeyRepository


class Command(BaseCommand):
    """Command to expire overdue keys."""

    help = "Mark active keys whose expiry has passed as expired"

    def add_arguments(self, parser):
        """Add command arguments."""
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Dry run mode - don't actually update keys",
        )

    def handle(self, *args, **options):
        """Execute the command."""
        handler = ExpireDueKeysHandler(key_repository=DjangoKeyRepository())
        result = async_to_sync(handler.handle)(ExpireDueKeysCommand(dry_run=options["dry_run"]))

        self.stdout.write(f"Found {len(result.matched)} expired key(s)")
        if result.dry_run:
            # pylint: disable=no-member
            self.stdout.write(self.style.WARNING("DRY RUN - No changes will be made"))
            for key_value in result.matched[:10]:
                self.stdout.write(f"  - {key_value}")
            return

        # pylint: disable=no-member
        self.stdout.write(self.style.SUCCESS(f"Marked {result.changed} key(s) as expired"))
