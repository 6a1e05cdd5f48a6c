"""
Django management command to repair elevated keys.

Elevated keys must never require registration. This re-applies the tier
defaults to any elevated key stored without them.
"""

from asgiref.sync import async_to_sync
from django.core.management.base import BaseCommand

from keys.application.commands.key_maintenance import RepairElevatedKeysCommand
from keys.application.handlers.maintenance_handlers import RepairElevatedKeysHandler
from keys.infrastructure.repositories.django_key_repository import DjangoKeyRepository


class Command(BaseCommand):
    """Command to repair elevated keys."""

    help = "Force skip_validation and validated on elevated keys"

    def add_arguments(self, parser):
        """Add command arguments."""
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Dry run mode - only list the keys that would change",
        )

    def handle(self, *args, **options):
        """Execute the command."""
        handler = RepairElevatedKeysHandler(key_repository=DjangoKeyRepository())
        result = async_to_sync(handler.handle)(
            RepairElevatedKeysCommand(dry_run=options["dry_run"])
        )

        if not result.matched:
            # pylint: disable=no-member
            self.stdout.write(self.style.SUCCESS("All elevated keys are correctly configured"))
            return

        self.stdout.write(f"Found {len(result.matched)} elevated key(s) needing repair")
        for key_value in result.matched:
            self.stdout.write(f"  - {key_value}")

        if result.dry_run:
            # pylint: disable=no-member
            self.stdout.write(self.style.WARNING("DRY RUN - No changes will be made"))
            return

        # pylint: disable=no-member
        self.stdout.write(self.style.SUCCESS(f"Repaired {result.changed} elevated key(s)"))
