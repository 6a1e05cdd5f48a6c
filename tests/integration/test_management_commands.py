"""
Integration tests for maintenance commands and the expiry sweep task.
"""

from datetime import timedelta
from io import StringIO

import pytest
from django.core.management import call_command
from django.core.management.base import CommandError
from django.utils import timezone

from accounts.infrastructure.models import Account
from keys.infrastructure.models import Key
from keys.tasks import sweep_expired_keys


def run(name, *args):
    out = StringIO()
    call_command(name, *args, stdout=out)
    return out.getvalue()


@pytest.mark.django_db
@pytest.mark.integration
class TestExpireKeysCommand:
    """Tests for the expire_keys command."""

    def test_dry_run(self, create_key_model):
        """Test a dry run lists overdue keys without changing them."""
        overdue = create_key_model(expires_at=timezone.now() - timedelta(hours=1))

        output = run("expire_keys", "--dry-run")

        assert "Found 1 expired key(s)" in output
        assert "DRY RUN" in output
        assert overdue.key_value in output
        assert Key.objects.get(id=overdue.id).status == "active"

    def test_expire(self, create_key_model):
        """Test overdue active keys are marked expired."""
        overdue = create_key_model(expires_at=timezone.now() - timedelta(hours=1))
        current = create_key_model(expires_at=timezone.now() + timedelta(days=1))

        output = run("expire_keys")

        assert "Marked 1 key(s) as expired" in output
        assert Key.objects.get(id=overdue.id).status == "expired"
        assert Key.objects.get(id=current.id).status == "active"

    def test_sweep_task(self, create_key_model):
        """Test the Celery sweep expires overdue keys."""
        create_key_model(expires_at=timezone.now() - timedelta(minutes=1))
        create_key_model(expires_at=timezone.now() - timedelta(minutes=2))

        assert sweep_expired_keys() == 2
        assert sweep_expired_keys() == 0


@pytest.mark.django_db
@pytest.mark.integration
class TestRepairElevatedKeysCommand:
    """Tests for the repair_elevated_keys command."""

    def test_nothing_to_repair(self, create_key_model):
        """Test a clean database reports nothing."""
        create_key_model(tier="elevated", skip_validation=True, validated=True)
        assert "correctly configured" in run("repair_elevated_keys")

    def test_repair(self, create_key_model):
        """Test elevated keys missing their defaults are fixed."""
        broken = create_key_model(tier="elevated", skip_validation=False, validated=False)

        dry = run("repair_elevated_keys", "--dry-run")
        assert broken.key_value in dry
        assert not Key.objects.get(id=broken.id).skip_validation

        output = run("repair_elevated_keys")

        assert "Repaired 1 elevated key(s)" in output
        broken.refresh_from_db()
        assert broken.skip_validation
        assert broken.validated
        assert broken.validated_at is not None


@pytest.mark.django_db
@pytest.mark.integration
class TestSeedAccountsCommand:
    """Tests for the seed_accounts command."""

    def test_create_super_admin(self):
        """Test creating the first super admin."""
        output = run("seed_accounts", "--email", "Root@Example.com", "--password", "long-enough")

        assert "Created super_admin account root@example.com" in output
        assert Account.objects.get(email="root@example.com").role == "super_admin"

    def test_promote_existing(self, user_account):
        """Test an existing account has its role changed."""
        run("seed_accounts", "--email", "user@example.com", "--role", "admin")

        user_account.refresh_from_db()
        assert user_account.role == "admin"

    def test_password_required(self):
        """Test a new account needs a password."""
        with pytest.raises(CommandError, match="--password"):
            run("seed_accounts", "--email", "new@example.com")

    def test_short_password(self):
        """Test weak passwords are refused."""
        with pytest.raises(CommandError):
            run("seed_accounts", "--email", "new@example.com", "--password", "short")
        assert not Account.objects.exists()
