"""
Django implementation of AccountRepository port.

This adapter converts between domain entities and Django ORM models.
"""
import uuid
from datetime import datetime
from typing import List, Optional

from asgiref.sync import sync_to_async
from django.db import IntegrityError, transaction

from accounts.domain.account import Account
from accounts.infrastructure.models import Account as AccountModel
from accounts.ports.account_repository import AccountRepository
from core.domain.exceptions import EmailAlreadyRegisteredError, KeyAlreadyClaimedError
from core.domain.value_objects import Email, KeyStatus, Role
from keys.infrastructure.models import Key as KeyModel


class DjangoAccountRepository(AccountRepository):
    """Django ORM implementation of AccountRepository."""

    def _to_domain(self, model: AccountModel) -> Account:
        """
        Convert Django model to domain entity.

        Args:
            model: Django Account model

        Returns:
            Account domain entity
        """
        return Account(
            id=model.id,
            email=Email(model.email),
            password_hash=model.password_hash,
            role=Role(model.role),
            key_id=model.key_id,
            created_at=model.created_at,
        )

    def _to_model(self, account: Account) -> AccountModel:
        """Convert domain entity to an unsaved Django model."""
        return AccountModel(
            id=account.id,
            email=account.email.value,
            password_hash=account.password_hash,
            role=account.role.value,
            key_id=account.key_id,
            created_at=account.created_at,
        )

    @sync_to_async
    def save(self, account: Account) -> Account:
        """Insert or update an account."""
        model = self._to_model(account)
        exists = AccountModel.objects.filter(id=account.id).exists()
        try:
            with transaction.atomic():
                if exists:
                    model.save(force_update=True)
                else:
                    model.save(force_insert=True)
        except IntegrityError as e:
            raise EmailAlreadyRegisteredError() from e
        return self._to_domain(model)

    @sync_to_async
    def create_with_key(self, account: Account, key_id: uuid.UUID, now: datetime) -> Account:
        """Insert account and claim key atomically."""
        model = self._to_model(account.with_key(None))
        try:
            with transaction.atomic():
                model.save(force_insert=True)
                claimed = KeyModel.objects.filter(
                    id=key_id, owner__isnull=True, status=KeyStatus.ACTIVE.value
                ).update(owner_id=model.id, validated=True, validated_at=now, updated_at=now)
                if claimed != 1:
                    raise KeyAlreadyClaimedError()
                model.key_id = key_id
                model.save(update_fields=["key"])
        except IntegrityError as e:
            if AccountModel.objects.filter(email=model.email).exists():
                raise EmailAlreadyRegisteredError() from e
            raise KeyAlreadyClaimedError() from e
        return self._to_domain(model)

    @sync_to_async
    def find_by_id(self, account_id: uuid.UUID) -> Optional[Account]:
        """Find an account by ID."""
        try:
            return self._to_domain(AccountModel.objects.get(id=account_id))
        except AccountModel.DoesNotExist:
            return None

    @sync_to_async
    def find_by_email(self, email: str) -> Optional[Account]:
        """Find an account by email."""
        model = AccountModel.objects.filter(email__iexact=email.strip()).first()
        return self._to_domain(model) if model else None

    @sync_to_async
    def list_all(self) -> List[Account]:
        """List every account."""
        return [self._to_domain(model) for model in AccountModel.objects.order_by("-created_at")]

    @sync_to_async
    def update_role(self, account_id: uuid.UUID, role: Role) -> Optional[Account]:
        """Change an account's role."""
        updated = AccountModel.objects.filter(id=account_id).update(role=role.value)
        if not updated:
            return None
        return self._to_domain(AccountModel.objects.get(id=account_id))

    @sync_to_async
    def delete(self, account_id: uuid.UUID) -> bool:
        """Delete an account; owned keys are detached by SET_NULL."""
        deleted, _ = AccountModel.objects.filter(id=account_id).delete()
        return deleted > 0

    @sync_to_async
    def count(self) -> int:
        """Number of accounts."""
        return AccountModel.objects.count()
