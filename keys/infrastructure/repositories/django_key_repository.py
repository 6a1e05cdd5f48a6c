"""
Django implementation of KeyRepository port.

This adapter converts between domain entities and Django ORM models.
"""
import uuid
from datetime import datetime
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from asgiref.sync import sync_to_async
from django.db import IntegrityError, transaction
from django.db.models import Count, F, Q

from accounts.infrastructure.models import Account as AccountModel
from core.domain.exceptions import (
    AccountNotFoundError,
    DuplicateKeyValueError,
    KeyAlreadyClaimedError,
)
from core.domain.value_objects import KeyStatus, KeyTier
from keys.domain.key import Key
from keys.domain.lifecycle import Acceptance
from keys.domain.usage_log import UsageLogEntry
from keys.infrastructure.models import Key as KeyModel
from keys.infrastructure.repositories.django_usage_log_repository import to_usage_log_model
from keys.ports.key_repository import KeyRepository

# Columns an admin edit may rewrite
EDITABLE_FIELDS = (
    "status",
    "tier",
    "skip_validation",
    "validated",
    "validated_at",
    "expires_at",
    "max_uses",
    "current_uses",
    "hwid",
    "last_used",
    "owner_id",
    "note",
    "updated_at",
)


class DjangoKeyRepository(KeyRepository):
    """
    Django ORM implementation of KeyRepository.

    Validation-time mutations are issued as guarded UPDATE statements so
    concurrent validations of the same key cannot both bind a device or
    push current_uses past max_uses. Admin edits lock the row and write
    only the columns they change.

    Key.owner and Account.key describe the same one-to-one link; every
    write that sets an owner updates both sides in one transaction.
    """

    def _to_domain(self, model: KeyModel) -> Key:
        """
        Convert Django model to domain entity.

        Args:
            model: Django Key model

        Returns:
            Key domain entity
        """
        return Key(
            id=model.id,
            key_value=model.key_value,
            status=KeyStatus(model.status),
            tier=KeyTier(model.tier),
            skip_validation=model.skip_validation,
            validated=model.validated,
            validated_at=model.validated_at,
            expires_at=model.expires_at,
            max_uses=model.max_uses,
            current_uses=model.current_uses,
            hwid=model.hwid,
            last_used=model.last_used,
            owner_id=model.owner_id,
            note=model.note or "",
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    def _to_model(self, key: Key) -> KeyModel:
        """
        Convert domain entity to an unsaved Django model.

        Args:
            key: Key domain entity

        Returns:
            Django Key model
        """
        return KeyModel(
            id=key.id,
            key_value=key.key_value,
            status=key.status.value,
            tier=key.tier.value,
            skip_validation=key.skip_validation,
            validated=key.validated,
            validated_at=key.validated_at,
            expires_at=key.expires_at,
            max_uses=key.max_uses,
            current_uses=key.current_uses,
            hwid=key.hwid,
            last_used=key.last_used,
            owner_id=key.owner_id,
            note=key.note,
            created_at=key.created_at,
            updated_at=key.updated_at,
        )

    def _claim_for(self, key_id: uuid.UUID, owner_id: uuid.UUID) -> None:
        """
        Lock the account and check it may own key_id.

        Must run inside a transaction.

        Raises:
            AccountNotFoundError: If the account does not exist
            KeyAlreadyClaimedError: If the account already owns another key
        """
        account = AccountModel.objects.select_for_update().filter(id=owner_id).first()
        if account is None:
            raise AccountNotFoundError(f"User {owner_id} not found")
        holds_other = account.key_id not in (None, key_id)
        if holds_other or KeyModel.objects.filter(owner_id=owner_id).exclude(id=key_id).exists():
            raise KeyAlreadyClaimedError("User already owns a key")

    def _link_owner(self, key_id: uuid.UUID, owner_id: Optional[uuid.UUID]) -> None:
        """Point Account.key at key_id for its owner and clear any previous holder."""
        AccountModel.objects.filter(key_id=key_id).exclude(id=owner_id).update(key=None)
        if owner_id:
            AccountModel.objects.filter(id=owner_id).update(key_id=key_id)

    @sync_to_async
    def save(self, key: Key) -> Key:
        """
        Insert or update a key.

        Args:
            key: Key entity to save

        Returns:
            Saved key entity

        Raises:
            DuplicateKeyValueError: If a new key's value already exists
            AccountNotFoundError: If the owner does not exist
            KeyAlreadyClaimedError: If the owner already owns another key
        """
        model = self._to_model(key)
        exists = KeyModel.objects.filter(id=key.id).exists()
        try:
            with transaction.atomic():
                if key.owner_id:
                    self._claim_for(key.id, key.owner_id)
                if exists:
                    model.save(force_update=True)
                else:
                    model.save(force_insert=True)
                self._link_owner(key.id, key.owner_id)
        except IntegrityError as e:
            if KeyModel.objects.filter(key_value=key.key_value).exclude(id=key.id).exists():
                raise DuplicateKeyValueError(f"Key value {key.key_value} already exists") from e
            if key.owner_id and KeyModel.objects.filter(owner_id=key.owner_id).exists():
                raise KeyAlreadyClaimedError("User already owns a key") from e
            raise
        return self._to_domain(model)

    @sync_to_async
    def modify(self, key_id: uuid.UUID, change: Callable[[Key], Key]) -> Optional[Key]:
        """
        Apply change to the locked row and write back only what it altered.

        Args:
            key_id: Key UUID
            change: Maps the current key to the wanted key

        Returns:
            The key as stored afterwards, or None if it does not exist
        """
        with transaction.atomic():
            model = KeyModel.objects.select_for_update().filter(id=key_id).first()
            if model is None:
                return None
            current = self._to_domain(model)
            wanted = self._to_model(change(current))
            changed = {
                field: getattr(wanted, field)
                for field in EDITABLE_FIELDS
                if getattr(wanted, field) != getattr(model, field)
            }
            if not changed:
                return current

            owner_changed = "owner_id" in changed
            if owner_changed and wanted.owner_id:
                self._claim_for(key_id, wanted.owner_id)
            KeyModel.objects.filter(id=key_id).update(**changed)
            if owner_changed:
                self._link_owner(key_id, wanted.owner_id)
            return self._to_domain(KeyModel.objects.get(id=key_id))

    @sync_to_async
    def save_many(self, keys: List[Key]) -> List[Key]:
        """Insert keys in one transaction."""
        models_to_create = [self._to_model(key) for key in keys]
        try:
            with transaction.atomic():
                KeyModel.objects.bulk_create(models_to_create)
        except IntegrityError as e:
            values = [model.key_value for model in models_to_create]
            if len(set(values)) < len(values) or KeyModel.objects.filter(key_value__in=values).exists():
                raise DuplicateKeyValueError("Generated key value already exists") from e
            raise
        return [self._to_domain(model) for model in models_to_create]

    @sync_to_async
    def find_by_id(self, key_id: uuid.UUID) -> Optional[Key]:
        """
        Find a key by ID.

        Args:
            key_id: Key UUID

        Returns:
            Key entity or None if not found
        """
        try:
            return self._to_domain(KeyModel.objects.get(id=key_id))
        except KeyModel.DoesNotExist:
            return None

    @sync_to_async
    def find_by_value(self, key_value: str) -> Optional[Key]:
        """Find a key by its canonical value."""
        model = KeyModel.objects.filter(key_value=key_value).first()
        return self._to_domain(model) if model else None

    @sync_to_async
    def find_by_owner(self, owner_id: uuid.UUID) -> List[Key]:
        """List keys owned by an account."""
        return [self._to_domain(model) for model in KeyModel.objects.filter(owner_id=owner_id)]

    def _filtered(
        self,
        search: Optional[str] = None,
        status: Optional[KeyStatus] = None,
        tier: Optional[KeyTier] = None,
    ):
        queryset = KeyModel.objects.all()
        if search:
            queryset = queryset.filter(key_value__icontains=search.strip())
        if status:
            queryset = queryset.filter(status=status.value)
        if tier:
            queryset = queryset.filter(tier=tier.value)
        return queryset.order_by("-created_at")

    @sync_to_async
    def search(
        self,
        search: Optional[str] = None,
        status: Optional[KeyStatus] = None,
        tier: Optional[KeyTier] = None,
        offset: int = 0,
        limit: int = 50,
    ) -> Tuple[List[Key], int]:
        """Search keys, newest first."""
        queryset = self._filtered(search=search, status=status, tier=tier)
        total = queryset.count()
        page = queryset[offset : offset + limit]
        return [self._to_domain(model) for model in page], total

    @sync_to_async
    def find_all(
        self, status: Optional[KeyStatus] = None, tier: Optional[KeyTier] = None
    ) -> List[Key]:
        """List every key matching the filters."""
        return [self._to_domain(model) for model in self._filtered(status=status, tier=tier)]

    @sync_to_async
    def record_use(
        self, key_id: uuid.UUID, decision: Acceptance, now: datetime, usage: UsageLogEntry
    ) -> bool:
        """
        Apply an accepted validation as one guarded UPDATE and log it.

        The UPDATE and the usage log insert share a transaction, so a
        failed insert leaves the key untouched.

        Args:
            key_id: Key UUID
            decision: Accepted validation decision
            now: Validation time
            usage: Usage log entry written when the update applies

        Returns:
            True if exactly one row was updated
        """
        queryset = KeyModel.objects.filter(id=key_id, status=KeyStatus.ACTIVE.value)
        updates = {"last_used": now, "updated_at": now}

        if decision.first_activation:
            queryset = queryset.filter(hwid__isnull=True)
            updates["hwid"] = decision.hwid
        elif decision.returning_device:
            queryset = queryset.filter(hwid=decision.hwid)

        if decision.consumes_use:
            queryset = queryset.filter(Q(max_uses=0) | Q(current_uses__lt=F("max_uses")))
            updates["current_uses"] = F("current_uses") + 1

        with transaction.atomic():
            if queryset.update(**updates) != 1:
                return False
            to_usage_log_model(usage).save(force_insert=True)
        return True

    @sync_to_async
    def mark_expired(self, key_id: uuid.UUID, now: datetime) -> bool:
        """Transition an active key to expired."""
        updated = KeyModel.objects.filter(id=key_id, status=KeyStatus.ACTIVE.value).update(
            status=KeyStatus.EXPIRED.value, updated_at=now
        )
        return updated == 1

    def _due_for_expiry(self, now: datetime):
        return KeyModel.objects.filter(
            status=KeyStatus.ACTIVE.value, expires_at__isnull=False, expires_at__lt=now
        )

    @sync_to_async
    def find_due_for_expiry(self, now: datetime) -> List[Key]:
        """List active keys whose expiry has passed."""
        return [self._to_domain(model) for model in self._due_for_expiry(now)]

    @sync_to_async
    def expire_due(self, now: datetime) -> int:
        """Mark every overdue active key as expired."""
        return self._due_for_expiry(now).update(
            status=KeyStatus.EXPIRED.value, updated_at=now
        )

    @sync_to_async
    def delete(self, key_id: uuid.UUID) -> bool:
        """Delete a key."""
        deleted, _ = KeyModel.objects.filter(id=key_id).delete()
        return deleted > 0

    @sync_to_async
    def delete_many(self, key_ids: Iterable[uuid.UUID]) -> int:
        """Delete keys by id; return the number of keys deleted."""
        queryset = KeyModel.objects.filter(id__in=list(key_ids))
        count = queryset.count()
        with transaction.atomic():
            queryset.delete()
        return count

    @sync_to_async
    def update_status_many(
        self, key_ids: Iterable[uuid.UUID], status: KeyStatus, now: datetime
    ) -> int:
        """Set status on keys by id."""
        return KeyModel.objects.filter(id__in=list(key_ids)).update(
            status=status.value, updated_at=now
        )

    @sync_to_async
    def count_by_status(self) -> Dict[str, int]:
        """Return key counts keyed by status value."""
        rows = KeyModel.objects.order_by().values("status").annotate(count=Count("id"))
        return {row["status"]: row["count"] for row in rows}

    @sync_to_async
    def count_by_tier(self) -> Dict[str, int]:
        """Return key counts keyed by tier value."""
        rows = KeyModel.objects.order_by().values("tier").annotate(count=Count("id"))
        return {row["tier"]: row["count"] for row in rows}
