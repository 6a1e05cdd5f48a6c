"""
Integration tests for repository implementations.
"""

import uuid
from dataclasses import replace
from datetime import timedelta

import pytest
from django.db import DatabaseError

from core.domain.exceptions import (
    AccountNotFoundError,
    DuplicateKeyValueError,
    KeyAlreadyClaimedError,
)
from core.domain.value_objects import KeyStatus, KeyTier, Role
from keys.domain.lifecycle import Acceptance
from keys.domain.usage_log import UsageLogEntry
from keys.infrastructure.models import Key as KeyModel
from keys.infrastructure.models import UsageLog as UsageLogModel


def _usage(key_id, now, hwid=None):
    return UsageLogEntry.create(key_id=key_id, used_at=now, hwid=hwid)


@pytest.mark.django_db(transaction=True)
@pytest.mark.integration
class TestKeyRepository:
    """Integration tests for DjangoKeyRepository."""

    @pytest.mark.asyncio
    async def test_save_and_find(self, django_key_repository, make_key):
        """Test saving and finding a key by id and value."""
        key = make_key(tier=KeyTier.PREMIUM, note="vip")

        saved = await django_key_repository.save(key)
        by_id = await django_key_repository.find_by_id(saved.id)
        by_value = await django_key_repository.find_by_value(key.key_value)

        assert by_id.key_value == key.key_value
        assert by_id.tier == KeyTier.PREMIUM
        assert by_id.note == "vip"
        assert by_value.id == saved.id
        assert await django_key_repository.find_by_id(uuid.uuid4()) is None

    @pytest.mark.asyncio
    async def test_duplicate_value(self, django_key_repository, make_key):
        """Test a colliding key value raises DuplicateKeyValueError."""
        first = await django_key_repository.save(make_key())
        clash = make_key(key_value=first.key_value)
        with pytest.raises(DuplicateKeyValueError):
            await django_key_repository.save(clash)

    @pytest.mark.asyncio
    async def test_save_many_is_atomic(self, django_key_repository, make_key):
        """Test a batch with a collision stores nothing."""
        existing = await django_key_repository.save(make_key())
        batch = [make_key(), make_key(key_value=existing.key_value)]

        with pytest.raises(DuplicateKeyValueError):
            await django_key_repository.save_many(batch)

        assert await django_key_repository.find_by_id(batch[0].id) is None

    @pytest.mark.asyncio
    async def test_search_and_counts(self, django_key_repository, make_key):
        """Test filtered search, paging and breakdowns."""
        for _ in range(3):
            await django_key_repository.save(make_key(tier=KeyTier.PREMIUM))
        await django_key_repository.save(make_key(status=KeyStatus.BANNED))

        page, total = await django_key_repository.search(tier=KeyTier.PREMIUM, offset=0, limit=2)

        assert total == 3
        assert len(page) == 2
        assert await django_key_repository.count_by_status() == {"active": 3, "banned": 1}
        assert await django_key_repository.count_by_tier() == {"premium": 3, "basic": 1}

    @pytest.mark.asyncio
    async def test_record_use_first_activation(
        self, django_key_repository, django_usage_log_repository, make_key, now
    ):
        """Test the guarded update binds the device once."""
        key = await django_key_repository.save(make_key(max_uses=5))

        first = await django_key_repository.record_use(
            key.id, Acceptance(hwid="HW-1", first_activation=True), now, _usage(key.id, now)
        )
        second = await django_key_repository.record_use(
            key.id, Acceptance(hwid="HW-2", first_activation=True), now, _usage(key.id, now)
        )

        stored = await django_key_repository.find_by_id(key.id)
        assert first
        assert not second
        assert stored.hwid == "HW-1"
        assert stored.current_uses == 1
        assert stored.last_used == now
        assert await django_usage_log_repository.count_since(now) == 1

    @pytest.mark.asyncio
    async def test_record_use_respects_ceiling(self, django_key_repository, make_key, now):
        """Test uses never pass max_uses."""
        key = await django_key_repository.save(make_key(max_uses=1))
        decision = Acceptance(hwid=None)

        assert await django_key_repository.record_use(key.id, decision, now, _usage(key.id, now))
        assert not await django_key_repository.record_use(
            key.id, decision, now, _usage(key.id, now)
        )
        assert (await django_key_repository.find_by_id(key.id)).current_uses == 1

    @pytest.mark.asyncio
    async def test_record_use_returning_device(self, django_key_repository, make_key, now):
        """Test a returning device updates last_used without consuming."""
        key = await django_key_repository.save(make_key(max_uses=1, current_uses=1, hwid="HW-1"))

        assert await django_key_repository.record_use(
            key.id, Acceptance(hwid="HW-1", returning_device=True), now, _usage(key.id, now)
        )
        assert (await django_key_repository.find_by_id(key.id)).current_uses == 1

    @pytest.mark.asyncio
    async def test_record_use_rolls_back_when_log_fails(
        self, django_key_repository, make_key, now, monkeypatch
    ):
        """Test a failed usage log insert leaves the use unspent and the device unbound."""
        key = await django_key_repository.save(make_key(max_uses=1))

        def failing_save(self, *args, **kwargs):
            raise DatabaseError("value too long for type character varying(64)")

        monkeypatch.setattr(UsageLogModel, "save", failing_save)

        with pytest.raises(DatabaseError):
            await django_key_repository.record_use(
                key.id,
                Acceptance(hwid="HW-1", first_activation=True),
                now,
                _usage(key.id, now, hwid="HW-1"),
            )

        stored = await django_key_repository.find_by_id(key.id)
        assert stored.current_uses == 0
        assert stored.hwid is None
        assert stored.last_used is None

    @pytest.mark.asyncio
    async def test_modify_writes_only_changed_columns(self, django_key_repository, make_key, now):
        """Test a reset does not undo a validation that landed after the key was read."""
        key = await django_key_repository.save(make_key(max_uses=5, hwid="HW-1"))
        later = now + timedelta(minutes=1)

        def reset_hwid(current):
            KeyModel.objects.filter(id=key.id).update(current_uses=1, last_used=now)
            return current.reset_hwid(later)

        result = await django_key_repository.modify(key.id, reset_hwid)

        assert result.hwid is None
        assert result.current_uses == 1
        assert result.last_used == now
        assert result.updated_at == later
        assert await django_key_repository.modify(uuid.uuid4(), reset_hwid) is None

    @pytest.mark.asyncio
    async def test_owner_holds_one_key(
        self, django_key_repository, django_account_repository, make_key, make_account
    ):
        """Test an account owns at most one key and Account.key follows Key.owner."""
        first_owner = await django_account_repository.save(make_account(email="a@example.com"))
        second_owner = await django_account_repository.save(make_account(email="b@example.com"))
        key = await django_key_repository.save(make_key(owner_id=first_owner.id))
        assert (await django_account_repository.find_by_id(first_owner.id)).key_id == key.id

        duplicate = make_key(owner_id=first_owner.id)
        with pytest.raises(KeyAlreadyClaimedError):
            await django_key_repository.save(duplicate)
        assert await django_key_repository.find_by_id(duplicate.id) is None

        with pytest.raises(AccountNotFoundError):
            await django_key_repository.save(make_key(owner_id=uuid.uuid4()))

        moved = await django_key_repository.modify(
            key.id, lambda current: replace(current, owner_id=second_owner.id)
        )
        assert moved.owner_id == second_owner.id
        assert (await django_account_repository.find_by_id(first_owner.id)).key_id is None
        assert (await django_account_repository.find_by_id(second_owner.id)).key_id == key.id

        spare = await django_key_repository.save(make_key())
        with pytest.raises(KeyAlreadyClaimedError):
            await django_key_repository.modify(
                spare.id, lambda current: replace(current, owner_id=second_owner.id)
            )
        assert (await django_key_repository.find_by_id(spare.id)).owner_id is None

    @pytest.mark.asyncio
    async def test_expiry(self, django_key_repository, make_key, now):
        """Test due-for-expiry lookup and guarded transitions."""
        overdue = await django_key_repository.save(make_key(expires_at=now - timedelta(days=1)))
        await django_key_repository.save(make_key(expires_at=now + timedelta(days=1)))

        due = await django_key_repository.find_due_for_expiry(now)
        assert [k.id for k in due] == [overdue.id]

        assert await django_key_repository.mark_expired(overdue.id, now)
        assert not await django_key_repository.mark_expired(overdue.id, now)
        assert await django_key_repository.expire_due(now) == 0

    @pytest.mark.asyncio
    async def test_batch_mutations(self, django_key_repository, make_key, now):
        """Test batch status update and delete."""
        keys = [await django_key_repository.save(make_key()) for _ in range(3)]
        ids = [k.id for k in keys]

        assert await django_key_repository.update_status_many(ids[:2], KeyStatus.DISABLED, now) == 2
        assert await django_key_repository.delete_many(ids[1:] + [uuid.uuid4()]) == 2
        assert await django_key_repository.delete(ids[0])
        assert not await django_key_repository.delete(ids[0])


@pytest.mark.django_db(transaction=True)
@pytest.mark.integration
class TestUsageLogRepository:
    """Integration tests for DjangoUsageLogRepository."""

    @pytest.mark.asyncio
    async def test_append_and_search(
        self, django_key_repository, django_usage_log_repository, make_key, now
    ):
        """Test entries are returned newest first with the key value."""
        key = await django_key_repository.save(make_key())
        for minutes in (30, 10, 20):
            await django_usage_log_repository.append(
                UsageLogEntry.create(
                    key_id=key.id,
                    used_at=now - timedelta(minutes=minutes),
                    ip_address=f"10.0.0.{minutes}",
                    game_id="alpha",
                )
            )

        entries, total = await django_usage_log_repository.search(key_id=key.id, limit=2)

        assert total == 3
        assert [e.used_at for e in entries] == [
            now - timedelta(minutes=10),
            now - timedelta(minutes=20),
        ]
        assert entries[0].key_value == key.key_value
        assert await django_usage_log_repository.count_since(now - timedelta(minutes=25)) == 2
        assert (
            await django_usage_log_repository.count_distinct_addresses_since(
                now - timedelta(hours=1)
            )
            == 3
        )
        assert len(await django_usage_log_repository.recent(2)) == 2

    @pytest.mark.asyncio
    async def test_aggregates(
        self, django_key_repository, django_usage_log_repository, make_key, now
    ):
        """Test daily counts and top games are computed by the database."""
        key = await django_key_repository.save(make_key())
        for days_ago, game_id in [(0, "alpha"), (0, "beta"), (1, "alpha"), (1, None), (5, "gamma")]:
            await django_usage_log_repository.append(
                UsageLogEntry.create(
                    key_id=key.id, used_at=now - timedelta(days=days_ago), game_id=game_id
                )
            )
        since = now - timedelta(days=2)

        daily = await django_usage_log_repository.daily_counts_since(since)
        top = await django_usage_log_repository.top_games_since(since, limit=10)

        assert daily == {now.date(): 2, (now - timedelta(days=1)).date(): 2}
        assert top == [("alpha", 2), ("beta", 1)]
        assert await django_usage_log_repository.top_games_since(since, limit=1) == [("alpha", 2)]


@pytest.mark.django_db(transaction=True)
@pytest.mark.integration
class TestAccountRepository:
    """Integration tests for DjangoAccountRepository."""

    @pytest.mark.asyncio
    async def test_save_and_find(self, django_account_repository, make_account):
        """Test saving and finding an account."""
        account = await django_account_repository.save(make_account(email="a@example.com"))

        assert (await django_account_repository.find_by_id(account.id)).email.value == "a@example.com"
        assert (await django_account_repository.find_by_email("A@EXAMPLE.COM")).id == account.id
        assert await django_account_repository.count() == 1

    @pytest.mark.asyncio
    async def test_create_with_key(
        self, django_account_repository, django_key_repository, make_account, make_key, now
    ):
        """Test registration claims the key atomically."""
        key = await django_key_repository.save(make_key(validated=False, validated_at=None))

        account = await django_account_repository.create_with_key(
            make_account(email="buyer@example.com"), key.id, now
        )

        claimed = await django_key_repository.find_by_id(key.id)
        assert account.key_id == key.id
        assert claimed.owner_id == account.id
        assert claimed.validated

        with pytest.raises(KeyAlreadyClaimedError):
            await django_account_repository.create_with_key(
                make_account(email="late@example.com"), key.id, now
            )
        assert await django_account_repository.find_by_email("late@example.com") is None

    @pytest.mark.asyncio
    async def test_update_role_and_delete(
        self, django_account_repository, django_key_repository, make_account, make_key
    ):
        """Test role change and deletion keeping the owned key."""
        account = await django_account_repository.save(make_account())
        key = await django_key_repository.save(make_key(owner_id=account.id))

        updated = await django_account_repository.update_role(account.id, Role.ADMIN)
        assert updated.role == Role.ADMIN
        assert await django_account_repository.update_role(uuid.uuid4(), Role.ADMIN) is None

        assert await django_account_repository.delete(account.id)
        assert (await django_key_repository.find_by_id(key.id)).owner_id is None
