"""
Unit tests for key issuance, administration and query handlers.
"""
import uuid
from datetime import timedelta

import pytest

from core.domain.exceptions import (
    AccountNotFoundError,
    BatchLimitExceededError,
    InvalidInputError,
    InvalidTierError,
    KeyAlreadyClaimedError,
    KeyGenerationError,
    KeyNotFoundError,
)
from core.domain.value_objects import KeyStatus, KeyTier
from keys.application.commands.create_key import CreateKeyBatchCommand, CreateKeyCommand
from keys.application.commands.key_maintenance import (
    BatchDeleteKeysCommand,
    BatchUpdateStatusCommand,
    DeleteKeyCommand,
    ResetHwidCommand,
    ResetUsageCommand,
)
from keys.application.commands.update_key import UpdateKeyCommand
from keys.application.handlers.issue_key_handlers import CreateKeyBatchHandler, CreateKeyHandler
from keys.application.handlers.key_admin_handlers import (
    BatchDeleteKeysHandler,
    BatchUpdateStatusHandler,
    DeleteKeyHandler,
    ResetHwidHandler,
    ResetUsageHandler,
    UpdateKeyHandler,
)
from keys.application.handlers.key_query_handlers import (
    ExportKeysHandler,
    GetKeyHandler,
    ListKeysHandler,
    ListOwnKeysHandler,
)
from keys.application.queries.list_keys import (
    ExportKeysQuery,
    GetKeyQuery,
    ListKeysQuery,
    ListOwnKeysQuery,
)
from keys.domain.events import KeyExpired, KeyIssued
from keys.domain.issuance import KeyIssuer


@pytest.mark.asyncio
class TestCreateKeyHandler:
    """Tests for CreateKeyHandler."""

    async def test_create_basic(self, key_repository, clock, published_events):
        """Test creating a single key."""
        handler = CreateKeyHandler(key_repository=key_repository, clock=clock)

        result = await handler.handle(CreateKeyCommand(tier="premium", max_uses=10, note="gift"))

        assert result.tier == "premium"
        assert result.max_uses == 10
        assert result.note == "gift"
        assert result.status == "active"
        assert result.id in key_repository.keys
        assert isinstance(published_events[0], KeyIssued)

    async def test_create_elevated(self, key_repository, clock, now):
        """Test elevated keys are stored validated."""
        handler = CreateKeyHandler(key_repository=key_repository, clock=clock)
        result = await handler.handle(CreateKeyCommand(tier="elevated"))
        assert result.skip_validation
        assert result.validated
        assert result.validated_at == now

    async def test_invalid_tier(self, key_repository):
        """Test an unknown tier stores nothing."""
        handler = CreateKeyHandler(key_repository=key_repository)
        with pytest.raises(InvalidTierError):
            await handler.handle(CreateKeyCommand(tier="gold"))
        assert key_repository.keys == {}

    async def test_unknown_owner(self, key_repository, account_repository):
        """Test assigning a missing account fails."""
        handler = CreateKeyHandler(
            key_repository=key_repository, account_repository=account_repository
        )
        with pytest.raises(AccountNotFoundError):
            await handler.handle(CreateKeyCommand(owner_id=uuid.uuid4()))

    async def test_regenerates_on_collision(self, key_repository, make_key, clock):
        """Test a colliding value is regenerated."""
        taken = await key_repository.save(make_key())
        values = iter([taken.key_value, "RNSXM-NEW0-NEW0-NEW0-NEW0"])
        issuer = KeyIssuer(generator=lambda prefix: next(values))
        handler = CreateKeyHandler(key_repository=key_repository, issuer=issuer, clock=clock)

        result = await handler.handle(CreateKeyCommand())

        assert result.key_value == "RNSXM-NEW0-NEW0-NEW0-NEW0"

    async def test_gives_up_after_collisions(self, key_repository, make_key, clock):
        """Test persistent collisions raise KeyGenerationError."""
        taken = await key_repository.save(make_key())
        issuer = KeyIssuer(generator=lambda prefix: taken.key_value)
        handler = CreateKeyHandler(key_repository=key_repository, issuer=issuer, clock=clock)

        with pytest.raises(KeyGenerationError):
            await handler.handle(CreateKeyCommand())


@pytest.mark.asyncio
class TestCreateKeyBatchHandler:
    """Tests for CreateKeyBatchHandler."""

    async def test_batch(self, key_repository, clock):
        """Test a labelled batch is stored."""
        handler = CreateKeyBatchHandler(key_repository=key_repository, clock=clock)

        result = await handler.handle(
            CreateKeyBatchCommand(count=5, tier="basic", max_uses=0, prefix="promo")
        )

        assert len(result) == 5
        assert len(key_repository.keys) == 5
        assert sorted(k.note for k in result) == [f"promo-{n}" for n in range(1, 6)]
        assert all(k.max_uses == 0 for k in result)

    async def test_batch_over_limit(self, key_repository):
        """Test more than 100 keys is rejected before anything is stored."""
        handler = CreateKeyBatchHandler(key_repository=key_repository)
        with pytest.raises(BatchLimitExceededError, match="Maximum 100 keys per batch"):
            await handler.handle(CreateKeyBatchCommand(count=101))
        assert key_repository.keys == {}

    async def test_batch_of_100(self, key_repository):
        """Test the upper bound is inclusive."""
        handler = CreateKeyBatchHandler(key_repository=key_repository)
        result = await handler.handle(CreateKeyBatchCommand(count=100))
        assert len(result) == 100


@pytest.mark.asyncio
class TestKeyAdminHandlers:
    """Tests for key edits, resets and deletion."""

    async def test_update(self, key_repository, make_key, clock, now):
        """Test editing status, tier and expiry."""
        key = await key_repository.save(make_key())
        expires_at = now + timedelta(days=30)
        handler = UpdateKeyHandler(key_repository=key_repository, clock=clock)

        result = await handler.handle(
            UpdateKeyCommand(
                key_id=key.id,
                changes={"status": "disabled", "tier": "elevated", "expires_at": expires_at},
            )
        )

        assert result.status == "disabled"
        assert result.tier == "elevated"
        assert result.skip_validation
        assert result.expires_at == expires_at

    async def test_update_to_expired_publishes(
        self, key_repository, make_key, clock, published_events
    ):
        """Test an admin expiring a key emits KeyExpired."""
        key = await key_repository.save(make_key())
        handler = UpdateKeyHandler(key_repository=key_repository, clock=clock)

        await handler.handle(UpdateKeyCommand(key_id=key.id, changes={"status": "expired"}))

        assert published_events[0].source == "admin"
        assert isinstance(published_events[0], KeyExpired)

    async def test_update_missing(self, key_repository):
        """Test editing a missing key."""
        handler = UpdateKeyHandler(key_repository=key_repository)
        with pytest.raises(KeyNotFoundError):
            await handler.handle(UpdateKeyCommand(key_id=uuid.uuid4(), changes={"note": "x"}))

    async def test_update_unknown_owner(self, key_repository, account_repository, make_key):
        """Test assigning a missing owner."""
        key = await key_repository.save(make_key())
        handler = UpdateKeyHandler(
            key_repository=key_repository, account_repository=account_repository
        )
        with pytest.raises(AccountNotFoundError):
            await handler.handle(UpdateKeyCommand(key_id=key.id, changes={"owner_id": uuid.uuid4()}))

    async def test_owner_gets_one_key(
        self, key_repository, account_repository, make_account, make_key, clock
    ):
        """Test a second key for the same account is refused and the first stays linked."""
        owner = await account_repository.save(make_account())
        handler = CreateKeyHandler(
            key_repository=key_repository, account_repository=account_repository, clock=clock
        )

        first = await handler.handle(CreateKeyCommand(owner_id=owner.id))
        with pytest.raises(KeyAlreadyClaimedError):
            await handler.handle(CreateKeyCommand(owner_id=owner.id))

        assert len(key_repository.keys) == 1
        assert account_repository.accounts[owner.id].key_id == first.id

        spare = await key_repository.save(make_key())
        update = UpdateKeyHandler(
            key_repository=key_repository, account_repository=account_repository
        )
        with pytest.raises(KeyAlreadyClaimedError):
            await update.handle(UpdateKeyCommand(key_id=spare.id, changes={"owner_id": owner.id}))
        assert key_repository.keys[spare.id].owner_id is None

    async def test_reset_hwid_and_usage(self, key_repository, make_key, clock):
        """Test resets clear the binding and the counter."""
        key = await key_repository.save(make_key(hwid="HW-1", current_uses=4))

        after_hwid = await ResetHwidHandler(key_repository, clock).handle(ResetHwidCommand(key.id))
        after_usage = await ResetUsageHandler(key_repository, clock).handle(
            ResetUsageCommand(key.id)
        )

        assert after_hwid.hwid is None
        assert after_hwid.current_uses == 4
        assert after_usage.current_uses == 0

    async def test_reset_missing(self, key_repository):
        """Test resetting a missing key."""
        with pytest.raises(KeyNotFoundError):
            await ResetHwidHandler(key_repository).handle(ResetHwidCommand(uuid.uuid4()))

    async def test_delete(self, key_repository, make_key):
        """Test deleting a key, then deleting it again."""
        key = await key_repository.save(make_key())
        handler = DeleteKeyHandler(key_repository)
        await handler.handle(DeleteKeyCommand(key.id))
        assert key.id not in key_repository.keys
        with pytest.raises(KeyNotFoundError):
            await handler.handle(DeleteKeyCommand(key.id))

    async def test_batch_delete(self, key_repository, make_key):
        """Test batch delete counts only existing keys."""
        keys = [await key_repository.save(make_key()) for _ in range(3)]
        result = await BatchDeleteKeysHandler(key_repository).handle(
            BatchDeleteKeysCommand(key_ids=[keys[0].id, keys[1].id, uuid.uuid4()])
        )
        assert result.affected == 2
        assert list(key_repository.keys) == [keys[2].id]

    async def test_batch_status(self, key_repository, make_key, clock):
        """Test batch status update."""
        keys = [await key_repository.save(make_key()) for _ in range(2)]
        result = await BatchUpdateStatusHandler(key_repository, clock).handle(
            BatchUpdateStatusCommand(key_ids=[k.id for k in keys], status="banned")
        )
        assert result.affected == 2
        assert all(k.status == KeyStatus.BANNED for k in key_repository.keys.values())

    async def test_batch_bounds(self, key_repository):
        """Test empty and oversized id lists are rejected."""
        with pytest.raises(BatchLimitExceededError):
            await BatchDeleteKeysHandler(key_repository).handle(BatchDeleteKeysCommand(key_ids=[]))
        with pytest.raises(BatchLimitExceededError):
            await BatchUpdateStatusHandler(key_repository).handle(
                BatchUpdateStatusCommand(
                    key_ids=[uuid.uuid4() for _ in range(101)], status="active"
                )
            )


@pytest.mark.asyncio
class TestKeyQueryHandlers:
    """Tests for listing, lookup and export."""

    async def test_list_filters_and_pages(self, key_repository, make_key, now):
        """Test search, filters and paging."""
        for offset in range(5):
            await key_repository.save(
                make_key(tier=KeyTier.PREMIUM, now=now + timedelta(minutes=offset))
            )
        await key_repository.save(make_key(status=KeyStatus.BANNED))

        page = await ListKeysHandler(key_repository).handle(
            ListKeysQuery(tier="premium", page=2, limit=2)
        )

        assert page.total == 5
        assert page.total_pages == 3
        assert page.page == 2
        assert len(page.keys) == 2

        banned = await ListKeysHandler(key_repository).handle(ListKeysQuery(status="banned"))
        assert banned.total == 1

    async def test_list_search(self, key_repository, make_key):
        """Test substring search on the key value."""
        target = await key_repository.save(make_key())
        await key_repository.save(make_key())
        needle = target.key_value.split("-")[2].lower()

        page = await ListKeysHandler(key_repository).handle(ListKeysQuery(search=needle))

        assert [k.id for k in page.keys] == [target.id]

    async def test_get_and_own(self, key_repository, make_key):
        """Test single lookup and owner listing."""
        owner_id = uuid.uuid4()
        owned = await key_repository.save(make_key(owner_id=owner_id))
        await key_repository.save(make_key())

        assert (await GetKeyHandler(key_repository).handle(GetKeyQuery(owned.id))).id == owned.id
        mine = await ListOwnKeysHandler(key_repository).handle(ListOwnKeysQuery(owner_id))
        assert [k.id for k in mine] == [owned.id]
        with pytest.raises(KeyNotFoundError):
            await GetKeyHandler(key_repository).handle(GetKeyQuery(uuid.uuid4()))

    async def test_export_formats(self, key_repository, make_key):
        """Test json and txt exports."""
        first = await key_repository.save(make_key())
        await key_repository.save(make_key(status=KeyStatus.DISABLED))
        handler = ExportKeysHandler(key_repository)

        as_json = await handler.handle(ExportKeysQuery(status="active"))
        as_text = await handler.handle(ExportKeysQuery(status="active", format="txt"))

        assert as_json.count == 1
        assert as_json.keys[0].id == first.id
        assert as_text.text == first.key_value

    async def test_export_unknown_format(self, key_repository):
        """Test unsupported formats are rejected."""
        with pytest.raises(InvalidInputError):
            await ExportKeysHandler(key_repository).handle(ExportKeysQuery(format="csv"))
