"""
Pytest configuration and shared fixtures.
"""

from collections import Counter
from dataclasses import replace
from datetime import datetime, timezone

import pytest

from accounts.domain.account import Account
from accounts.domain.lockout import LoginAttemptTracker
from accounts.infrastructure.models import Account as AccountModel
from accounts.infrastructure.repositories.django_account_repository import (
    DjangoAccountRepository,
)
from accounts.infrastructure.security import TokenService, hash_password
from accounts.ports.account_repository import AccountRepository
from core.domain.exceptions import (
    DuplicateKeyValueError,
    EmailAlreadyRegisteredError,
    KeyAlreadyClaimedError,
)
from core.domain.value_objects import KeyStatus, KeyTier, Role
from core.infrastructure.events import event_bus
from keys.domain.key import Key
from keys.infrastructure.models import Key as KeyModel
from keys.infrastructure.repositories.django_key_repository import DjangoKeyRepository
from keys.infrastructure.repositories.django_usage_log_repository import (
    DjangoUsageLogRepository,
)
from keys.ports.key_repository import KeyRepository
from keys.ports.usage_log_repository import UsageLogRepository

FIXED_NOW = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)
TEST_PASSWORD = "correct-horse-battery"


class InMemoryKeyRepository(KeyRepository):
    """Dict-backed KeyRepository with the same guarded update rules as the ORM one."""

    def __init__(self, usage_log_repository=None):
        self.keys = {}
        self.record_use_failures = 0
        self.usage_log_repository = usage_log_repository
        # Set by InMemoryAccountRepository to keep Account.key_id in step
        self.account_repository = None

    def _claim_for(self, key_id, owner_id):
        if any(k.owner_id == owner_id and k.id != key_id for k in self.keys.values()):
            raise KeyAlreadyClaimedError("User already owns a key")
        accounts = self.account_repository.accounts if self.account_repository else {}
        account = accounts.get(owner_id)
        if account is not None and account.key_id not in (None, key_id):
            raise KeyAlreadyClaimedError("User already owns a key")

    def _link_owner(self, key_id, owner_id):
        if self.account_repository is None:
            return
        accounts = self.account_repository.accounts
        for account_id, account in list(accounts.items()):
            if account.key_id == key_id and account_id != owner_id:
                accounts[account_id] = account.with_key(None)
        if owner_id in accounts:
            accounts[owner_id] = accounts[owner_id].with_key(key_id)

    async def save(self, key):
        for other in self.keys.values():
            if other.key_value == key.key_value and other.id != key.id:
                raise DuplicateKeyValueError()
        if key.owner_id:
            self._claim_for(key.id, key.owner_id)
        self.keys[key.id] = key
        self._link_owner(key.id, key.owner_id)
        return key

    async def modify(self, key_id, change):
        key = self.keys.get(key_id)
        if key is None:
            return None
        wanted = change(key)
        owner_changed = wanted.owner_id != key.owner_id
        if owner_changed and wanted.owner_id:
            self._claim_for(key_id, wanted.owner_id)
        self.keys[key_id] = wanted
        if owner_changed:
            self._link_owner(key_id, wanted.owner_id)
        return wanted

    async def save_many(self, keys):
        values = [key.key_value for key in keys]
        existing = {key.key_value for key in self.keys.values()}
        if len(set(values)) < len(values) or existing.intersection(values):
            raise DuplicateKeyValueError()
        for key in keys:
            self.keys[key.id] = key
        return list(keys)

    async def find_by_id(self, key_id):
        return self.keys.get(key_id)

    async def find_by_value(self, key_value):
        return next((k for k in self.keys.values() if k.key_value == key_value), None)

    async def find_by_owner(self, owner_id):
        return [k for k in self.keys.values() if k.owner_id == owner_id]

    def _filtered(self, search=None, status=None, tier=None):
        keys = sorted(self.keys.values(), key=lambda k: k.created_at, reverse=True)
        if search:
            keys = [k for k in keys if search.lower() in k.key_value.lower()]
        if status:
            keys = [k for k in keys if k.status == status]
        if tier:
            keys = [k for k in keys if k.tier == tier]
        return keys

    async def search(self, search=None, status=None, tier=None, offset=0, limit=50):
        keys = self._filtered(search=search, status=status, tier=tier)
        return keys[offset : offset + limit], len(keys)

    async def find_all(self, status=None, tier=None):
        return self._filtered(status=status, tier=tier)

    async def record_use(self, key_id, decision, now, usage):
        if self.record_use_failures:
            self.record_use_failures -= 1
            return False
        key = self.keys.get(key_id)
        if key is None or key.status != KeyStatus.ACTIVE:
            return False
        updates = {"last_used": now, "updated_at": now}
        if decision.first_activation:
            if key.hwid is not None:
                return False
            updates["hwid"] = decision.hwid
        elif decision.returning_device and key.hwid != decision.hwid:
            return False
        if decision.consumes_use:
            if key.uses_exhausted:
                return False
            updates["current_uses"] = key.current_uses + 1
        if self.usage_log_repository is not None:
            await self.usage_log_repository.append(usage)
        self.keys[key_id] = replace(key, **updates)
        return True

    async def mark_expired(self, key_id, now):
        key = self.keys.get(key_id)
        if key is None or key.status != KeyStatus.ACTIVE:
            return False
        self.keys[key_id] = key.mark_expired(now)
        return True

    async def find_due_for_expiry(self, now):
        return [
            k
            for k in self.keys.values()
            if k.status == KeyStatus.ACTIVE and k.expires_at and k.expires_at < now
        ]

    async def expire_due(self, now):
        due = await self.find_due_for_expiry(now)
        for key in due:
            self.keys[key.id] = key.mark_expired(now)
        return len(due)

    async def delete(self, key_id):
        return self.keys.pop(key_id, None) is not None

    async def delete_many(self, key_ids):
        return sum(1 for key_id in list(key_ids) if self.keys.pop(key_id, None) is not None)

    async def update_status_many(self, key_ids, status, now):
        updated = 0
        for key_id in key_ids:
            if key_id in self.keys:
                self.keys[key_id] = replace(self.keys[key_id], status=status, updated_at=now)
                updated += 1
        return updated

    async def count_by_status(self):
        counts = {}
        for key in self.keys.values():
            counts[key.status.value] = counts.get(key.status.value, 0) + 1
        return counts

    async def count_by_tier(self):
        counts = {}
        for key in self.keys.values():
            counts[key.tier.value] = counts.get(key.tier.value, 0) + 1
        return counts


class InMemoryUsageLogRepository(UsageLogRepository):
    """List-backed UsageLogRepository."""

    def __init__(self):
        self.entries = []

    async def append(self, entry):
        self.entries.append(entry)
        return entry

    def _newest_first(self, key_id=None):
        entries = [e for e in self.entries if key_id is None or e.key_id == key_id]
        return sorted(entries, key=lambda e: e.used_at, reverse=True)

    async def search(self, key_id=None, offset=0, limit=50):
        entries = self._newest_first(key_id)
        return entries[offset : offset + limit], len(entries)

    async def recent(self, limit=10):
        return self._newest_first()[:limit]

    def _since(self, since):
        return [e for e in self.entries if e.used_at >= since]

    async def daily_counts_since(self, since):
        return dict(Counter(e.used_at.astimezone(timezone.utc).date() for e in self._since(since)))

    async def top_games_since(self, since, limit=10):
        games = Counter(e.game_id for e in self._since(since) if e.game_id)
        return sorted(games.items(), key=lambda item: (-item[1], item[0]))[:limit]

    async def count_since(self, since):
        return len(self._since(since))

    async def count_distinct_addresses_since(self, since):
        return len({e.ip_address for e in self._since(since) if e.ip_address})


class InMemoryAccountRepository(AccountRepository):
    """Dict-backed AccountRepository; claims keys in the paired key repository."""

    def __init__(self, key_repository=None):
        self.accounts = {}
        self.key_repository = key_repository
        if key_repository is not None:
            key_repository.account_repository = self

    async def save(self, account):
        for other in self.accounts.values():
            if other.email == account.email and other.id != account.id:
                raise EmailAlreadyRegisteredError()
        self.accounts[account.id] = account
        return account

    async def create_with_key(self, account, key_id, now):
        key = self.key_repository.keys.get(key_id)
        if key is None or key.is_claimed or key.status != KeyStatus.ACTIVE:
            raise KeyAlreadyClaimedError()
        saved = await self.save(account.with_key(key_id))
        self.key_repository.keys[key_id] = key.claim(saved.id, now)
        return saved

    async def find_by_id(self, account_id):
        return self.accounts.get(account_id)

    async def find_by_email(self, email):
        wanted = email.strip().lower()
        return next((a for a in self.accounts.values() if a.email.value == wanted), None)

    async def list_all(self):
        return sorted(self.accounts.values(), key=lambda a: a.created_at, reverse=True)

    async def update_role(self, account_id, role):
        account = self.accounts.get(account_id)
        if account is None:
            return None
        self.accounts[account_id] = account.with_role(role)
        return self.accounts[account_id]

    async def delete(self, account_id):
        if self.accounts.pop(account_id, None) is None:
            return False
        for key_id, key in list(self.key_repository.keys.items() if self.key_repository else []):
            if key.owner_id == account_id:
                self.key_repository.keys[key_id] = replace(key, owner_id=None)
        return True

    async def count(self):
        return len(self.accounts)


@pytest.fixture
def now():
    """Fixed clock value."""
    return FIXED_NOW


@pytest.fixture
def clock(now):
    """Clock callable returning the fixed time."""
    return lambda: now


@pytest.fixture
def key_repository(usage_log_repository):
    """Fixture for an in-memory KeyRepository logging into usage_log_repository."""
    return InMemoryKeyRepository(usage_log_repository)


@pytest.fixture
def usage_log_repository():
    """Fixture for an in-memory UsageLogRepository."""
    return InMemoryUsageLogRepository()


@pytest.fixture
def account_repository(key_repository):
    """Fixture for an in-memory AccountRepository."""
    return InMemoryAccountRepository(key_repository)


@pytest.fixture
def attempt_tracker(clock):
    """Fixture for a LoginAttemptTracker on the fixed clock."""
    return LoginAttemptTracker(clock=clock)


@pytest.fixture
def token_service():
    """Fixture for a TokenService with a fixed secret."""
    return TokenService(secret="unit-test-secret")


@pytest.fixture
def make_key(now):
    """Factory for Key entities; keyword arguments override the defaults."""
    counter = {"n": 0}

    def _make(**overrides):
        counter["n"] += 1
        values = dict(
            key_value=f"RNSXM-TEST-{counter['n']:04d}-ABCD-EF12",
            tier=KeyTier.BASIC,
            validated=True,
            validated_at=now,
            max_uses=5,
            now=now,
        )
        state = {
            name: overrides.pop(name)
            for name in ("status", "current_uses", "hwid", "last_used")
            if name in overrides
        }
        values.update(overrides)
        return replace(Key.create(**values), **state)

    return _make


@pytest.fixture
def password():
    """The password every test account is created with."""
    return TEST_PASSWORD


@pytest.fixture
def make_account():
    """Factory for Account entities with a hashed TEST_PASSWORD."""

    def _make(email="user@example.com", role=Role.USER, key_id=None):
        return Account.create(
            email=email, password_hash=hash_password(TEST_PASSWORD), role=role, key_id=key_id
        )

    return _make


@pytest.fixture
def published_events(monkeypatch):
    """Capture events published on the global event bus."""
    events = []

    async def _publish(event):
        events.append(event)

    monkeypatch.setattr(event_bus, "publish", _publish)
    return events


@pytest.fixture
def django_key_repository():
    """Fixture for the ORM KeyRepository."""
    return DjangoKeyRepository()


@pytest.fixture
def django_usage_log_repository():
    """Fixture for the ORM UsageLogRepository."""
    return DjangoUsageLogRepository()


@pytest.fixture
def django_account_repository():
    """Fixture for the ORM AccountRepository."""
    return DjangoAccountRepository()


@pytest.fixture
def create_key_model(db):
    """Factory for Key rows saved in the database."""
    counter = {"n": 0}

    def _create(**fields):
        counter["n"] += 1
        fields.setdefault("key_value", f"RNSXM-DBKY-{counter['n']:04d}-ABCD-EF12")
        fields.setdefault("validated", True)
        fields.setdefault("max_uses", 5)
        return KeyModel.objects.create(**fields)

    return _create


@pytest.fixture
def create_account_model(db):
    """Factory for Account rows saved in the database."""

    def _create(email, role="user", **fields):
        return AccountModel.objects.create(
            email=email, password_hash=hash_password(TEST_PASSWORD), role=role, **fields
        )

    return _create


def bearer_token_for(model: AccountModel) -> str:
    """Sign a token for an Account row with the configured secret."""
    # pylint: disable=protected-access
    return TokenService().issue(DjangoAccountRepository()._to_domain(model))


@pytest.fixture
def api_client():
    """Fixture for DRF API client."""
    from rest_framework.test import APIClient

    return APIClient()


@pytest.fixture
def user_account(create_account_model):
    """A plain user account."""
    return create_account_model("user@example.com", role="user")


@pytest.fixture
def admin_account(create_account_model):
    """An admin account (read-only administration)."""
    return create_account_model("admin@example.com", role="admin")


@pytest.fixture
def super_admin_account(create_account_model):
    """A super admin account (full administration)."""
    return create_account_model("root@example.com", role="super_admin")


@pytest.fixture
def user_client(api_client, user_account):
    """API client authenticated as user_account."""
    api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {bearer_token_for(user_account)}")
    return api_client


@pytest.fixture
def admin_client(api_client, admin_account):
    """API client authenticated as admin_account."""
    api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {bearer_token_for(admin_account)}")
    return api_client


@pytest.fixture
def super_admin_client(api_client, super_admin_account):
    """API client authenticated as super_admin_account."""
    api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {bearer_token_for(super_admin_account)}")
    return api_client

