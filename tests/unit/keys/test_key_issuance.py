"""
Unit tests for tier defaults, key issuance and administrative edits.
"""
import re
import uuid
from datetime import timedelta

import pytest

from core.domain.exceptions import (
    BatchLimitExceededError,
    InvalidInputError,
    InvalidKeyStatusError,
    InvalidTierError,
)
from core.domain.value_objects import KeyStatus, KeyTier, KeyValue
from keys.domain.editing import apply_changes
from keys.domain.issuance import KeyIssuer
from keys.domain.key import generate_key_value
from keys.domain.tier_policy import apply_tier_defaults, parse_tier


class TestTierPolicy:
    """Tests for tier parsing and defaults."""

    def test_parse_tier(self):
        """Test tier names are parsed case-insensitively."""
        assert parse_tier("Premium") == KeyTier.PREMIUM
        assert parse_tier(KeyTier.BASIC) == KeyTier.BASIC

    def test_parse_unknown_tier(self):
        """Test unknown tiers raise InvalidTierError."""
        with pytest.raises(InvalidTierError, match="Invalid tier: gold"):
            parse_tier("gold")

    def test_elevated_forces_flags(self, now):
        """Test elevated keys always skip validation and count as validated."""
        flags = apply_tier_defaults(KeyTier.ELEVATED, False, False, None, now)
        assert flags.skip_validation
        assert flags.validated
        assert flags.validated_at == now

    def test_elevated_keeps_existing_timestamp(self, now):
        """Test an existing validated_at is preserved."""
        earlier = now - timedelta(days=10)
        flags = apply_tier_defaults(KeyTier.ELEVATED, True, True, earlier, now)
        assert flags.validated_at == earlier

    def test_other_tiers_pass_through(self, now):
        """Test basic and premium flags are unchanged."""
        flags = apply_tier_defaults(KeyTier.PREMIUM, False, False, None, now)
        assert not flags.skip_validation
        assert not flags.validated
        assert flags.validated_at is None


class TestKeyIssuer:
    """Tests for KeyIssuer."""

    def test_generated_value_format(self):
        """Test generated values match the key pattern."""
        value = generate_key_value("RNSXM")
        assert re.match(r"^RNSXM(-[A-Z0-9]{4}){4}$", value)
        assert KeyValue.parse(value).value == value

    def test_issue_basic(self, now):
        """Test a basic key needs registration."""
        key = KeyIssuer().issue(tier=KeyTier.BASIC, now=now, max_uses=3, note="vip")
        assert key.status == KeyStatus.ACTIVE
        assert key.max_uses == 3
        assert key.note == "vip"
        assert not key.validated
        assert key.needs_validation

    def test_issue_elevated_applies_defaults(self, now):
        """Test elevated keys are issued ready to use."""
        key = KeyIssuer().issue(tier=KeyTier.ELEVATED, now=now)
        assert key.skip_validation
        assert key.validated
        assert key.validated_at == now

    def test_issue_uses_prefix(self, now):
        """Test the configured prefix is used."""
        key = KeyIssuer(prefix="acme").issue(tier=KeyTier.BASIC, now=now)
        assert key.key_value.startswith("ACME-")

    def test_batch_labels(self, now):
        """Test batch notes are numbered from 1."""
        keys = KeyIssuer().issue_batch(count=3, tier=KeyTier.PREMIUM, now=now, label_prefix="promo")
        assert [k.note for k in keys] == ["promo-1", "promo-2", "promo-3"]
        assert len({k.key_value for k in keys}) == 3
        assert all(k.tier == KeyTier.PREMIUM for k in keys)

    def test_batch_without_labels(self, now):
        """Test batch keys have empty notes without a label prefix."""
        keys = KeyIssuer().issue_batch(count=2, tier=KeyTier.BASIC, now=now)
        assert [k.note for k in keys] == ["", ""]

    @pytest.mark.parametrize("count", [0, 101])
    def test_batch_bounds(self, now, count):
        """Test batch size must be 1..100."""
        with pytest.raises(BatchLimitExceededError):
            KeyIssuer().issue_batch(count=count, tier=KeyTier.BASIC, now=now)

    def test_batch_limit_message(self):
        """Test the batch limit message names the bound."""
        with pytest.raises(BatchLimitExceededError, match="Maximum 100 keys per batch"):
            KeyIssuer().check_batch_size(101)

    def test_regenerate_keeps_identity(self, now):
        """Test regeneration changes only the value."""
        values = iter(["RNSXM-AAAA-AAAA-AAAA-AAAA", "RNSXM-BBBB-BBBB-BBBB-BBBB"])
        issuer = KeyIssuer(generator=lambda prefix: next(values))
        key = issuer.issue(tier=KeyTier.BASIC, now=now)
        again = issuer.regenerate(key)
        assert again.id == key.id
        assert again.key_value == "RNSXM-BBBB-BBBB-BBBB-BBBB"


class TestApplyChanges:
    """Tests for administrative key edits."""

    def test_status_and_note(self, make_key, now):
        """Test simple field edits."""
        edited = apply_changes(make_key(), {"status": "disabled", "note": "refund"}, now)
        assert edited.status == KeyStatus.DISABLED
        assert edited.note == "refund"
        assert edited.updated_at == now

    def test_reactivate_expired(self, make_key, now):
        """Test an admin can move an expired key back to active."""
        edited = apply_changes(make_key(status=KeyStatus.EXPIRED), {"status": "active"}, now)
        assert edited.status == KeyStatus.ACTIVE

    def test_promote_to_elevated_reapplies_defaults(self, make_key, now):
        """Test changing tier to elevated forces the validation flags."""
        key = make_key(validated=False, validated_at=None)
        edited = apply_changes(key, {"tier": "elevated"}, now)
        assert edited.tier == KeyTier.ELEVATED
        assert edited.skip_validation
        assert edited.validated

    def test_elevated_cannot_be_unvalidated(self, make_key, now):
        """Test elevated keys ignore attempts to clear the flags."""
        key = apply_changes(make_key(), {"tier": "elevated"}, now)
        edited = apply_changes(key, {"validated": False, "skip_validation": False}, now)
        assert edited.validated
        assert edited.skip_validation

    def test_unvalidate_clears_timestamp(self, make_key, now):
        """Test clearing validated clears validated_at for non-elevated keys."""
        edited = apply_changes(make_key(), {"validated": False}, now)
        assert not edited.validated
        assert edited.validated_at is None

    def test_owner_and_unknown_fields(self, make_key, now):
        """Test owner edits apply and unknown fields are ignored."""
        owner_id = uuid.uuid4()
        edited = apply_changes(make_key(), {"owner_id": owner_id, "key_value": "X"}, now)
        assert edited.owner_id == owner_id
        assert edited.key_value.startswith("RNSXM-")

    def test_invalid_values(self, make_key, now):
        """Test bad enum values and negative max_uses are rejected."""
        with pytest.raises(InvalidKeyStatusError):
            apply_changes(make_key(), {"status": "deleted"}, now)
        with pytest.raises(InvalidTierError):
            apply_changes(make_key(), {"tier": "gold"}, now)
        with pytest.raises(InvalidInputError):
            apply_changes(make_key(), {"max_uses": -1}, now)
