"""
Unit tests for core value objects.
"""
import pytest

from core.application.pagination import clamp_limit, offset_for, total_pages
from core.domain.value_objects import Email, KeyStatus, KeyTier, KeyValue, Role


class TestEmail:
    """Tests for Email value object."""

    def test_valid_email(self):
        """Test valid email creation."""
        email = Email("test@example.com")
        assert str(email) == "test@example.com"
        assert email.value == "test@example.com"

    def test_invalid_email_no_at(self):
        """Test invalid email without @."""
        with pytest.raises(ValueError, match="Invalid email"):
            Email("invalid-email")

    def test_invalid_email_empty(self):
        """Test invalid empty email."""
        with pytest.raises(ValueError, match="Invalid email"):
            Email("")


class TestKeyValue:
    """Tests for KeyValue value object."""

    def test_valid_key(self):
        """Test a canonical key is accepted as-is."""
        key = KeyValue("RNSXM-AB12-CD34-EF56-GH78")
        assert str(key) == "RNSXM-AB12-CD34-EF56-GH78"

    def test_parse_trims_and_uppercases(self):
        """Test parsing canonicalizes whitespace and case."""
        key = KeyValue.parse("  rnsxm-ab12-cd34-ef56-gh78 \n")
        assert key.value == "RNSXM-AB12-CD34-EF56-GH78"

    def test_parse_with_custom_prefix(self):
        """Test a deployment-specific prefix."""
        key = KeyValue.parse("acme-0000-1111-2222-3333", prefix="acme")
        assert key.value == "ACME-0000-1111-2222-3333"

    @pytest.mark.parametrize(
        "raw",
        [
            "",
            "RNSXM-AB12-CD34-EF56",
            "RNSXM-AB12-CD34-EF56-GH78-IJ90",
            "RNSXM-AB1-CD34-EF56-GH78",
            "OTHER-AB12-CD34-EF56-GH78",
            "RNSXM-AB12-CD34-EF56-GH7!",
            "RNSXMAB12CD34EF56GH78",
        ],
    )
    def test_invalid_formats(self, raw):
        """Test malformed keys are rejected."""
        with pytest.raises(ValueError, match="Invalid key format"):
            KeyValue.parse(raw)

    def test_equality_by_value(self):
        """Test value objects compare by value."""
        assert KeyValue.parse("rnsxm-ab12-cd34-ef56-gh78") == KeyValue(
            "RNSXM-AB12-CD34-EF56-GH78"
        )


class TestEnums:
    """Tests for status, tier and role enums."""

    def test_status_values(self):
        """Test status string values."""
        assert {s.value for s in KeyStatus} == {"active", "disabled", "banned", "expired"}
        assert str(KeyStatus.ACTIVE) == "active"

    def test_tier_values(self):
        """Test tier string values."""
        assert {t.value for t in KeyTier} == {"basic", "premium", "elevated"}

    def test_role_ordering(self):
        """Test roles are ordered user < admin < super_admin."""
        assert Role.USER < Role.ADMIN < Role.SUPER_ADMIN
        assert Role.SUPER_ADMIN >= Role.ADMIN
        assert not Role.USER >= Role.ADMIN

    def test_role_label(self):
        """Test human-readable role labels."""
        assert Role.SUPER_ADMIN.label == "Super Admin"
        assert Role.ADMIN.label == "Admin"


class TestPagination:
    """Tests for page arithmetic."""

    def test_clamp_limit(self):
        """Test page size bounds."""
        assert clamp_limit(0) == 50
        assert clamp_limit(500) == 100
        assert clamp_limit(-3) == 1
        assert clamp_limit(20) == 20

    def test_offset_and_total_pages(self):
        """Test offsets and page counts."""
        assert offset_for(1, 50) == 0
        assert offset_for(3, 20) == 40
        assert total_pages(0, 50) == 0
        assert total_pages(101, 50) == 3
