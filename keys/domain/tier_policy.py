"""
Tier defaults.

Elevated keys never require registration: every write path that sets or
changes a tier routes its flags through apply_tier_defaults.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from core.domain.exceptions import InvalidTierError
from core.domain.value_objects import KeyTier


@dataclass(frozen=True)
class TierFlags:
    """Validation flags after tier defaults are applied."""

    skip_validation: bool
    validated: bool
    validated_at: Optional[datetime]


def parse_tier(value) -> KeyTier:
    """
    Parse a tier name.

    Raises:
        InvalidTierError: If value is not a known tier
    """
    if isinstance(value, KeyTier):
        return value
    try:
        return KeyTier(str(value).strip().lower())
    except ValueError:
        raise InvalidTierError(f"Invalid tier: {value}") from None


def apply_tier_defaults(
    tier: KeyTier,
    skip_validation: bool,
    validated: bool,
    validated_at: Optional[datetime],
    now: datetime,
) -> TierFlags:
    """
    Apply tier-driven defaults to validation flags.

    Elevated keys get skip_validation and validated forced on; validated_at
    is stamped with now unless it is already set. Other tiers pass through.
    """
    if tier == KeyTier.ELEVATED:
        return TierFlags(
            skip_validation=True,
            validated=True,
            validated_at=validated_at or now,
        )
    return TierFlags(
        skip_validation=skip_validation,
        validated=validated,
        validated_at=validated_at,
    )
