"""
Administrative key edits.
"""
from dataclasses import replace
from datetime import datetime
from typing import Any, Dict

from core.domain.exceptions import InvalidInputError, InvalidKeyStatusError
from core.domain.value_objects import KeyStatus
from keys.domain.key import Key
from keys.domain.tier_policy import apply_tier_defaults, parse_tier

EDITABLE_FIELDS = frozenset(
    {
        "status",
        "tier",
        "expires_at",
        "max_uses",
        "note",
        "owner_id",
        "skip_validation",
        "validated",
    }
)


def parse_status(value) -> KeyStatus:
    """
    Parse a status name.

    Raises:
        InvalidKeyStatusError: If value is not a known status
    """
    if isinstance(value, KeyStatus):
        return value
    try:
        return KeyStatus(str(value).strip().lower())
    except ValueError:
        raise InvalidKeyStatusError(f"Invalid status: {value}") from None


def apply_changes(key: Key, changes: Dict[str, Any], now: datetime) -> Key:
    """
    Return key with the supplied edits applied.

    Unknown fields are ignored. Tier defaults are re-applied afterwards, so
    an elevated key always ends up with skip_validation and validated set.
    An administrative status edit is the only way out of expired.
    """
    updates = {name: value for name, value in changes.items() if name in EDITABLE_FIELDS}

    if "status" in updates:
        updates["status"] = parse_status(updates["status"])
    if "tier" in updates:
        updates["tier"] = parse_tier(updates["tier"])
    if "max_uses" in updates and int(updates["max_uses"]) < 0:
        raise InvalidInputError("max_uses cannot be negative")
    if "note" in updates:
        updates["note"] = updates["note"] or ""

    edited = replace(key, updated_at=now, **updates)

    validated_at = edited.validated_at
    if "validated" in updates:
        validated_at = (validated_at or now) if edited.validated else None

    flags = apply_tier_defaults(
        tier=edited.tier,
        skip_validation=edited.skip_validation,
        validated=edited.validated,
        validated_at=validated_at,
        now=now,
    )
    return replace(
        edited,
        skip_validation=flags.skip_validation,
        validated=flags.validated,
        validated_at=flags.validated_at,
    )
