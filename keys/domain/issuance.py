"""
Key issuance.

Builds new Key entities with generated values and tier defaults applied.
Uniqueness of values is enforced by the store; callers regenerate on
collision.
"""
import uuid
from dataclasses import replace
from datetime import datetime
from typing import Callable, List, Optional

from core.domain.exceptions import BatchLimitExceededError
from core.domain.value_objects import DEFAULT_KEY_PREFIX, KeyTier
from keys.domain.key import Key, generate_key_value
from keys.domain.tier_policy import apply_tier_defaults

MAX_BATCH_SIZE = 100


class KeyIssuer:
    """Domain service that builds keys ready to be persisted."""

    def __init__(
        self,
        prefix: str = DEFAULT_KEY_PREFIX,
        max_batch_size: int = MAX_BATCH_SIZE,
        generator: Callable[[str], str] = generate_key_value,
    ):
        self.prefix = prefix
        self.max_batch_size = max_batch_size
        self.generator = generator

    def issue(
        self,
        tier: KeyTier,
        now: datetime,
        expires_at: Optional[datetime] = None,
        max_uses: int = 1,
        skip_validation: bool = False,
        note: str = "",
        owner_id: Optional[uuid.UUID] = None,
    ) -> Key:
        """
        Build one new key.

        Args:
            tier: Key tier
            now: Creation time
            expires_at: Optional expiry
            max_uses: Usage ceiling (0 = unlimited)
            skip_validation: Whether registration is skipped
            note: Free-form note
            owner_id: Optional owning account

        Returns:
            New Key entity with tier defaults applied
        """
        flags = apply_tier_defaults(
            tier=tier,
            skip_validation=skip_validation,
            validated=False,
            validated_at=None,
            now=now,
        )
        return Key.create(
            key_value=self.generator(self.prefix),
            tier=tier,
            expires_at=expires_at,
            max_uses=max_uses,
            skip_validation=flags.skip_validation,
            validated=flags.validated,
            validated_at=flags.validated_at,
            note=note,
            owner_id=owner_id,
            now=now,
        )

    def check_batch_size(self, count: int) -> None:
        """
        Raises:
            BatchLimitExceededError: If count is outside 1..max_batch_size
        """
        if count < 1:
            raise BatchLimitExceededError("Batch must contain at least 1 key")
        if count > self.max_batch_size:
            raise BatchLimitExceededError(f"Maximum {self.max_batch_size} keys per batch")

    def issue_batch(
        self,
        count: int,
        tier: KeyTier,
        now: datetime,
        expires_at: Optional[datetime] = None,
        max_uses: int = 1,
        skip_validation: bool = False,
        label_prefix: Optional[str] = None,
    ) -> List[Key]:
        """
        Build count new keys with identical settings.

        When label_prefix is given, the n-th key (1-based) gets the note
        '{label_prefix}-{n}'.
        """
        self.check_batch_size(count)
        return [
            self.issue(
                tier=tier,
                now=now,
                expires_at=expires_at,
                max_uses=max_uses,
                skip_validation=skip_validation,
                note=f"{label_prefix}-{index + 1}" if label_prefix else "",
            )
            for index in range(count)
        ]

    def regenerate(self, key: Key) -> Key:
        """Return key with a freshly generated value."""
        return replace(key, key_value=self.generator(self.prefix))
