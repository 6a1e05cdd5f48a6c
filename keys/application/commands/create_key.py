"""
Key issuance commands.
"""
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass
class CreateKeyCommand:
    """Command to create a single key."""

    tier: str = "basic"
    expires_at: Optional[datetime] = None
    max_uses: int = 1
    skip_validation: bool = False
    note: str = ""
    owner_id: Optional[uuid.UUID] = None


@dataclass
class CreateKeyBatchCommand:
    """
    Command to create up to 100 keys with identical settings.

    prefix labels the keys' notes as '{prefix}-1', '{prefix}-2', ...
    """

    count: int = 10
    tier: str = "basic"
    expires_at: Optional[datetime] = None
    max_uses: int = 1
    skip_validation: bool = False
    prefix: Optional[str] = None
