"""
UpdateKeyCommand.
"""
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict


@dataclass
class UpdateKeyCommand:
    """
    Command to edit a key.

    changes holds only the fields the caller supplied: any of status, tier,
    expires_at, max_uses, note, owner_id, skip_validation, validated.
    """

    key_id: uuid.UUID
    changes: Dict[str, Any] = field(default_factory=dict)
