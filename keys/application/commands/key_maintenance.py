"""
Administrative key maintenance commands.
"""
import uuid
from dataclasses import dataclass
from typing import List


@dataclass
class ResetHwidCommand:
    """Command to clear a key's device binding."""

    key_id: uuid.UUID


@dataclass
class ResetUsageCommand:
    """Command to clear a key's usage counter."""

    key_id: uuid.UUID


@dataclass
class DeleteKeyCommand:
    """Command to delete one key."""

    key_id: uuid.UUID


@dataclass
class BatchDeleteKeysCommand:
    """Command to delete up to 100 keys."""

    key_ids: List[uuid.UUID]


@dataclass
class BatchUpdateStatusCommand:
    """Command to set the status of up to 100 keys."""

    key_ids: List[uuid.UUID]
    status: str


@dataclass
class ExpireDueKeysCommand:
    """Command to mark every overdue active key as expired."""

    dry_run: bool = False


@dataclass
class RepairElevatedKeysCommand:
    """Command to re-apply tier defaults to elevated keys that lost them."""

    dry_run: bool = False
