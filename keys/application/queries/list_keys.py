"""
Key listing queries.
"""
import uuid
from dataclasses import dataclass
from typing import Optional

from core.application.pagination import DEFAULT_PAGE_SIZE


@dataclass
class ListKeysQuery:
    """Search and paginate keys."""

    search: Optional[str] = None
    status: Optional[str] = None
    tier: Optional[str] = None
    page: int = 1
    limit: int = DEFAULT_PAGE_SIZE


@dataclass
class GetKeyQuery:
    """Fetch one key by id."""

    key_id: uuid.UUID


@dataclass
class ListOwnKeysQuery:
    """Keys owned by the calling account."""

    owner_id: uuid.UUID


@dataclass
class ExportKeysQuery:
    """
    Export keys.

    format is 'json' (key records) or 'txt' (key values, one per line).
    """

    status: Optional[str] = None
    tier: Optional[str] = None
    format: str = "json"
