"""
Key query handlers.

Handles listing, single-key lookup, own-key listing and export.
"""

from typing import List

from core.application.pagination import clamp_limit, offset_for, total_pages
from core.domain.exceptions import InvalidInputError, KeyNotFoundError
from keys.application.dto.key_dto import KeyDTO, KeyExportDTO, KeyPageDTO
from keys.application.queries.list_keys import (
    ExportKeysQuery,
    GetKeyQuery,
    ListKeysQuery,
    ListOwnKeysQuery,
)
from keys.domain.editing import parse_status
from keys.domain.tier_policy import parse_tier
from keys.ports.key_repository import KeyRepository

EXPORT_FORMATS = ("json", "txt")


class ListKeysHandler:
    """Handler for ListKeysQuery."""

    def __init__(self, key_repository: KeyRepository):
        """Initialize handler with repository."""
        self.key_repository = key_repository

    async def handle(self, query: ListKeysQuery) -> KeyPageDTO:
        """
        Handle list keys query.

        Args:
            query: ListKeysQuery

        Returns:
            KeyPageDTO with keys, total, page and total_pages
        """
        limit = clamp_limit(query.limit)
        page = max(1, query.page)
        keys, total = await self.key_repository.search(
            search=query.search or None,
            status=parse_status(query.status) if query.status else None,
            tier=parse_tier(query.tier) if query.tier else None,
            offset=offset_for(page, limit),
            limit=limit,
        )
        return KeyPageDTO(
            keys=[KeyDTO.from_entity(key) for key in keys],
            total=total,
            page=page,
            total_pages=total_pages(total, limit),
        )


class GetKeyHandler:
    """Handler for GetKeyQuery."""

    def __init__(self, key_repository: KeyRepository):
        self.key_repository = key_repository

    async def handle(self, query: GetKeyQuery) -> KeyDTO:
        """
        Raises:
            KeyNotFoundError: If the key does not exist
        """
        key = await self.key_repository.find_by_id(query.key_id)
        if key is None:
            raise KeyNotFoundError(f"Key {query.key_id} not found")
        return KeyDTO.from_entity(key)


class ListOwnKeysHandler:
    """Handler for ListOwnKeysQuery."""

    def __init__(self, key_repository: KeyRepository):
        self.key_repository = key_repository

    async def handle(self, query: ListOwnKeysQuery) -> List[KeyDTO]:
        keys = await self.key_repository.find_by_owner(query.owner_id)
        return [KeyDTO.from_entity(key) for key in keys]


class ExportKeysHandler:
    """Handler for ExportKeysQuery."""

    def __init__(self, key_repository: KeyRepository):
        self.key_repository = key_repository

    async def handle(self, query: ExportKeysQuery) -> KeyExportDTO:
        """
        Export keys matching the filters.

        Raises:
            InvalidInputError: If the format is not json or txt
        """
        export_format = (query.format or "json").lower()
        if export_format not in EXPORT_FORMATS:
            raise InvalidInputError(f"Unsupported export format: {query.format}")

        keys = await self.key_repository.find_all(
            status=parse_status(query.status) if query.status else None,
            tier=parse_tier(query.tier) if query.tier else None,
        )
        if export_format == "txt":
            return KeyExportDTO(
                format=export_format,
                count=len(keys),
                text="\n".join(key.key_value for key in keys),
            )
        return KeyExportDTO(
            format=export_format,
            count=len(keys),
            keys=[KeyDTO.from_entity(key) for key in keys],
        )
