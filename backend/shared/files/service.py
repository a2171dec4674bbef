"""File catalog service: access-filtered listing and metadata mutations."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING
from uuid import uuid4

import structlog

from shared.auth.policy import build_file_filter
from shared.errors import AuthError, ForbiddenError, NotFoundError, UnauthenticatedError
from shared.files.models import DEFAULT_SORT, FileRecord, FileType, get_file_type

if TYPE_CHECKING:
    from collections.abc import Iterable

    from shared.auth.models import Account
    from shared.dal.file_repository import FileRepository

STORAGE_CAPACITY_BYTES = 2 * 1024 * 1024 * 1024  # 2 GiB shared bucket
FILE_NAME_MAX_LENGTH = 255

logger = structlog.get_logger()


@dataclass
class TypeUsage:
    size: int = 0
    latest_date: float | None = None


@dataclass
class SpaceUsage:
    """Bytes used per file type across the whole catalog."""

    by_type: dict[FileType, TypeUsage] = field(default_factory=lambda: {t: TypeUsage() for t in FileType})
    used: int = 0
    capacity: int = STORAGE_CAPACITY_BYTES


class FileService:
    def __init__(self, file_repo: FileRepository) -> None:
        self._file_repo = file_repo

    async def list_files(
        self,
        requester: Account | None,
        *,
        types: Iterable[str] = (),
        search_text: str = "",
        sort: str = DEFAULT_SORT,
        limit: int | None = None,
    ) -> list[FileRecord]:
        """List files visible to the requester.

        Raises UnauthenticatedError (before touching the store) when there is
        no requester.
        """
        file_filter = build_file_filter(requester, types=types, search_text=search_text, sort=sort, limit=limit)
        return await self._file_repo.query_files(file_filter)

    async def add_file(self, owner: Account, name: str, size: int, url: str = "") -> FileRecord:
        """Record metadata for a file already stored in object storage."""
        name = _validate_name(name)
        if size < 0:
            raise AuthError("File size must not be negative")
        file_type, extension = get_file_type(name)
        now = time.time()
        record = FileRecord(
            file_id=str(uuid4()),
            owner_id=owner.account_id,
            name=name,
            type=file_type,
            extension=extension,
            size=size,
            url=url,
            created_at=now,
            updated_at=now,
        )
        try:
            await self._file_repo.create_file(record)
        except ValueError as e:
            raise AuthError(str(e)) from e
        logger.info("file recorded", file_id=record.file_id, owner_id=owner.account_id, type=file_type)
        return record

    async def rename_file(self, requester: Account, file_id: str, name: str) -> FileRecord:
        """Rename a file, keeping its extension. Only the owner may rename."""
        record = await self._require_owned(requester, file_id)
        base = _validate_name(name)
        new_name = f"{base}.{record.extension}" if record.extension else base
        try:
            updated = await self._file_repo.rename_file(file_id, new_name, time.time())
        except ValueError as e:
            raise AuthError(str(e)) from e
        if updated is None:
            raise NotFoundError("File not found")
        return updated

    async def delete_file(self, requester: Account, file_id: str) -> None:
        """Delete a file record. Only the owner may delete."""
        await self._require_owned(requester, file_id)
        if not await self._file_repo.delete_file(file_id):
            raise NotFoundError("File not found")
        logger.info("file record deleted", file_id=file_id)

    async def total_space_used(self, requester: Account | None) -> SpaceUsage:
        if requester is None:
            raise UnauthenticatedError("No current user")
        usage = SpaceUsage()
        for record in await self._file_repo.list_all_files():
            bucket = usage.by_type[record.type]
            bucket.size += record.size
            usage.used += record.size
            if bucket.latest_date is None or record.updated_at > bucket.latest_date:
                bucket.latest_date = record.updated_at
        return usage

    async def _require_owned(self, requester: Account, file_id: str) -> FileRecord:
        record = await self._file_repo.get_file(file_id)
        if record is None:
            raise NotFoundError("File not found")
        if record.owner_id != requester.account_id:
            raise ForbiddenError("Only the owner can modify this file")
        return record


def _validate_name(name: str) -> str:
    name = name.strip()
    if not name or len(name) > FILE_NAME_MAX_LENGTH:
        raise AuthError(f"File name must be between 1 and {FILE_NAME_MAX_LENGTH} characters")
    if "/" in name or "\\" in name:
        raise AuthError("File name must not contain path separators")
    return name
