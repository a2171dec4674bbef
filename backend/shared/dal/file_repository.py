"""Abstract interface for file metadata persistence."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from shared.files.models import FileFilter, FileRecord


class FileRepository(ABC):
    """Abstract interface for file metadata persistence.

    File bytes live in external object storage; this only tracks the records.
    """

    @abstractmethod
    async def create_file(self, record: FileRecord) -> None: ...

    @abstractmethod
    async def get_file(self, file_id: str) -> FileRecord | None: ...

    @abstractmethod
    async def rename_file(self, file_id: str, name: str, updated_at: float) -> FileRecord | None: ...

    @abstractmethod
    async def delete_file(self, file_id: str) -> bool: ...

    @abstractmethod
    async def query_files(self, file_filter: FileFilter) -> list[FileRecord]: ...

    @abstractmethod
    async def list_all_files(self) -> list[FileRecord]: ...
