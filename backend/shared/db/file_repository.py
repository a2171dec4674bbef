"""SQLite-backed file metadata repository."""

from __future__ import annotations

import asyncio
import json
import sqlite3
from typing import TYPE_CHECKING, Any

from shared.dal.file_repository import FileRepository
from shared.db.connection import store_errors
from shared.files.models import SORT_FIELDS, FileRecord

if TYPE_CHECKING:
    from shared.db.connection import Database
    from shared.files.models import FileFilter


def _compile_filter(file_filter: FileFilter) -> tuple[str, list[Any]]:
    """Translate a FileFilter into a SELECT statement and its parameters.

    Name matching uses instr() because LIKE is case-insensitive for ASCII in
    SQLite. The sort column is checked against SORT_FIELDS before it is
    interpolated.
    """
    clauses: list[str] = []
    params: list[Any] = []

    if file_filter.types:
        placeholders = ", ".join("?" for _ in file_filter.types)
        clauses.append(f"type IN ({placeholders})")
        params.extend(t.value for t in file_filter.types)
    if file_filter.search_text:
        clauses.append("instr(name, ?) > 0")
        params.append(file_filter.search_text)
    if file_filter.keyword:
        clauses.append("instr(name, ?) > 0")
        params.append(file_filter.keyword)

    sort = file_filter.sort
    if sort.field not in SORT_FIELDS:  # pragma: no cover - SortSpec.parse already enforces this
        raise ValueError(f"Unsupported sort field {sort.field!r}")
    direction = "DESC" if sort.descending else "ASC"

    sql = "SELECT data FROM files"
    if clauses:
        sql += " WHERE " + " AND ".join(clauses)
    sql += f" ORDER BY {sort.field} {direction}, id ASC"  # noqa: S608
    if file_filter.limit is not None:
        sql += " LIMIT ?"
        params.append(file_filter.limit)
    return sql, params


class SqliteFileRepository(FileRepository):
    """SQLite implementation of FileRepository.

    File names are unique per owner; a duplicate maps to ValueError.
    """

    def __init__(self, db: Database) -> None:
        self._db = db
        self._lock = asyncio.Lock()

    async def create_file(self, record: FileRecord) -> None:
        async with self._lock:
            try:
                with store_errors("create_file"):
                    self._db.connection.execute(
                        "INSERT INTO files (id, owner_id, name, type, size, created_at, updated_at, data) "
                        "VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                        (
                            record.file_id,
                            record.owner_id,
                            record.name,
                            record.type.value,
                            record.size,
                            record.created_at,
                            record.updated_at,
                            record.model_dump_json(),
                        ),
                    )
                    self._db.connection.commit()
            except sqlite3.IntegrityError as exc:
                self._db.connection.rollback()
                raise ValueError(
                    f"A file named '{record.name}' already exists; delete it before uploading a new one",
                ) from exc

    async def get_file(self, file_id: str) -> FileRecord | None:
        with store_errors("get_file"):
            row = self._db.connection.execute("SELECT data FROM files WHERE id = ?", (file_id,)).fetchone()
        if row is None:
            return None
        return FileRecord.model_validate(json.loads(row[0]))

    async def rename_file(self, file_id: str, name: str, updated_at: float) -> FileRecord | None:
        """Rename a file. Raises ValueError if the owner already has a file with that name."""
        async with self._lock:
            try:
                with store_errors("rename_file"):
                    cursor = self._db.connection.execute(
                        "UPDATE files SET name = ?, updated_at = ?, "
                        "data = json_set(data, '$.name', ?, '$.updated_at', ?) "
                        "WHERE id = ?",
                        (name, updated_at, name, updated_at, file_id),
                    )
                    self._db.connection.commit()
            except sqlite3.IntegrityError as exc:
                self._db.connection.rollback()
                raise ValueError(f"A file named '{name}' already exists") from exc
        if cursor.rowcount == 0:
            return None
        return await self.get_file(file_id)

    async def delete_file(self, file_id: str) -> bool:
        async with self._lock:
            with store_errors("delete_file"):
                cursor = self._db.connection.execute("DELETE FROM files WHERE id = ?", (file_id,))
                self._db.connection.commit()
        return cursor.rowcount > 0

    async def query_files(self, file_filter: FileFilter) -> list[FileRecord]:
        sql, params = _compile_filter(file_filter)
        with store_errors("query_files"):
            rows = self._db.connection.execute(sql, params).fetchall()
        return [FileRecord.model_validate(json.loads(row[0])) for row in rows]

    async def list_all_files(self) -> list[FileRecord]:
        with store_errors("list_all_files"):
            rows = self._db.connection.execute("SELECT data FROM files ORDER BY id").fetchall()
        return [FileRecord.model_validate(json.loads(row[0])) for row in rows]
