"""SQLite-backed one-time code repository."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from shared.auth.models import OneTimeCode
from shared.dal.code_repository import CodeRepository
from shared.db.connection import store_errors

if TYPE_CHECKING:
    from shared.db.connection import Database


class SqliteCodeRepository(CodeRepository):
    """SQLite implementation of CodeRepository.

    The account id is the primary key, so ``INSERT OR REPLACE`` gives
    last-write-wins issuance without a separate invalidation step.
    """

    def __init__(self, db: Database) -> None:
        self._db = db
        self._lock = asyncio.Lock()

    async def save_code(self, code: OneTimeCode) -> None:
        async with self._lock:
            with store_errors("save_code"):
                self._db.connection.execute(
                    "INSERT OR REPLACE INTO one_time_codes (account_id, code_hash, expires_at, attempts) "
                    "VALUES (?, ?, ?, ?)",
                    (code.account_id, code.code_hash, code.expires_at, code.attempts),
                )
                self._db.connection.commit()

    async def get_code(self, account_id: str) -> OneTimeCode | None:
        with store_errors("get_code"):
            row = self._db.connection.execute(
                "SELECT account_id, code_hash, expires_at, attempts FROM one_time_codes WHERE account_id = ?",
                (account_id,),
            ).fetchone()
        if row is None:
            return None
        return OneTimeCode(account_id=row[0], code_hash=row[1], expires_at=row[2], attempts=row[3])

    async def increment_attempts(self, account_id: str) -> None:
        async with self._lock:
            with store_errors("increment_attempts"):
                self._db.connection.execute(
                    "UPDATE one_time_codes SET attempts = attempts + 1 WHERE account_id = ?",
                    (account_id,),
                )
                self._db.connection.commit()

    async def delete_code(self, account_id: str) -> None:
        async with self._lock:
            with store_errors("delete_code"):
                self._db.connection.execute("DELETE FROM one_time_codes WHERE account_id = ?", (account_id,))
                self._db.connection.commit()

    async def delete_code_if_matches(self, account_id: str, code_hash: str) -> bool:
        """Delete the live code only if it is still the given one."""
        async with self._lock:
            with store_errors("delete_code_if_matches"):
                cursor = self._db.connection.execute(
                    "DELETE FROM one_time_codes WHERE account_id = ? AND code_hash = ?",
                    (account_id, code_hash),
                )
                self._db.connection.commit()
        return cursor.rowcount > 0
