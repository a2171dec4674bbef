"""SQLite-backed account repository."""

from __future__ import annotations

import asyncio
import json
import sqlite3
from typing import TYPE_CHECKING

from shared.auth.models import Account
from shared.dal.account_repository import AccountRepository
from shared.db.connection import store_errors

if TYPE_CHECKING:
    from shared.db.connection import Database


class SqliteAccountRepository(AccountRepository):
    """SQLite implementation of AccountRepository.

    Stores full account snapshots as JSON with indexed columns for lookups.
    Writes run under an asyncio lock so concurrent updates to the same
    account are serialized (last write wins). Relies on the unique email
    index and maps IntegrityError to domain ValueError.
    """

    def __init__(self, db: Database) -> None:
        self._db = db
        self._lock = asyncio.Lock()

    async def create_account(self, account: Account) -> None:
        """Insert an account. Raises ValueError on duplicate id or email."""
        async with self._lock:
            try:
                with store_errors("create_account"):
                    self._db.connection.execute(
                        "INSERT INTO accounts (id, email, is_student, data) VALUES (?, ?, ?, ?)",
                        (
                            account.account_id,
                            account.email,
                            int(account.is_student),
                            account.model_dump_json(),
                        ),
                    )
                    self._db.connection.commit()
            except sqlite3.IntegrityError as exc:
                self._db.connection.rollback()
                error_msg = str(exc).lower()
                if "accounts.id" in error_msg:
                    raise ValueError(f"Account with id '{account.account_id}' already exists") from exc
                if "accounts.email" in error_msg or "idx_accounts_email" in error_msg:
                    raise ValueError(f"Email '{account.email}' is already registered") from exc
                raise ValueError(str(exc)) from exc  # pragma: no cover

    async def get_by_id(self, account_id: str) -> Account | None:
        with store_errors("get_by_id"):
            row = self._db.connection.execute(
                "SELECT data FROM accounts WHERE id = ?",
                (account_id,),
            ).fetchone()
        if row is None:
            return None
        return Account.model_validate(json.loads(row[0]))

    async def get_by_email(self, email: str) -> Account | None:
        """Look up an account by email (case-insensitive)."""
        with store_errors("get_by_email"):
            row = self._db.connection.execute(
                "SELECT data FROM accounts WHERE email = ? COLLATE NOCASE",
                (email,),
            ).fetchone()
        if row is None:
            return None
        return Account.model_validate(json.loads(row[0]))

    async def set_dashboard_access(self, account_id: str, granted: bool) -> Account | None:  # noqa: FBT001
        return await self._update_json_field(
            "set_dashboard_access",
            account_id,
            "UPDATE accounts SET data = json_set(data, '$.dashboard_access', json(?)) WHERE id = ?",
            "true" if granted else "false",
        )

    async def set_file_access_keyword(self, account_id: str, keyword: str | None) -> Account | None:
        # A NULL bind stores JSON null, which reads back as None.
        return await self._update_json_field(
            "set_file_access_keyword",
            account_id,
            "UPDATE accounts SET data = json_set(data, '$.file_access_keyword', ?) WHERE id = ?",
            keyword,
        )

    async def delete_account(self, account_id: str) -> bool:
        async with self._lock:
            with store_errors("delete_account"):
                cursor = self._db.connection.execute("DELETE FROM accounts WHERE id = ?", (account_id,))
                self._db.connection.commit()
        return cursor.rowcount > 0

    async def list_accounts(self, *, is_student: bool | None = None) -> list[Account]:
        """List accounts, optionally restricted by role, in email order."""
        with store_errors("list_accounts"):
            if is_student is None:
                rows = self._db.connection.execute("SELECT data FROM accounts ORDER BY email").fetchall()
            else:
                rows = self._db.connection.execute(
                    "SELECT data FROM accounts WHERE is_student = ? ORDER BY email",
                    (int(is_student),),
                ).fetchall()
        return [Account.model_validate(json.loads(row[0])) for row in rows]

    async def _update_json_field(
        self,
        operation: str,
        account_id: str,
        sql: str,
        value: str | None,
    ) -> Account | None:
        """Apply a single-field update and return the updated account, or None if absent."""
        async with self._lock:
            with store_errors(operation):
                cursor = self._db.connection.execute(sql, (value, account_id))
                self._db.connection.commit()
                if cursor.rowcount == 0:
                    return None
                row = self._db.connection.execute(
                    "SELECT data FROM accounts WHERE id = ?",
                    (account_id,),
                ).fetchone()
        return Account.model_validate(json.loads(row[0]))
