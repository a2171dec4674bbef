"""SQLite database layer: connection management and repository implementations."""

from shared.db.account_repository import SqliteAccountRepository
from shared.db.code_repository import SqliteCodeRepository
from shared.db.connection import Database
from shared.db.file_repository import SqliteFileRepository

__all__ = [
    "Database",
    "SqliteAccountRepository",
    "SqliteCodeRepository",
    "SqliteFileRepository",
]
