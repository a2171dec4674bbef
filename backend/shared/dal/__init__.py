"""Data access layer: repository interfaces for the credential store."""

from shared.dal.account_repository import AccountRepository
from shared.dal.code_repository import CodeRepository
from shared.dal.file_repository import FileRepository

__all__ = [
    "AccountRepository",
    "CodeRepository",
    "FileRepository",
]
