"""Abstract interface for account persistence."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from shared.auth.models import Account


class AccountRepository(ABC):
    """Abstract interface for account persistence.

    Only administrator-controlled fields have update methods; ``is_student``
    and ``email`` are immutable once an account exists.
    """

    @abstractmethod
    async def create_account(self, account: Account) -> None: ...

    @abstractmethod
    async def get_by_id(self, account_id: str) -> Account | None: ...

    @abstractmethod
    async def get_by_email(self, email: str) -> Account | None: ...

    @abstractmethod
    async def set_dashboard_access(self, account_id: str, granted: bool) -> Account | None: ...  # noqa: FBT001

    @abstractmethod
    async def set_file_access_keyword(self, account_id: str, keyword: str | None) -> Account | None: ...

    @abstractmethod
    async def delete_account(self, account_id: str) -> bool: ...

    @abstractmethod
    async def list_accounts(self, *, is_student: bool | None = None) -> list[Account]: ...
