"""Abstract interface for one-time code persistence."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from shared.auth.models import OneTimeCode


class CodeRepository(ABC):
    """Abstract interface for one-time code persistence.

    Holds at most one live code per account: ``save_code`` replaces any
    previous code for the same account (last write wins).
    """

    @abstractmethod
    async def save_code(self, code: OneTimeCode) -> None: ...

    @abstractmethod
    async def get_code(self, account_id: str) -> OneTimeCode | None: ...

    @abstractmethod
    async def increment_attempts(self, account_id: str) -> None: ...

    @abstractmethod
    async def delete_code(self, account_id: str) -> None: ...

    @abstractmethod
    async def delete_code_if_matches(self, account_id: str, code_hash: str) -> bool: ...
