"""Administrator operations on non-student accounts."""

from __future__ import annotations

import math
import secrets
from dataclasses import dataclass
from typing import TYPE_CHECKING

import structlog

from shared.auth.admin_ticket import ADMIN_TICKET_TTL_SECONDS, create_admin_ticket
from shared.auth.models import normalize_keyword
from shared.errors import (
    ForbiddenError,
    NotFoundError,
    PartialFailureError,
    StoreFailureError,
)

if TYPE_CHECKING:
    from shared.auth.models import Account
    from shared.auth.service import AuthService
    from shared.dal.account_repository import AccountRepository

USERS_PER_PAGE = 5

STEP_REVOKE_IDENTITY = "revoke_identity"
STEP_DELETE_RECORD = "delete_record"

logger = structlog.get_logger()


@dataclass
class UserPage:
    """One page of the administrable user list."""

    users: list[Account]
    page: int
    total_pages: int
    total: int


class AdminService:
    """Passkey gate plus the mutations administrators may perform.

    Student accounts are never mutated here: their dashboard access is
    implied by role, and keyword assignment is reserved for staff.
    """

    def __init__(
        self,
        account_repo: AccountRepository,
        auth_service: AuthService,
        *,
        passkey: str,
        ticket_secret: str,
        ticket_ttl_seconds: int = ADMIN_TICKET_TTL_SECONDS,
    ) -> None:
        self._account_repo = account_repo
        self._auth_service = auth_service
        self._passkey = passkey
        self._ticket_secret = ticket_secret
        self._ticket_ttl_seconds = ticket_ttl_seconds

    def unlock(self, passkey: str) -> str:
        """Exchange the admin passkey for a signed, expiring admin ticket."""
        if not secrets.compare_digest(passkey.encode(), self._passkey.encode()):
            logger.warning("admin unlock rejected")
            raise ForbiddenError("Incorrect passkey")
        logger.info("admin surface unlocked")
        return create_admin_ticket(self._ticket_secret, self._ticket_ttl_seconds)

    async def set_dashboard_access(self, account_id: str, *, granted: bool) -> Account:
        await self._require_non_student(account_id)
        updated = await self._account_repo.set_dashboard_access(account_id, granted)
        if updated is None:
            raise NotFoundError("Account not found")
        logger.info("dashboard access updated", account_id=account_id, granted=granted)
        return updated

    async def set_file_access_keyword(self, account_id: str, keyword: str) -> Account:
        """Trim and store the keyword; an empty keyword clears the restriction."""
        await self._require_non_student(account_id)
        updated = await self._account_repo.set_file_access_keyword(account_id, normalize_keyword(keyword))
        if updated is None:
            raise NotFoundError("Account not found")
        logger.info("file access keyword updated", account_id=account_id, cleared=updated.file_access_keyword is None)
        return updated

    async def delete_account(self, account_id: str) -> None:
        """Remove an account from the auth layer and from the record store.

        Both steps are attempted independently and nothing is rolled back.
        Raises PartialFailureError when exactly one step failed and
        StoreFailureError when both did. Student accounts are refused.
        """
        await self._require_non_student(account_id)

        completed: list[str] = []
        failed: list[str] = []

        try:
            await self._auth_service.revoke_identity(account_id)
        except Exception:
            logger.exception("identity revocation failed", account_id=account_id)
            failed.append(STEP_REVOKE_IDENTITY)
        else:
            completed.append(STEP_REVOKE_IDENTITY)

        try:
            await self._account_repo.delete_account(account_id)
        except Exception:
            logger.exception("account record deletion failed", account_id=account_id)
            failed.append(STEP_DELETE_RECORD)
        else:
            completed.append(STEP_DELETE_RECORD)

        if failed and not completed:
            raise StoreFailureError("Account deletion failed")
        if failed:
            raise PartialFailureError(
                f"Account deletion incomplete: {', '.join(failed)} failed",
                completed=completed,
                failed=failed,
            )
        logger.info("account deleted", account_id=account_id)

    async def list_non_student_users(self, search: str = "", page: int = 1, per_page: int = USERS_PER_PAGE) -> UserPage:
        """Return one page of non-student accounts matching ``search`` on name or email."""
        users = await self._account_repo.list_accounts(is_student=False)
        query = search.strip().lower()
        if query:
            users = [u for u in users if query in u.full_name.lower() or query in u.email.lower()]

        total_pages = max(1, math.ceil(len(users) / per_page))
        page = min(max(page, 1), total_pages)
        start = (page - 1) * per_page
        return UserPage(users=users[start : start + per_page], page=page, total_pages=total_pages, total=len(users))

    async def _require_non_student(self, account_id: str) -> None:
        account = await self._account_repo.get_by_id(account_id)
        if account is None:
            raise NotFoundError("Account not found")
        if account.is_student:
            raise ForbiddenError("Student accounts cannot be modified by administrators")
