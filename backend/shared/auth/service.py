"""Auth service coordinating registration, one-time code sign-in, and sessions."""

from __future__ import annotations

import re
import time
from typing import TYPE_CHECKING
from uuid import uuid4

import structlog

from shared.auth.models import Account, VerifyResult
from shared.auth.policy import effective_dashboard_access, landing_for
from shared.errors import AuthError, NotFoundError, StoreFailureError

if TYPE_CHECKING:
    from shared.auth.otp import OtpIssuer
    from shared.auth.session_store import AuthSessionStore
    from shared.dal.account_repository import AccountRepository

FULL_NAME_MIN_LENGTH = 2
FULL_NAME_MAX_LENGTH = 50
EMAIL_MAX_LENGTH = 254
EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

logger = structlog.get_logger()


def normalize_email(email: str) -> str:
    return email.strip().lower()


class AuthService:
    """Coordinate account registration, code verification, and session resolution.

    Every operation takes the session token or account id explicitly; nothing
    is read from ambient request state.
    """

    def __init__(
        self,
        account_repo: AccountRepository,
        otp_issuer: OtpIssuer,
        session_store: AuthSessionStore,
    ) -> None:
        self._account_repo = account_repo
        self._otp = otp_issuer
        self._session_store = session_store

    async def register(self, full_name: str, email: str, *, is_student: bool) -> str:
        """Create an account (if the email is new), send a code, and return the account id.

        Registering an email that already exists sends a fresh code to the
        existing account and leaves its record untouched. The record is only
        created after the code was delivered, so a dispatch failure leaves no
        account behind.
        """
        full_name = full_name.strip()
        email = normalize_email(email)
        _validate_full_name(full_name)
        _validate_email(email)

        existing = await self._account_repo.get_by_email(email)
        if existing is not None:
            logger.info("registration for existing email, re-sending code", account_id=existing.account_id)
            return await self._otp.issue(existing)

        account = Account(
            account_id=str(uuid4()),
            full_name=full_name,
            email=email,
            is_student=is_student,
            dashboard_access=False,
            created_at=time.time(),
        )
        await self._otp.issue(account)
        try:
            await self._account_repo.create_account(account)
        except (ValueError, StoreFailureError) as e:
            await self._otp.revoke(account.account_id)
            if isinstance(e, StoreFailureError):
                raise
            raise AuthError(str(e)) from e

        logger.info("account registered", account_id=account.account_id, is_student=is_student)
        return account.account_id

    async def sign_in(self, email: str) -> str:
        """Send a code to an existing account and return its id. Raises NotFoundError."""
        account = await self._account_repo.get_by_email(normalize_email(email))
        if account is None:
            raise NotFoundError("Account not found")
        return await self._otp.issue(account)

    async def verify_code(self, account_id: str, code: str) -> VerifyResult:
        """Redeem a code and open a session.

        Raises InvalidCodeError or CodeExpiredError from the issuer, and
        NotFoundError if the account vanished after the code was issued.
        """
        await self._otp.redeem(account_id, code.strip())

        account = await self._account_repo.get_by_id(account_id)
        if account is None:
            raise NotFoundError("Account not found after verification")

        session = self._session_store.create_session(account.account_id)
        logger.info("session created", account_id=account.account_id)
        return VerifyResult(
            session=session,
            is_student=account.is_student,
            dashboard_access=effective_dashboard_access(account),
            landing=landing_for(account).value,
        )

    async def resolve_current_user(self, session_id: str | None) -> Account | None:
        """Return the account bound to a session token, or None.

        Missing, unknown, and expired tokens are an ordinary condition and
        return None. The account is read from the store on every call.
        """
        if not session_id:
            return None
        session = self._session_store.get_session(session_id)
        if session is None:
            return None
        account = await self._account_repo.get_by_id(session.account_id)
        if account is None:
            self._session_store.delete_session(session_id)
            return None
        return account

    def sign_out(self, session_id: str | None) -> None:
        """Invalidate a session. Best effort: failures are logged, never raised."""
        if not session_id:
            return
        try:
            self._session_store.delete_session(session_id)
        except Exception:
            logger.exception("session invalidation failed during sign-out")

    async def revoke_identity(self, account_id: str) -> int:
        """Drop every credential the auth layer holds for an account.

        Removes the live one-time code and all sessions. Return the number of
        sessions removed.
        """
        await self._otp.revoke(account_id)
        removed = self._session_store.delete_sessions_for_account(account_id)
        logger.info("identity revoked", account_id=account_id, sessions=removed)
        return removed


def _validate_full_name(full_name: str) -> None:
    if len(full_name) < FULL_NAME_MIN_LENGTH or len(full_name) > FULL_NAME_MAX_LENGTH:
        raise AuthError(f"Full name must be between {FULL_NAME_MIN_LENGTH} and {FULL_NAME_MAX_LENGTH} characters")


def _validate_email(email: str) -> None:
    if len(email) > EMAIL_MAX_LENGTH or not EMAIL_PATTERN.match(email):
        raise AuthError("Invalid email address")
