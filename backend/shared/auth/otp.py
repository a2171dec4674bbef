"""One-time code issuance and redemption.

Codes are 6 random digits bound to an account id. Only an HMAC-SHA256 of the
code (keyed by the server secret and salted with the account id) is stored.
Each account has at most one live code: issuing again replaces it.
"""

from __future__ import annotations

import hashlib
import hmac
import secrets
import time
from typing import TYPE_CHECKING

import structlog

from shared.auth.models import OneTimeCode
from shared.errors import CodeExpiredError, DispatchFailureError, InvalidCodeError

if TYPE_CHECKING:
    from shared.auth.mailer import CodeMailer
    from shared.auth.models import Account
    from shared.dal.code_repository import CodeRepository

CODE_LENGTH = 6
DEFAULT_CODE_TTL_SECONDS = 900  # 15 minutes
DEFAULT_MAX_ATTEMPTS = 5

logger = structlog.get_logger()


def generate_code() -> str:
    return f"{secrets.randbelow(10**CODE_LENGTH):0{CODE_LENGTH}d}"


class OtpIssuer:
    """Issue, deliver, and redeem one-time codes."""

    def __init__(
        self,
        code_repo: CodeRepository,
        mailer: CodeMailer,
        *,
        secret: str,
        ttl_seconds: int = DEFAULT_CODE_TTL_SECONDS,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    ) -> None:
        self._code_repo = code_repo
        self._mailer = mailer
        self._secret = secret.encode()
        self._ttl_seconds = ttl_seconds
        self._max_attempts = max_attempts

    async def issue(self, account: Account) -> str:
        """Store a fresh code for the account, email it, and return the account id as handle.

        Replaces any outstanding code. If delivery fails the new code is revoked
        and DispatchFailureError is raised.
        """
        code = generate_code()
        code_hash = self._hash(account.account_id, code)
        await self._code_repo.save_code(
            OneTimeCode(
                account_id=account.account_id,
                code_hash=code_hash,
                expires_at=time.time() + self._ttl_seconds,
            ),
        )
        try:
            await self._mailer.send_code(account.email, account.full_name, code, self._ttl_seconds // 60)
        except Exception as exc:
            # Only drop our own code; a concurrent issue may already have replaced it.
            await self._code_repo.delete_code_if_matches(account.account_id, code_hash)
            logger.warning("one-time code dispatch failed", account_id=account.account_id)
            if isinstance(exc, DispatchFailureError):
                raise
            raise DispatchFailureError("Failed to send the one-time code") from exc

        logger.info("one-time code issued", account_id=account.account_id)
        return account.account_id

    async def redeem(self, account_id: str, code: str) -> None:
        """Consume the live code for an account.

        Raises CodeExpiredError when the code is stale and InvalidCodeError on
        mismatch, missing code, or exhausted attempts. Expired and exhausted
        codes are deleted so they can never succeed later.
        """
        live = await self._code_repo.get_code(account_id)
        if live is None:
            raise InvalidCodeError("Invalid code")

        if time.time() > live.expires_at:
            await self._code_repo.delete_code(account_id)
            raise CodeExpiredError("Code expired")

        if live.attempts >= self._max_attempts:
            await self._code_repo.delete_code(account_id)
            logger.warning("one-time code attempts exhausted", account_id=account_id)
            raise InvalidCodeError("Invalid code")

        if not hmac.compare_digest(live.code_hash, self._hash(account_id, code)):
            await self._code_repo.increment_attempts(account_id)
            if live.attempts + 1 >= self._max_attempts:
                await self._code_repo.delete_code(account_id)
                logger.warning("one-time code attempts exhausted", account_id=account_id)
            raise InvalidCodeError("Invalid code")

        await self._code_repo.delete_code(account_id)

    async def revoke(self, account_id: str) -> None:
        """Drop any live code for the account."""
        await self._code_repo.delete_code(account_id)

    def _hash(self, account_id: str, code: str) -> str:
        return hmac.new(self._secret, f"{account_id}:{code}".encode(), hashlib.sha256).hexdigest()
