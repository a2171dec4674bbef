"""In-memory session store with periodic expiry cleanup."""

import asyncio
import contextlib
import secrets
import time

import structlog

from shared.auth.models import AuthSession

CLEANUP_INTERVAL_SECONDS = 300  # 5 minutes
DEFAULT_SESSION_TTL_SECONDS = 86400  # 24 hours

logger = structlog.get_logger()


class AuthSessionStore:
    """In-memory session store with expiry cleanup.

    Sessions are ephemeral: a server restart means signing in again.
    A session only binds a token to an account id; the account itself is
    re-read from the store whenever the session is resolved.
    Call start_cleanup() on app startup and stop_cleanup() on shutdown.
    """

    def __init__(self, ttl_seconds: int = DEFAULT_SESSION_TTL_SECONDS) -> None:
        self._ttl_seconds = ttl_seconds
        self._sessions: dict[str, AuthSession] = {}
        self._cleanup_task: asyncio.Task[None] | None = None

    @property
    def ttl_seconds(self) -> int:
        return self._ttl_seconds

    def create_session(self, account_id: str, ttl_seconds: int | None = None) -> AuthSession:
        """Create a session for a verified account."""
        now = time.time()
        session = AuthSession(
            session_id=secrets.token_urlsafe(32),
            account_id=account_id,
            created_at=now,
            expires_at=now + (self._ttl_seconds if ttl_seconds is None else ttl_seconds),
        )
        self._sessions[session.session_id] = session
        return session

    def get_session(self, session_id: str) -> AuthSession | None:
        """Return a valid (non-expired) session, or None."""
        session = self._sessions.get(session_id)
        if session is None:
            return None
        if time.time() > session.expires_at:
            del self._sessions[session_id]
            return None
        return session

    def delete_session(self, session_id: str) -> None:
        """Remove a session (sign-out)."""
        self._sessions.pop(session_id, None)

    def delete_sessions_for_account(self, account_id: str) -> int:
        """Remove every session bound to an account. Return count of removed sessions."""
        doomed = [sid for sid, s in self._sessions.items() if s.account_id == account_id]
        for sid in doomed:
            del self._sessions[sid]
        return len(doomed)

    def cleanup_expired(self) -> int:
        """Remove all expired sessions. Return count of removed sessions."""
        now = time.time()
        expired = [sid for sid, s in self._sessions.items() if now > s.expires_at]
        for sid in expired:
            del self._sessions[sid]
        if expired:
            logger.info("cleaned up expired sessions", count=len(expired))
        return len(expired)

    def start_cleanup(self) -> None:
        """Start the periodic cleanup background task."""
        if self._cleanup_task is not None and not self._cleanup_task.done():
            return
        self._cleanup_task = asyncio.create_task(self._cleanup_loop())

    async def stop_cleanup(self) -> None:
        """Stop the periodic cleanup background task."""
        if self._cleanup_task is not None:
            self._cleanup_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._cleanup_task
            self._cleanup_task = None

    async def _cleanup_loop(self) -> None:
        """Periodically remove expired sessions."""
        while True:
            await asyncio.sleep(CLEANUP_INTERVAL_SECONDS)
            self.cleanup_expired()
