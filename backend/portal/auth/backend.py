"""Starlette AuthenticationBackend that resolves the session cookie to an account."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from starlette.authentication import AuthCredentials, AuthenticationBackend, AuthenticationError
from starlette.responses import JSONResponse

from portal.auth.models import AuthenticatedAccount
from shared.auth.policy import effective_dashboard_access
from shared.errors import StoreFailureError

if TYPE_CHECKING:
    from starlette.requests import HTTPConnection

    from shared.auth.service import AuthService

SESSION_COOKIE = "session_id"
ADMIN_TICKET_COOKIE = "admin_ticket"

SESSION_LOOKUP_FAILED = "Session lookup failed"

logger = structlog.get_logger()


class SessionBackend(AuthenticationBackend):
    """Authenticate requests via the session cookie.

    The account is re-read from the store on every request, so an
    administrator's change to dashboard access or the file keyword takes
    effect on the very next request. Accounts with effective dashboard
    access also get the ``dashboard`` scope.
    """

    def __init__(self, auth_service: AuthService) -> None:
        self._auth_service = auth_service

    async def authenticate(
        self,
        conn: HTTPConnection,
    ) -> tuple[AuthCredentials, AuthenticatedAccount] | None:
        session_id = conn.cookies.get(SESSION_COOKIE)
        try:
            account = await self._auth_service.resolve_current_user(session_id)
        except StoreFailureError as e:
            logger.error("session lookup failed", error=str(e))
            raise AuthenticationError(SESSION_LOOKUP_FAILED) from e
        if account is None:
            return None

        scopes = ["authenticated"]
        if effective_dashboard_access(account):
            scopes.append("dashboard")
        return AuthCredentials(scopes), AuthenticatedAccount(account)


def on_auth_error(_conn: HTTPConnection, exc: Exception) -> JSONResponse:
    """Error response for AuthenticationMiddleware when the store cannot resolve a session."""
    return JSONResponse({"error": str(exc)}, status_code=500)
