"""Route auth policy helpers for fail-closed authorization.

Each helper wraps a route endpoint and sets the ``AUTH_POLICY_ATTR`` marker
so that startup validation can verify every route has an explicit auth policy.
"""

from __future__ import annotations

import functools
from typing import TYPE_CHECKING

from starlette.authentication import has_required_scope, requires
from starlette.responses import JSONResponse, Response
from starlette.routing import Mount, Route

from portal.auth.backend import ADMIN_TICKET_COOKIE
from shared.auth.admin_ticket import verify_admin_ticket
from shared.auth.policy import landing_for

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable
    from typing import Any

    from starlette.requests import Request
    from starlette.routing import BaseRoute

AUTH_POLICY_ATTR = "__auth_policy__"


def protected_api(endpoint: Callable[..., Any]) -> Callable[..., Any]:
    """Require a session; raise 401 for unauthenticated API requests."""
    wrapped = requires("authenticated", status_code=401)(endpoint)
    setattr(wrapped, AUTH_POLICY_ATTR, "protected_api")
    return wrapped


def dashboard_required(endpoint: Callable[..., Awaitable[Response]]) -> Callable[..., Awaitable[Response]]:
    """Require a session with effective dashboard access.

    Returns 401 JSON when unauthenticated. Returns 403 JSON with the landing
    route when the account is still waiting for approval.
    """

    @functools.wraps(endpoint)
    async def wrapper(request: Request, **kwargs: str) -> Response:
        if not has_required_scope(request, ["authenticated"]):
            return JSONResponse({"error": "Authentication required"}, status_code=401)
        if not has_required_scope(request, ["dashboard"]):
            return JSONResponse(
                {"error": "Dashboard access pending approval", "landing": landing_for(request.user.account).value},
                status_code=403,
            )
        return await endpoint(request, **kwargs)

    setattr(wrapper, AUTH_POLICY_ATTR, "dashboard_required")
    return wrapper


def admin_only(endpoint: Callable[..., Awaitable[Response]]) -> Callable[..., Awaitable[Response]]:
    """Require a valid, unexpired admin ticket cookie; 401 JSON otherwise.

    Admin tickets are independent of user sessions: the admin surface is
    unlocked by passkey, not by signing in as a particular account.
    """

    @functools.wraps(endpoint)
    async def wrapper(request: Request, **kwargs: str) -> Response:
        auth_settings = request.app.state.auth_settings
        ticket = verify_admin_ticket(
            request.cookies.get(ADMIN_TICKET_COOKIE),
            auth_settings.admin_secret,
            auth_settings.admin_ticket_ttl_seconds,
        )
        if ticket is None:
            return JSONResponse({"error": "Admin access required"}, status_code=401)
        return await endpoint(request, **kwargs)

    setattr(wrapper, AUTH_POLICY_ATTR, "admin_only")
    return wrapper


def public_route(endpoint: Callable[..., Awaitable[Response]]) -> Callable[..., Awaitable[Response]]:
    """Mark endpoint as explicitly public (no auth required).

    Returns a thin wrapper so the marker lives on the wrapper, not on the
    original callable.  This prevents accidental policy leakage when the
    same function object is reused on another route without wrapping.
    """

    @functools.wraps(endpoint)
    async def wrapper(request: Request, **kwargs: str) -> Response:
        return await endpoint(request, **kwargs)

    setattr(wrapper, AUTH_POLICY_ATTR, "public")
    return wrapper


def validate_route_auth_policy(routes: list[BaseRoute]) -> None:
    """Verify every Route has an auth policy marker. Mount routes are exempt.

    Raises RuntimeError listing all unclassified routes if any are found.
    """
    unclassified: list[str] = []
    for route in routes:
        if isinstance(route, Mount):
            continue
        if isinstance(route, Route) and not hasattr(route.endpoint, AUTH_POLICY_ATTR):
            name = route.name or getattr(route.endpoint, "__name__", "unknown")
            unclassified.append(f"{route.path} ({name})")

    if unclassified:
        details = ", ".join(unclassified)
        msg = f"Unclassified routes missing auth policy: {details}"
        raise RuntimeError(msg)
