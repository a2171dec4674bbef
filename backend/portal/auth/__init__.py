"""Portal authentication: Starlette backend, user model, and route policy."""

from portal.auth.backend import ADMIN_TICKET_COOKIE, SESSION_COOKIE, SessionBackend, on_auth_error
from portal.auth.models import AuthenticatedAccount
from portal.auth.policy import admin_only, dashboard_required, protected_api, public_route, validate_route_auth_policy

__all__ = [
    "ADMIN_TICKET_COOKIE",
    "SESSION_COOKIE",
    "AuthenticatedAccount",
    "SessionBackend",
    "admin_only",
    "dashboard_required",
    "on_auth_error",
    "protected_api",
    "public_route",
    "validate_route_auth_policy",
]
