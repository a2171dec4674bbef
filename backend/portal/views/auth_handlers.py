"""Auth endpoints: register, sign-in, code verification, current user, and sign-out."""

from __future__ import annotations

from typing import TYPE_CHECKING

from starlette.responses import JSONResponse, Response

from portal.auth.backend import SESSION_COOKIE
from portal.views.common import account_payload, parse_body
from portal.views.types import RegisterRequest, SignInRequest, VerifyCodeRequest
from shared.errors import CodeExpiredError, InvalidCodeError, NotFoundError

if TYPE_CHECKING:
    from starlette.requests import Request

    from shared.auth.models import AuthSession
    from shared.auth.settings import AuthSettings

SIGN_IN_PATH = "/sign-in"

# Identical wording for unknown emails and bad codes so responses do not
# reveal which emails are registered.
_GENERIC_AUTH_FAILURE = "Authentication failed. Please try again."


def _set_session_cookie(response: Response, session: AuthSession, auth_settings: AuthSettings) -> None:
    response.set_cookie(
        key=SESSION_COOKIE,
        value=session.session_id,
        httponly=True,
        samesite="strict",
        secure=auth_settings.cookie_secure,
        max_age=max(0, int(session.expires_at - session.created_at)),
        path="/",
    )


async def register(request: Request) -> Response:
    """POST /api/auth/register - create account (if new) and email a code."""
    auth_service = request.app.state.auth_service
    body = await parse_body(request, RegisterRequest)
    if isinstance(body, JSONResponse):
        return body

    account_id = await auth_service.register(body.full_name, body.email, is_student=body.is_student)
    return JSONResponse({"account_id": account_id}, status_code=201)


async def sign_in(request: Request) -> Response:
    """POST /api/auth/sign-in - email a code to an existing account."""
    auth_service = request.app.state.auth_service
    body = await parse_body(request, SignInRequest)
    if isinstance(body, JSONResponse):
        return body

    try:
        account_id = await auth_service.sign_in(body.email)
    except NotFoundError:
        return JSONResponse({"error": _GENERIC_AUTH_FAILURE}, status_code=404)
    return JSONResponse({"account_id": account_id})


async def verify_code(request: Request) -> Response:
    """POST /api/auth/verify - redeem the code, set the session cookie, report where to land."""
    auth_service = request.app.state.auth_service
    auth_settings = request.app.state.auth_settings
    body = await parse_body(request, VerifyCodeRequest)
    if isinstance(body, JSONResponse):
        return body

    try:
        result = await auth_service.verify_code(body.account_id, body.code)
    except CodeExpiredError:
        return JSONResponse({"error": "expired", "message": "Code expired. Request a new one."}, status_code=400)
    except (InvalidCodeError, NotFoundError):
        return JSONResponse({"error": "invalid_code", "message": _GENERIC_AUTH_FAILURE}, status_code=400)

    response = JSONResponse(
        {
            "is_student": result.is_student,
            "dashboard_access": result.dashboard_access,
            "landing": result.landing,
        },
    )
    _set_session_cookie(response, result.session, auth_settings)
    return response


async def current_user(request: Request) -> Response:
    """GET /api/me - the signed-in account with its freshly computed access."""
    return JSONResponse(account_payload(request.user.account))


async def sign_out(request: Request) -> Response:
    """POST /api/auth/sign-out - always succeeds and points the caller at sign-in."""
    auth_service = request.app.state.auth_service
    auth_service.sign_out(request.cookies.get(SESSION_COOKIE))
    response = JSONResponse({"redirect": SIGN_IN_PATH})
    response.delete_cookie(key=SESSION_COOKIE, path="/")
    return response
