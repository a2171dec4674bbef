"""Admin endpoints: passkey unlock and non-student account management."""

from __future__ import annotations

from typing import TYPE_CHECKING

from starlette.responses import JSONResponse, Response

from portal.auth.backend import ADMIN_TICKET_COOKIE
from portal.views.common import admin_account_payload, parse_body
from portal.views.types import DashboardAccessRequest, FileAccessKeywordRequest, UnlockAdminRequest
from shared.errors import ForbiddenError

if TYPE_CHECKING:
    from starlette.requests import Request


async def unlock(request: Request) -> Response:
    """POST /api/admin/unlock {passkey} - set a short-lived admin ticket cookie."""
    admin_service = request.app.state.admin_service
    auth_settings = request.app.state.auth_settings
    body = await parse_body(request, UnlockAdminRequest)
    if isinstance(body, JSONResponse):
        return body

    try:
        ticket = admin_service.unlock(body.passkey)
    except ForbiddenError:
        return JSONResponse({"success": False, "error": "Incorrect passkey"}, status_code=401)

    response = JSONResponse({"success": True, "expires_in": auth_settings.admin_ticket_ttl_seconds})
    response.set_cookie(
        key=ADMIN_TICKET_COOKIE,
        value=ticket,
        httponly=True,
        samesite="strict",
        secure=auth_settings.cookie_secure,
        max_age=auth_settings.admin_ticket_ttl_seconds,
        path="/api/admin",
    )
    return response


async def lock(_request: Request) -> Response:
    """POST /api/admin/lock - drop the admin ticket cookie."""
    response = JSONResponse({"success": True})
    response.delete_cookie(key=ADMIN_TICKET_COOKIE, path="/api/admin")
    return response


async def list_users(request: Request) -> Response:
    """GET /api/admin/users?search=&page=1"""
    admin_service = request.app.state.admin_service
    try:
        page = int(request.query_params.get("page", "1"))
    except ValueError:
        return JSONResponse({"error": "page must be an integer"}, status_code=422)

    result = await admin_service.list_non_student_users(request.query_params.get("search", ""), page)
    return JSONResponse(
        {
            "users": [admin_account_payload(u) for u in result.users],
            "page": result.page,
            "total_pages": result.total_pages,
            "total": result.total,
        },
    )


async def set_dashboard_access(request: Request) -> Response:
    """POST /api/admin/users/{account_id}/dashboard-access {granted}"""
    admin_service = request.app.state.admin_service
    body = await parse_body(request, DashboardAccessRequest)
    if isinstance(body, JSONResponse):
        return body

    account = await admin_service.set_dashboard_access(request.path_params["account_id"], granted=body.granted)
    return JSONResponse(admin_account_payload(account))


async def set_file_access_keyword(request: Request) -> Response:
    """POST /api/admin/users/{account_id}/file-access-keyword {keyword}"""
    admin_service = request.app.state.admin_service
    body = await parse_body(request, FileAccessKeywordRequest)
    if isinstance(body, JSONResponse):
        return body

    account = await admin_service.set_file_access_keyword(request.path_params["account_id"], body.keyword)
    return JSONResponse(admin_account_payload(account))


async def delete_account(request: Request) -> Response:
    """DELETE /api/admin/users/{account_id}"""
    admin_service = request.app.state.admin_service
    await admin_service.delete_account(request.path_params["account_id"])
    return JSONResponse({"status": "success"})
