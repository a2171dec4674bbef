from __future__ import annotations

import contextlib
from http import HTTPStatus
from typing import TYPE_CHECKING, cast

import structlog
from starlette.applications import Starlette
from starlette.exceptions import HTTPException
from starlette.middleware.authentication import AuthenticationMiddleware
from starlette.middleware.cors import CORSMiddleware
from starlette.responses import JSONResponse, Response
from starlette.routing import Route

from portal.auth.backend import SessionBackend, on_auth_error
from portal.auth.policy import (
    admin_only,
    dashboard_required,
    protected_api,
    public_route,
    validate_route_auth_policy,
)
from portal.server.middleware import SecurityHeadersMiddleware, SlashNormalizationMiddleware
from portal.server.settings import PortalServerSettings
from portal.views import (
    add_file,
    current_user,
    delete_account,
    delete_file,
    list_files,
    list_users,
    lock,
    register,
    rename_file,
    set_dashboard_access,
    set_file_access_keyword,
    sign_in,
    sign_out,
    space_usage,
    unlock,
    verify_code,
)
from shared.auth import AdminService, AuthService, AuthSessionStore, OtpIssuer, get_mailer
from shared.auth.settings import AuthSettings, MailSettings
from shared.build_info import build_info
from shared.db import Database, SqliteAccountRepository, SqliteCodeRepository, SqliteFileRepository
from shared.errors import (
    AuthError,
    CodeExpiredError,
    DispatchFailureError,
    ForbiddenError,
    InvalidCodeError,
    NotFoundError,
    PartialFailureError,
    StoreFailureError,
    UnauthenticatedError,
)
from shared.files.service import FileService
from shared.logging import setup_logging

logger = structlog.get_logger()

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from starlette.requests import Request

    from shared.auth.mailer import CodeMailer

# Most specific first; AuthError is the catch-all.
_ERROR_STATUS: tuple[tuple[type[AuthError], HTTPStatus], ...] = (
    (UnauthenticatedError, HTTPStatus.UNAUTHORIZED),
    (ForbiddenError, HTTPStatus.FORBIDDEN),
    (NotFoundError, HTTPStatus.NOT_FOUND),
    (InvalidCodeError, HTTPStatus.BAD_REQUEST),
    (CodeExpiredError, HTTPStatus.BAD_REQUEST),
    (DispatchFailureError, HTTPStatus.BAD_GATEWAY),
    (PartialFailureError, HTTPStatus.INTERNAL_SERVER_ERROR),
    (StoreFailureError, HTTPStatus.INTERNAL_SERVER_ERROR),
    (AuthError, HTTPStatus.BAD_REQUEST),
)


def _status_for(exc: AuthError) -> HTTPStatus:
    for error_type, status in _ERROR_STATUS:
        if isinstance(exc, error_type):
            return status
    return HTTPStatus.BAD_REQUEST  # pragma: no cover


async def _http_error_handler(_request: Request, exc: Exception) -> Response:
    """Render HTTP exceptions (including 401s raised by ``requires``) as JSON."""
    http_exc = cast("HTTPException", exc)
    if http_exc.status_code in {HTTPStatus.NO_CONTENT, HTTPStatus.NOT_MODIFIED}:
        return Response(status_code=http_exc.status_code, headers=http_exc.headers)
    if http_exc.status_code == HTTPStatus.UNAUTHORIZED:
        return JSONResponse({"error": "Authentication required"}, status_code=HTTPStatus.UNAUTHORIZED)
    return JSONResponse({"error": http_exc.detail or ""}, status_code=http_exc.status_code, headers=http_exc.headers)


async def _auth_error_handler(request: Request, exc: Exception) -> Response:
    """Map the auth error taxonomy onto HTTP status codes."""
    auth_exc = cast("AuthError", exc)
    status = _status_for(auth_exc)
    body: dict[str, object] = {"error": str(auth_exc)}
    if isinstance(auth_exc, PartialFailureError):
        body["completed"] = auth_exc.completed
        body["failed"] = auth_exc.failed
    if status >= HTTPStatus.INTERNAL_SERVER_ERROR:
        logger.error("request failed", path=request.url.path, error=str(auth_exc), error_type=type(auth_exc).__name__)
    return JSONResponse(body, status_code=status)


async def health(_request: Request) -> JSONResponse:
    return JSONResponse({"status": "ok", **build_info()})


def create_app(
    settings: PortalServerSettings | None = None,
    auth_settings: AuthSettings | None = None,  # required in production (via get_app)
    mail_settings: MailSettings | None = None,
    mailer: CodeMailer | None = None,
) -> Starlette:
    if settings is None:  # pragma: no cover
        settings = PortalServerSettings()
    if auth_settings is None:  # pragma: no cover
        auth_settings = AuthSettings()  # type: ignore[call-arg]
    if mail_settings is None:
        mail_settings = MailSettings()
    if mailer is None:
        mailer = get_mailer(mail_settings)

    routes = [
        # Public routes
        Route("/health", public_route(health), methods=["GET"], name="health"),
        Route("/api/auth/register", public_route(register), methods=["POST"], name="register"),
        Route("/api/auth/sign-in", public_route(sign_in), methods=["POST"], name="sign_in"),
        Route("/api/auth/verify", public_route(verify_code), methods=["POST"], name="verify_code"),
        Route("/api/auth/sign-out", public_route(sign_out), methods=["POST"], name="sign_out"),
        Route("/api/admin/unlock", public_route(unlock), methods=["POST"], name="admin_unlock"),
        Route("/api/admin/lock", public_route(lock), methods=["POST"], name="admin_lock"),
        # Session required (401 JSON when unauthenticated)
        Route("/api/me", protected_api(current_user), methods=["GET"], name="current_user"),
        Route("/api/files", protected_api(list_files), methods=["GET"], name="list_files"),
        Route("/api/files/usage", protected_api(space_usage), methods=["GET"], name="space_usage"),
        # Session plus effective dashboard access (403 JSON while waiting for approval)
        Route("/api/files", dashboard_required(add_file), methods=["POST"], name="add_file"),
        Route("/api/files/{file_id}", dashboard_required(rename_file), methods=["PATCH"], name="rename_file"),
        Route("/api/files/{file_id}", dashboard_required(delete_file), methods=["DELETE"], name="delete_file"),
        # Admin ticket required
        Route("/api/admin/users", admin_only(list_users), methods=["GET"], name="admin_list_users"),
        Route(
            "/api/admin/users/{account_id}/dashboard-access",
            admin_only(set_dashboard_access),
            methods=["POST"],
            name="admin_set_dashboard_access",
        ),
        Route(
            "/api/admin/users/{account_id}/file-access-keyword",
            admin_only(set_file_access_keyword),
            methods=["POST"],
            name="admin_set_file_access_keyword",
        ),
        Route(
            "/api/admin/users/{account_id}",
            admin_only(delete_account),
            methods=["DELETE"],
            name="admin_delete_account",
        ),
    ]

    validate_route_auth_policy(routes)

    # Initialize database and auth components
    db = Database(auth_settings.database_path)
    db.connect()
    account_repo = SqliteAccountRepository(db)
    code_repo = SqliteCodeRepository(db)
    file_repo = SqliteFileRepository(db)
    session_store = AuthSessionStore(ttl_seconds=auth_settings.session_ttl_seconds)
    otp_issuer = OtpIssuer(
        code_repo,
        mailer,
        secret=auth_settings.admin_secret,
        ttl_seconds=auth_settings.code_ttl_seconds,
        max_attempts=auth_settings.code_max_attempts,
    )
    auth_service = AuthService(account_repo, otp_issuer, session_store)
    admin_service = AdminService(
        account_repo,
        auth_service,
        passkey=auth_settings.admin_passkey,
        ticket_secret=auth_settings.admin_secret,
        ticket_ttl_seconds=auth_settings.admin_ticket_ttl_seconds,
    )

    @contextlib.asynccontextmanager
    async def lifespan(_app: Starlette) -> AsyncGenerator[None]:  # pragma: no cover
        session_store.start_cleanup()
        yield
        await session_store.stop_cleanup()
        db.close()

    app = Starlette(
        routes=routes,
        lifespan=lifespan,
        exception_handlers={HTTPException: _http_error_handler, AuthError: _auth_error_handler},
    )
    app.add_middleware(SlashNormalizationMiddleware)  # type: ignore[arg-type]
    app.add_middleware(
        AuthenticationMiddleware,  # type: ignore[arg-type]
        backend=SessionBackend(auth_service),
        on_error=on_auth_error,
    )
    app.add_middleware(
        CORSMiddleware,  # type: ignore[arg-type]
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST", "PATCH", "DELETE"],
        allow_headers=["Content-Type"],
        allow_credentials=True,
    )
    app.add_middleware(SecurityHeadersMiddleware)  # type: ignore[arg-type]

    app.state.db = db
    app.state.settings = settings
    app.state.auth_settings = auth_settings
    app.state.session_store = session_store
    app.state.auth_service = auth_service
    app.state.admin_service = admin_service
    app.state.file_service = FileService(file_repo)

    logger.info("portal server ready", mail_transport=mail_settings.transport)
    return app


def get_app() -> Starlette:  # pragma: no cover
    """Factory function for uvicorn --factory portal.server.app:get_app."""
    s = PortalServerSettings()
    auth = AuthSettings()  # ty: ignore[missing-argument]
    setup_logging(log_dir=s.log_dir)
    return create_app(settings=s, auth_settings=auth)
