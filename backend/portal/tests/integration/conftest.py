"""Shared fixtures for portal integration tests."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import pytest
from starlette.testclient import TestClient

from portal.server.app import create_app
from portal.server.settings import PortalServerSettings
from shared.auth.settings import AuthSettings, MailSettings
from shared.errors import DispatchFailureError

if TYPE_CHECKING:
    from starlette.applications import Starlette

TEST_SECRET = "integration-secret"
TEST_PASSKEY = "integration-passkey"


@dataclass
class RecordingMailer:
    """CodeMailer that keeps codes in memory instead of emailing them."""

    sent: list[tuple[str, str]] = field(default_factory=list)
    fail: bool = False

    async def send_code(self, to_email: str, to_name: str, code: str, ttl_minutes: int) -> None:  # noqa: ARG002
        if self.fail:
            raise DispatchFailureError("mail api unavailable")
        self.sent.append((to_email, code))

    def last_code_for(self, email: str) -> str:
        return next(code for to_email, code in reversed(self.sent) if to_email == email)


@pytest.fixture
def mailer() -> RecordingMailer:
    return RecordingMailer()


@pytest.fixture
def app(tmp_path, mailer) -> Starlette:
    return create_app(
        settings=PortalServerSettings(cors_origins=[]),
        auth_settings=AuthSettings(
            admin_secret=TEST_SECRET,
            admin_passkey=TEST_PASSKEY,
            database_path=str(tmp_path / "portal.db"),
        ),
        mail_settings=MailSettings(transport="console"),
        mailer=mailer,
    )


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)


@pytest.fixture
def client_factory(app):
    """Independent clients (separate cookie jars) against the same app."""

    def _make() -> TestClient:
        return TestClient(app)

    return _make


@pytest.fixture
def sign_up(mailer):
    """Register an account on the given client and redeem its code. Returns the verify response body."""

    def _sign_up(http_client: TestClient, email: str, *, is_student: bool, full_name: str = "Test User") -> dict:
        response = http_client.post(
            "/api/auth/register",
            json={"full_name": full_name, "email": email, "is_student": is_student},
        )
        assert response.status_code == 201, response.text
        account_id = response.json()["account_id"]
        response = http_client.post(
            "/api/auth/verify",
            json={"account_id": account_id, "code": mailer.last_code_for(email)},
        )
        assert response.status_code == 200, response.text
        return {"account_id": account_id, **response.json()}

    return _sign_up


@pytest.fixture
def admin_passkey() -> str:
    return TEST_PASSKEY


@pytest.fixture
def admin_client(client_factory) -> TestClient:
    admin = client_factory()
    response = admin.post("/api/admin/unlock", json={"passkey": TEST_PASSKEY})
    assert response.status_code == 200
    return admin
