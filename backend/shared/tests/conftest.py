"""Shared fixtures for the auth engine, file catalog, and storage tests."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import pytest

from shared.auth.models import Account
from shared.auth.otp import OtpIssuer
from shared.auth.service import AuthService
from shared.auth.session_store import AuthSessionStore
from shared.db import Database, SqliteAccountRepository, SqliteCodeRepository, SqliteFileRepository
from shared.errors import DispatchFailureError

if TYPE_CHECKING:
    from pathlib import Path

TEST_SECRET = "test-secret"


@dataclass
class SentCode:
    to_email: str
    to_name: str
    code: str
    ttl_minutes: int


@dataclass
class RecordingMailer:
    """CodeMailer that keeps every code it was asked to send."""

    sent: list[SentCode] = field(default_factory=list)
    fail: bool = False

    async def send_code(self, to_email: str, to_name: str, code: str, ttl_minutes: int) -> None:
        if self.fail:
            raise DispatchFailureError("mail api unavailable")
        self.sent.append(SentCode(to_email, to_name, code, ttl_minutes))

    def last_code_for(self, email: str) -> str:
        return next(s.code for s in reversed(self.sent) if s.to_email == email)


def make_account(
    account_id: str = "acc-1",
    email: str = "ada@example.com",
    *,
    is_student: bool = False,
    dashboard_access: bool = False,
    file_access_keyword: str | None = None,
    full_name: str = "Ada Lovelace",
) -> Account:
    return Account(
        account_id=account_id,
        full_name=full_name,
        email=email,
        is_student=is_student,
        dashboard_access=dashboard_access,
        file_access_keyword=file_access_keyword,
        created_at=time.time(),
    )


@pytest.fixture
def db(tmp_path: Path):
    database = Database(tmp_path / "test.db")
    database.connect()
    yield database
    database.close()


@pytest.fixture
def account_repo(db: Database) -> SqliteAccountRepository:
    return SqliteAccountRepository(db)


@pytest.fixture
def code_repo(db: Database) -> SqliteCodeRepository:
    return SqliteCodeRepository(db)


@pytest.fixture
def file_repo(db: Database) -> SqliteFileRepository:
    return SqliteFileRepository(db)


@pytest.fixture
def mailer() -> RecordingMailer:
    return RecordingMailer()


@pytest.fixture
def otp_issuer(code_repo: SqliteCodeRepository, mailer: RecordingMailer) -> OtpIssuer:
    return OtpIssuer(code_repo, mailer, secret=TEST_SECRET, ttl_seconds=900, max_attempts=5)


@pytest.fixture
def session_store() -> AuthSessionStore:
    return AuthSessionStore()


@pytest.fixture
def auth_service(account_repo, otp_issuer, session_store) -> AuthService:
    return AuthService(account_repo, otp_issuer, session_store)


@pytest.fixture
def account_factory():
    return make_account
