"""Account, session, and one-time code models for authentication."""

from dataclasses import dataclass

from pydantic import BaseModel

AVATAR_PLACEHOLDER_URL = "/assets/images/avatar.png"


def normalize_keyword(keyword: str | None) -> str | None:
    """Trim a file access keyword; empty means no restriction."""
    if keyword is None:
        return None
    stripped = keyword.strip()
    return stripped or None


class Account(BaseModel, frozen=True):
    """User account stored in the account repository."""

    account_id: str
    full_name: str
    email: str  # normalized: trimmed, lower-cased
    is_student: bool
    dashboard_access: bool = False  # administrator-controlled; ignored for students
    file_access_keyword: str | None = None
    avatar_url: str = AVATAR_PLACEHOLDER_URL
    created_at: float = 0.0


@dataclass
class AuthSession:
    """Server-side session for a verified account."""

    session_id: str  # opaque secret, stored in cookie
    account_id: str
    created_at: float  # time.time()
    expires_at: float  # time.time() + TTL


@dataclass
class OneTimeCode:
    """Live one-time code for an account. Only the hash is ever stored."""

    account_id: str
    code_hash: str
    expires_at: float
    attempts: int = 0


@dataclass
class VerifyResult:
    """Outcome of a successful code verification."""

    session: AuthSession
    is_student: bool
    dashboard_access: bool  # effective value
    landing: str  # where the presentation layer should send the account
