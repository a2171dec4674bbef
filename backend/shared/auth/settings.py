"""Auth and mail settings for the portal."""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings


class AuthSettings(BaseSettings):
    model_config = {"env_prefix": "AUTH_", "populate_by_name": True}

    # HMAC secret for one-time code hashes and admin tickets -- required, no default.
    # The application fails to start if AUTH_ADMIN_SECRET is not set.
    admin_secret: str = Field(min_length=1)

    # Passkey that unlocks the admin surface -- required, no default.
    admin_passkey: str = Field(min_length=1)

    # SQLite database file path
    database_path: str = "backend/storage.db"

    # Cookie Secure flag -- True in production, False for local dev (HTTP)
    cookie_secure: bool = False

    code_ttl_seconds: int = Field(default=900, gt=0)  # 15 minutes
    code_max_attempts: int = Field(default=5, gt=0)
    session_ttl_seconds: int = Field(default=86400, gt=0)  # 24 hours
    admin_ticket_ttl_seconds: int = Field(default=900, gt=0)


class MailSettings(BaseSettings):
    model_config = {"env_prefix": "MAIL_"}

    # "console" logs codes (local dev), "http" posts to a transactional mail API
    transport: Literal["console", "http"] = "console"
    api_url: str = "https://api.brevo.com/v3/smtp/email"
    api_key: str = ""
    sender_email: str = "no-reply@filegate.local"
    sender_name: str = "Filegate"
    timeout_seconds: float = 20.0
