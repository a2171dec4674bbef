"""One-time code delivery: protocol, HTTP mail API (production), and console (local dev).

HttpMailer posts a transactional email to a JSON mail API with httpx.
Any transport error or an HTTP status >= 400 raises DispatchFailureError so
callers never believe a code was sent when it was not.

ConsoleMailer logs the code instead of sending it. It is intended for local
development and tests only.
"""

from __future__ import annotations

import html
from typing import TYPE_CHECKING, Protocol, runtime_checkable

import httpx
import structlog

from shared.errors import DispatchFailureError

if TYPE_CHECKING:
    from shared.auth.settings import MailSettings

logger = structlog.get_logger()

_HTTP_ERROR_STATUS = 400

_SUBJECT = "Your sign-in code"


@runtime_checkable
class CodeMailer(Protocol):
    """Deliver a one-time code to an email address."""

    async def send_code(self, to_email: str, to_name: str, code: str, ttl_minutes: int) -> None: ...


def _render_html(to_name: str, code: str, ttl_minutes: int) -> str:
    return (
        '<div style="font-family:Arial,sans-serif;max-width:560px;margin:auto;padding:24px">'
        f"<h2>Hello {html.escape(to_name)}</h2>"
        "<p>Use the following code to finish signing in:</p>"
        f'<p style="font-size:28px;letter-spacing:6px;font-weight:700">{code}</p>'
        f"<p>This code expires in {ttl_minutes} minutes.</p>"
        '<p style="color:#666;font-size:12px">If you did not request this, you can ignore this email.</p>'
        "</div>"
    )


class HttpMailer:
    """Production mailer posting to a transactional email API."""

    def __init__(self, settings: MailSettings, client: httpx.AsyncClient | None = None) -> None:
        self._settings = settings
        self._client = client

    async def send_code(self, to_email: str, to_name: str, code: str, ttl_minutes: int) -> None:
        payload = {
            "sender": {"name": self._settings.sender_name, "email": self._settings.sender_email},
            "to": [{"email": to_email, "name": to_name}],
            "subject": _SUBJECT,
            "htmlContent": _render_html(to_name, code, ttl_minutes),
        }
        headers = {"api-key": self._settings.api_key, "Content-Type": "application/json"}
        try:
            if self._client is not None:
                response = await self._client.post(self._settings.api_url, headers=headers, json=payload)
            else:
                async with httpx.AsyncClient(timeout=self._settings.timeout_seconds) as client:
                    response = await client.post(self._settings.api_url, headers=headers, json=payload)
        except httpx.HTTPError as exc:
            logger.warning("code email transport error", error=str(exc))
            raise DispatchFailureError("Failed to send the one-time code") from exc

        if response.status_code >= _HTTP_ERROR_STATUS:
            logger.warning("code email rejected by mail api", status_code=response.status_code)
            raise DispatchFailureError(f"Mail API returned {response.status_code}")


class ConsoleMailer:
    """Logs the code instead of sending it. Not suitable for production use."""

    async def send_code(self, to_email: str, to_name: str, code: str, ttl_minutes: int) -> None:  # noqa: ARG002
        logger.info("one-time code issued", email=to_email, code=code, ttl_minutes=ttl_minutes)


def get_mailer(settings: MailSettings) -> CodeMailer:
    """Return a CodeMailer for the configured transport ("http" or "console")."""
    if settings.transport == "http":
        if not settings.api_key:
            raise ValueError("MAIL_API_KEY is required for the http mail transport")
        return HttpMailer(settings)
    if settings.transport == "console":
        return ConsoleMailer()
    raise ValueError(f"Unknown mail transport: {settings.transport!r}")
