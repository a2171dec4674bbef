"""HMAC-SHA256 signed admin tickets unlocking the admin surface.

A correct passkey is exchanged for a short-lived ticket. Admin endpoints
verify the signature and expiry locally on every request; nothing is stored
server-side, so a ticket is valid until it expires.

Token format: base64url(json_payload_bytes).base64url(hmac_sha256_signature)
"""

import base64
import binascii
import hashlib
import hmac
import json
import math
import secrets
import time
from dataclasses import asdict, dataclass

import structlog

logger = structlog.get_logger()

_TOKEN_PARTS = 2  # base64url(payload).base64url(signature)

ADMIN_TICKET_TTL_SECONDS = 900  # 15 minutes
CLOCK_SKEW_SECONDS = 60
_SCOPE = "admin"


@dataclass
class AdminTicket:
    """Payload carried inside a signed admin ticket."""

    ticket_id: str
    scope: str
    issued_at: float
    expires_at: float


def create_admin_ticket(secret: str, ttl_seconds: int = ADMIN_TICKET_TTL_SECONDS) -> str:
    """Create and sign an admin ticket, returning the signed token string."""
    now = time.time()
    ticket = AdminTicket(
        ticket_id=secrets.token_urlsafe(12),
        scope=_SCOPE,
        issued_at=now,
        expires_at=now + ttl_seconds,
    )
    return sign_admin_ticket(ticket, secret)


def sign_admin_ticket(ticket: AdminTicket, secret: str) -> str:
    """Serialize ticket to JSON, compute HMAC-SHA256, return base64url(payload).base64url(sig)."""
    payload_bytes = json.dumps(asdict(ticket), sort_keys=True).encode()
    sig = hmac.new(secret.encode(), payload_bytes, hashlib.sha256).digest()
    payload_b64 = base64.urlsafe_b64encode(payload_bytes).decode()
    sig_b64 = base64.urlsafe_b64encode(sig).decode()
    return f"{payload_b64}.{sig_b64}"


def verify_admin_ticket(
    token: str | None,
    secret: str,
    max_ttl_seconds: int = ADMIN_TICKET_TTL_SECONDS,
) -> AdminTicket | None:
    """Verify HMAC signature, scope, and expiry. Returns AdminTicket or None on any failure."""
    if not token:
        return None
    parts = token.split(".")
    if len(parts) != _TOKEN_PARTS:
        return None

    try:
        payload_bytes = base64.urlsafe_b64decode(parts[0])
        provided_sig = base64.urlsafe_b64decode(parts[1])
    except (ValueError, binascii.Error):
        return None

    expected_sig = hmac.new(secret.encode(), payload_bytes, hashlib.sha256).digest()
    if not hmac.compare_digest(provided_sig, expected_sig):
        logger.debug("admin ticket signature mismatch")
        return None

    try:
        data = json.loads(payload_bytes)
        ticket = AdminTicket(**data)
    except (json.JSONDecodeError, TypeError, KeyError):
        logger.debug("admin ticket malformed payload")
        return None

    if ticket.scope != _SCOPE:
        logger.debug("admin ticket wrong scope")
        return None

    if not _validate_ticket_timestamps(ticket, max_ttl_seconds):
        return None

    return ticket


def _is_finite_number(value: object) -> bool:
    """Check that a value is a finite int or float (excluding bool)."""
    if isinstance(value, bool):
        return False
    if not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def _validate_ticket_timestamps(ticket: AdminTicket, max_ttl_seconds: int) -> bool:
    """Validate temporal claims on an admin ticket.

    Checks: both timestamps are finite numbers, issued_at is not in the future
    (with clock skew tolerance), expires_at is after issued_at, the ticket
    lifetime does not exceed the allowed TTL, and the ticket has not expired.
    """
    if not _is_finite_number(ticket.issued_at) or not _is_finite_number(ticket.expires_at):
        logger.debug("admin ticket non-finite timestamp")
        return False

    now = time.time()

    if ticket.issued_at > now + CLOCK_SKEW_SECONDS:
        logger.debug("admin ticket issued in the future")
        return False

    if ticket.expires_at <= ticket.issued_at:
        logger.debug("admin ticket expires_at <= issued_at")
        return False

    if ticket.expires_at - ticket.issued_at > max_ttl_seconds + CLOCK_SKEW_SECONDS:
        logger.debug("admin ticket lifetime too long")
        return False

    if now > ticket.expires_at:
        logger.debug("admin ticket expired")
        return False

    return True
