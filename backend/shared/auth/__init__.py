"""Authentication and authorization engine: accounts, one-time codes, sessions, and access policy."""

from shared.auth.admin import AdminService, UserPage
from shared.auth.admin_ticket import AdminTicket, create_admin_ticket, verify_admin_ticket
from shared.auth.mailer import CodeMailer, ConsoleMailer, HttpMailer, get_mailer
from shared.auth.models import Account, AuthSession, OneTimeCode, VerifyResult, normalize_keyword
from shared.auth.otp import OtpIssuer
from shared.auth.policy import Landing, build_file_filter, effective_dashboard_access, landing_for
from shared.auth.service import AuthService
from shared.auth.session_store import AuthSessionStore
from shared.auth.settings import AuthSettings, MailSettings

__all__ = [
    "Account",
    "AdminService",
    "AdminTicket",
    "AuthService",
    "AuthSession",
    "AuthSessionStore",
    "AuthSettings",
    "CodeMailer",
    "ConsoleMailer",
    "HttpMailer",
    "Landing",
    "MailSettings",
    "OneTimeCode",
    "OtpIssuer",
    "UserPage",
    "VerifyResult",
    "build_file_filter",
    "create_admin_ticket",
    "effective_dashboard_access",
    "get_mailer",
    "landing_for",
    "normalize_keyword",
    "verify_admin_ticket",
]
