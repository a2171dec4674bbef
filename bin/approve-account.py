"""Grant or revoke dashboard access for a staff account from the command line.

Usage: uv run python bin/approve-account.py <email> [--revoke] [--keyword KEYWORD]

Changes go through AdminService, so student accounts are refused and keywords
are normalized exactly as on the admin API.
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Add backend to path for imports
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "backend"))

from shared.auth import AdminService, AuthService, AuthSessionStore, ConsoleMailer, OtpIssuer
from shared.auth.service import normalize_email
from shared.auth.settings import AuthSettings
from shared.db import Database, SqliteAccountRepository, SqliteCodeRepository
from shared.errors import AuthError


async def main() -> None:
    parser = argparse.ArgumentParser(description="Approve a staff account for the dashboard.")
    parser.add_argument("email")
    parser.add_argument("--revoke", action="store_true", help="revoke access instead of granting it")
    parser.add_argument("--keyword", help="file access keyword to assign (empty string clears it)")
    args = parser.parse_args()

    # Only database_path is needed; supply placeholders for the secrets so the
    # script works without AUTH_ADMIN_SECRET and AUTH_ADMIN_PASSKEY being set.
    auth_settings = AuthSettings(admin_secret="unused", admin_passkey="unused")  # type: ignore[call-arg]

    db = Database(auth_settings.database_path)
    db.connect()

    try:
        account_repo = SqliteAccountRepository(db)
        otp_issuer = OtpIssuer(SqliteCodeRepository(db), ConsoleMailer(), secret=auth_settings.admin_secret)
        auth_service = AuthService(account_repo, otp_issuer, AuthSessionStore())
        admin_service = AdminService(
            account_repo,
            auth_service,
            passkey=auth_settings.admin_passkey,
            ticket_secret=auth_settings.admin_secret,
        )

        account = await account_repo.get_by_email(normalize_email(args.email))
        if account is None:
            print(f"Error: no account registered for {args.email}")
            sys.exit(1)

        try:
            account = await admin_service.set_dashboard_access(account.account_id, granted=not args.revoke)
            if args.keyword is not None:
                account = await admin_service.set_file_access_keyword(account.account_id, args.keyword)
        except AuthError as e:
            print(f"Error: {e}")
            sys.exit(1)

        print(f"Account: {account.full_name} <{account.email}> (id: {account.account_id})")
        print(f"Dashboard access: {'granted' if account.dashboard_access else 'revoked'}")
        print(f"File access keyword: {account.file_access_keyword or '(none)'}")
    finally:
        db.close()


if __name__ == "__main__":
    asyncio.run(main())
