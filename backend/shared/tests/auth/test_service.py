"""Tests for AuthService."""

from __future__ import annotations

from unittest.mock import patch

import pytest

from shared.auth.policy import Landing
from shared.errors import AuthError, DispatchFailureError, InvalidCodeError, NotFoundError


class TestRegister:
    async def test_registers_account_and_sends_code(self, auth_service, account_repo, mailer):
        account_id = await auth_service.register("Ada Lovelace", " Ada@Example.com ", is_student=False)

        account = await account_repo.get_by_id(account_id)
        assert account is not None
        assert account.email == "ada@example.com"
        assert account.dashboard_access is False
        assert account.file_access_keyword is None
        assert mailer.sent[-1].to_email == "ada@example.com"

    async def test_existing_email_resends_code_without_duplicating(self, auth_service, account_repo, mailer):
        first = await auth_service.register("Ada Lovelace", "ada@example.com", is_student=False)
        second = await auth_service.register("Someone Else", "ADA@example.com", is_student=True)

        assert first == second
        assert len(await account_repo.list_accounts()) == 1
        assert (await account_repo.get_by_id(first)).is_student is False
        assert len(mailer.sent) == 2

    async def test_dispatch_failure_leaves_no_account(self, auth_service, account_repo, mailer):
        mailer.fail = True

        with pytest.raises(DispatchFailureError):
            await auth_service.register("Ada Lovelace", "ada@example.com", is_student=False)

        assert await account_repo.get_by_email("ada@example.com") is None

    @pytest.mark.parametrize("name", ["A", "x" * 51, "   "])
    async def test_rejects_bad_full_name(self, auth_service, name):
        with pytest.raises(AuthError, match="between"):
            await auth_service.register(name, "ada@example.com", is_student=False)

    @pytest.mark.parametrize("email", ["", "ada", "ada@", "ada@example", "a da@example.com"])
    async def test_rejects_bad_email(self, auth_service, email):
        with pytest.raises(AuthError, match="Invalid email"):
            await auth_service.register("Ada Lovelace", email, is_student=False)


class TestSignIn:
    async def test_sends_code_to_existing_account(self, auth_service, mailer):
        account_id = await auth_service.register("Ada Lovelace", "ada@example.com", is_student=False)

        assert await auth_service.sign_in("ADA@example.com") == account_id
        assert len(mailer.sent) == 2

    async def test_unknown_email(self, auth_service, mailer):
        with pytest.raises(NotFoundError):
            await auth_service.sign_in("nobody@example.com")
        assert mailer.sent == []


class TestVerifyCode:
    async def test_student_lands_on_student_route(self, auth_service, mailer):
        account_id = await auth_service.register("Sam Student", "sam@example.com", is_student=True)

        result = await auth_service.verify_code(account_id, mailer.sent[-1].code)

        assert result.is_student is True
        assert result.dashboard_access is True
        assert result.landing == Landing.STUDENT
        assert result.session.account_id == account_id

    async def test_unapproved_staff_waits_for_approval(self, auth_service, mailer):
        account_id = await auth_service.register("Tess Teacher", "tess@example.com", is_student=False)

        result = await auth_service.verify_code(account_id, mailer.sent[-1].code)

        assert result.is_student is False
        assert result.dashboard_access is False
        assert result.landing == Landing.WAITING_FOR_APPROVAL

    async def test_approved_staff_lands_on_dashboard(self, auth_service, account_repo, mailer):
        account_id = await auth_service.register("Tess Teacher", "tess@example.com", is_student=False)
        await account_repo.set_dashboard_access(account_id, True)

        result = await auth_service.verify_code(account_id, mailer.sent[-1].code)

        assert result.dashboard_access is True
        assert result.landing == Landing.DASHBOARD

    async def test_code_is_trimmed(self, auth_service, mailer):
        account_id = await auth_service.register("Ada Lovelace", "ada@example.com", is_student=True)

        result = await auth_service.verify_code(account_id, f"  {mailer.sent[-1].code} ")
        assert result.session is not None

    async def test_wrong_code_creates_no_session(self, auth_service, session_store, mailer):
        account_id = await auth_service.register("Ada Lovelace", "ada@example.com", is_student=True)
        wrong = "000000" if mailer.sent[-1].code != "000000" else "111111"

        with pytest.raises(InvalidCodeError):
            await auth_service.verify_code(account_id, wrong)
        assert session_store._sessions == {}

    async def test_account_deleted_after_issue(self, auth_service, account_repo, mailer):
        account_id = await auth_service.register("Ada Lovelace", "ada@example.com", is_student=True)
        await account_repo.delete_account(account_id)

        with pytest.raises(NotFoundError):
            await auth_service.verify_code(account_id, mailer.sent[-1].code)


class TestResolveCurrentUser:
    async def _signed_in(self, auth_service, mailer) -> tuple[str, str]:
        account_id = await auth_service.register("Ada Lovelace", "ada@example.com", is_student=False)
        result = await auth_service.verify_code(account_id, mailer.sent[-1].code)
        return account_id, result.session.session_id

    async def test_returns_account(self, auth_service, mailer):
        account_id, session_id = await self._signed_in(auth_service, mailer)

        account = await auth_service.resolve_current_user(session_id)
        assert account.account_id == account_id

    @pytest.mark.parametrize("token", [None, "", "forged-token"])
    async def test_missing_or_unknown_token_returns_none(self, auth_service, token):
        assert await auth_service.resolve_current_user(token) is None

    async def test_reads_fresh_account_state(self, auth_service, account_repo, mailer):
        account_id, session_id = await self._signed_in(auth_service, mailer)

        await account_repo.set_dashboard_access(account_id, True)
        await account_repo.set_file_access_keyword(account_id, "ENG")

        account = await auth_service.resolve_current_user(session_id)
        assert account.dashboard_access is True
        assert account.file_access_keyword == "ENG"

    async def test_session_for_deleted_account_resolves_to_none(self, auth_service, account_repo, mailer):
        account_id, session_id = await self._signed_in(auth_service, mailer)
        await account_repo.delete_account(account_id)

        assert await auth_service.resolve_current_user(session_id) is None


class TestSignOut:
    async def test_invalidates_session(self, auth_service, mailer):
        account_id = await auth_service.register("Ada Lovelace", "ada@example.com", is_student=True)
        session = (await auth_service.verify_code(account_id, mailer.sent[-1].code)).session

        auth_service.sign_out(session.session_id)

        assert await auth_service.resolve_current_user(session.session_id) is None

    def test_without_session_is_noop(self, auth_service):
        auth_service.sign_out(None)

    def test_store_failure_is_swallowed(self, auth_service, session_store):
        with patch.object(session_store, "delete_session", side_effect=RuntimeError("boom")):
            auth_service.sign_out("some-token")


class TestRevokeIdentity:
    async def test_drops_code_and_all_sessions(self, auth_service, code_repo, mailer, session_store):
        account_id = await auth_service.register("Ada Lovelace", "ada@example.com", is_student=True)
        await auth_service.verify_code(account_id, mailer.sent[-1].code)
        session_store.create_session(account_id)
        await auth_service.sign_in("ada@example.com")

        removed = await auth_service.revoke_identity(account_id)

        assert removed == 2
        assert await code_repo.get_code(account_id) is None
