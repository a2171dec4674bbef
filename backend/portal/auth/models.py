"""User model for Starlette AuthenticationMiddleware integration."""

from __future__ import annotations

from typing import TYPE_CHECKING

from starlette.authentication import BaseUser

if TYPE_CHECKING:
    from shared.auth.models import Account


class AuthenticatedAccount(BaseUser):
    """Authenticated user for Starlette's request.user.

    Wraps the account snapshot read by the auth backend for this request.
    """

    def __init__(self, account: Account) -> None:
        self._account = account

    @property
    def is_authenticated(self) -> bool:
        return True

    @property
    def display_name(self) -> str:  # pragma: no cover
        return self._account.full_name

    @property
    def identity(self) -> str:  # pragma: no cover
        return self._account.account_id

    @property
    def account(self) -> Account:
        return self._account

    @property
    def account_id(self) -> str:
        return self._account.account_id
