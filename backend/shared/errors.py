"""Error taxonomy shared by the auth engine, file catalog, and HTTP surface."""

from __future__ import annotations


class AuthError(Exception):
    """Authentication or authorization failure."""


class NotFoundError(AuthError):
    """No matching account or file."""


class InvalidCodeError(AuthError):
    """One-time code does not match the live code, or no code is live."""


class CodeExpiredError(AuthError):
    """One-time code is past its expiry."""


class UnauthenticatedError(AuthError):
    """No resolvable session where one is required."""


class ForbiddenError(AuthError):
    """Caller is authenticated but the action is not allowed."""


class DispatchFailureError(AuthError):
    """The one-time code could not be delivered."""


class StoreFailureError(AuthError):
    """Underlying persistence error."""


class PartialFailureError(AuthError):
    """A multi-step operation completed some steps but not all."""

    def __init__(self, message: str, *, completed: list[str], failed: list[str]) -> None:
        super().__init__(message)
        self.completed = completed
        self.failed = failed
