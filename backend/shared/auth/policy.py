"""Access policy: dashboard gating and the file-visibility filter.

Every decision here is a pure function of the account as just read from the
store. Callers must re-read the account on each request rather than trusting
a previously computed value.
"""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING

from shared.errors import UnauthenticatedError
from shared.files.models import DEFAULT_SORT, FileFilter, FileType, SortSpec

if TYPE_CHECKING:
    from collections.abc import Iterable

    from shared.auth.models import Account


class Landing(StrEnum):
    """Where the presentation layer sends an account after sign-in."""

    STUDENT = "/student"
    WAITING_FOR_APPROVAL = "/waiting-for-approval"
    DASHBOARD = "/"


def effective_dashboard_access(account: Account) -> bool:
    """Students are never gated; everyone else depends on the admin flag."""
    if account.is_student:
        return True
    return account.dashboard_access


def landing_for(account: Account) -> Landing:
    if account.is_student:
        return Landing.STUDENT
    if not effective_dashboard_access(account):
        return Landing.WAITING_FOR_APPROVAL
    return Landing.DASHBOARD


def build_file_filter(
    requester: Account | None,
    *,
    types: Iterable[str] = (),
    search_text: str = "",
    sort: str = DEFAULT_SORT,
    limit: int | None = None,
) -> FileFilter:
    """Build the listing filter for a requester.

    Fails closed with UnauthenticatedError when there is no requester.
    Raises ValueError for an unknown file type, a malformed sort, or a
    non-positive limit.
    """
    if requester is None:
        raise UnauthenticatedError("No current user")
    return FileFilter(
        types=tuple(FileType(t) for t in types),
        search_text=search_text,
        keyword=requester.file_access_keyword,
        sort=SortSpec.parse(sort),
        limit=limit,
    )
