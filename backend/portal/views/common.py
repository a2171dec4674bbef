"""Helpers shared by the portal JSON handlers."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, TypeVar

from pydantic import BaseModel, ValidationError
from starlette.responses import JSONResponse

from shared.auth.policy import effective_dashboard_access, landing_for

if TYPE_CHECKING:
    from starlette.requests import Request

    from shared.auth.models import Account
    from shared.files.models import FileRecord

ModelT = TypeVar("ModelT", bound=BaseModel)


async def parse_body(request: Request, model: type[ModelT]) -> ModelT | JSONResponse:
    """Parse and validate a JSON body. Return a 422 response on failure."""
    try:
        body = await request.json()
    except (ValueError, json.JSONDecodeError):
        return JSONResponse({"error": "Invalid JSON body"}, status_code=422)
    if not isinstance(body, dict):
        return JSONResponse({"error": "Invalid JSON body"}, status_code=422)
    try:
        return model.model_validate(body)
    except ValidationError as e:
        return JSONResponse({"error": str(e)}, status_code=422)


def account_payload(account: Account) -> dict:
    """Account as seen by its owner, with the effective access decision."""
    return {
        "account_id": account.account_id,
        "full_name": account.full_name,
        "email": account.email,
        "avatar_url": account.avatar_url,
        "is_student": account.is_student,
        "dashboard_access": effective_dashboard_access(account),
        "file_access_keyword": account.file_access_keyword,
        "landing": landing_for(account).value,
    }


def admin_account_payload(account: Account) -> dict:
    """Account as seen by an administrator: the stored flag, not the effective one."""
    return {
        "account_id": account.account_id,
        "full_name": account.full_name,
        "email": account.email,
        "dashboard_access": account.dashboard_access,
        "file_access_keyword": account.file_access_keyword or "",
    }


def file_payload(record: FileRecord) -> dict:
    return record.model_dump(mode="json")
