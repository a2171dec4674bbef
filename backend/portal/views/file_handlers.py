"""File catalog endpoints: filtered listing, usage, and metadata mutations."""

from __future__ import annotations

from typing import TYPE_CHECKING

from starlette.responses import JSONResponse, Response

from portal.views.common import file_payload, parse_body
from portal.views.types import AddFileRequest, RenameFileRequest
from shared.files.models import DEFAULT_SORT

if TYPE_CHECKING:
    from starlette.requests import Request


def _parse_limit(raw: str | None) -> int | None:
    if raw is None or raw == "":
        return None
    return int(raw)


async def list_files(request: Request) -> Response:
    """GET /api/files?types=document,image&search=&sort=created_at-desc&limit=10"""
    file_service = request.app.state.file_service
    params = request.query_params

    raw_types = params.get("types", "")
    types = [t.strip() for t in raw_types.split(",") if t.strip()]
    try:
        files = await file_service.list_files(
            request.user.account,
            types=types,
            search_text=params.get("search", ""),
            sort=params.get("sort", DEFAULT_SORT),
            limit=_parse_limit(params.get("limit")),
        )
    except ValueError as e:
        return JSONResponse({"error": str(e)}, status_code=422)

    return JSONResponse({"files": [file_payload(f) for f in files], "total": len(files)})


async def space_usage(request: Request) -> Response:
    """GET /api/files/usage - bytes used per file type."""
    file_service = request.app.state.file_service
    usage = await file_service.total_space_used(request.user.account)
    return JSONResponse(
        {
            "by_type": {
                file_type.value: {"size": bucket.size, "latest_date": bucket.latest_date}
                for file_type, bucket in usage.by_type.items()
            },
            "used": usage.used,
            "all": usage.capacity,
        },
    )


async def add_file(request: Request) -> Response:
    """POST /api/files - record metadata for an uploaded file."""
    file_service = request.app.state.file_service
    body = await parse_body(request, AddFileRequest)
    if isinstance(body, JSONResponse):
        return body

    record = await file_service.add_file(request.user.account, body.name, body.size, body.url)
    return JSONResponse(file_payload(record), status_code=201)


async def rename_file(request: Request) -> Response:
    """PATCH /api/files/{file_id} - rename, keeping the extension."""
    file_service = request.app.state.file_service
    body = await parse_body(request, RenameFileRequest)
    if isinstance(body, JSONResponse):
        return body

    record = await file_service.rename_file(request.user.account, request.path_params["file_id"], body.name)
    return JSONResponse(file_payload(record))


async def delete_file(request: Request) -> Response:
    """DELETE /api/files/{file_id}"""
    file_service = request.app.state.file_service
    await file_service.delete_file(request.user.account, request.path_params["file_id"])
    return JSONResponse({"status": "success"})
