"""File metadata records and the listing filter."""

from __future__ import annotations

from enum import StrEnum
from typing import Self

from pydantic import BaseModel, Field


class FileType(StrEnum):
    DOCUMENT = "document"
    IMAGE = "image"
    VIDEO = "video"
    AUDIO = "audio"
    OTHER = "other"


_EXTENSION_TYPES: dict[FileType, frozenset[str]] = {
    FileType.DOCUMENT: frozenset(
        {"pdf", "doc", "docx", "txt", "xls", "xlsx", "csv", "rtf", "ods", "ppt", "odp", "md", "html", "htm", "epub",
         "pages", "fig", "psd", "ai", "indd", "xd", "sketch", "afdesign", "afphoto"},
    ),
    FileType.IMAGE: frozenset({"jpg", "jpeg", "png", "gif", "bmp", "svg", "webp"}),
    FileType.VIDEO: frozenset({"mp4", "avi", "mov", "mkv", "webm"}),
    FileType.AUDIO: frozenset({"mp3", "wav", "ogg", "flac"}),
}


def get_file_type(file_name: str) -> tuple[FileType, str]:
    """Return (type, extension) for a file name. Extension is lower-cased, "" when absent."""
    _, dot, ext = file_name.rpartition(".")
    if not dot:
        return FileType.OTHER, ""
    extension = ext.lower()
    for file_type, extensions in _EXTENSION_TYPES.items():
        if extension in extensions:
            return file_type, extension
    return FileType.OTHER, extension


class FileRecord(BaseModel, frozen=True):
    """File metadata. The bytes live in external object storage."""

    file_id: str
    owner_id: str  # account id of the uploader
    name: str
    type: FileType
    extension: str = ""
    size: int = Field(ge=0)
    url: str = ""
    created_at: float
    updated_at: float


SORT_FIELDS = frozenset({"created_at", "updated_at", "name", "size"})
DEFAULT_SORT = "created_at-desc"


class SortSpec(BaseModel, frozen=True):
    field: str = "created_at"
    descending: bool = True

    @classmethod
    def parse(cls, spec: str) -> Self:
        """Parse ``<field>-<asc|desc>``. Raises ValueError on anything else."""
        field, sep, order = spec.rpartition("-")
        if not sep or field not in SORT_FIELDS or order not in {"asc", "desc"}:
            raise ValueError(f"Invalid sort {spec!r}; expected <field>-<asc|desc> with field in {sorted(SORT_FIELDS)}")
        return cls(field=field, descending=order == "desc")


class FileFilter(BaseModel, frozen=True):
    """Visibility predicate for a file listing.

    All constraints are AND-combined. ``keyword`` comes from the requester's
    account and only ever narrows the result. Sort and limit apply after
    filtering; ties are broken by file_id ascending.
    """

    types: tuple[FileType, ...] = ()
    search_text: str = ""  # case-sensitive substring of the name
    keyword: str | None = None  # case-sensitive substring of the name
    sort: SortSpec = SortSpec()
    limit: int | None = Field(default=None, gt=0)
