"""File catalog: metadata records and the access-filtered listing."""

from shared.files.models import FileFilter, FileRecord, FileType, SortSpec, get_file_type

__all__ = [
    "FileFilter",
    "FileRecord",
    "FileType",
    "SortSpec",
    "get_file_type",
]
