"""
File API schemas.

This module defines Pydantic schemas for file-related API requests and
responses. Field names are snake_case in Python and camelCase on the wire.
"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer
from pydantic.alias_generators import to_camel

from storage_bucket.utils.datetime import ensure_aware


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FileRecordResponse(CamelModel):
    """Metadata of one stored file."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
        json_schema_extra={
            "examples": [
                {
                    "id": 1,
                    "storedName": "1760781600000-a3b8f2d4e1c9.txt",
                    "originalName": "a.txt",
                    "size": 10,
                    "mimeType": "text/plain",
                    "hash": "9f86d081884c7d659a2feaa0c55ad015a3bf4f1b2b0b822cd15d6c15b0f00a08",
                    "uploadTimestamp": "2026-10-18T10:00:00Z",
                }
            ]
        },
    )

    id: int
    """Record id assigned by the store."""

    stored_name: str
    """Generated on-disk filename."""

    original_name: str
    """Display name."""

    size: int = Field(validation_alias="size_bytes")
    """Size in bytes."""

    mime_type: str
    """Declared content type."""

    hash: str = Field(validation_alias="content_hash")
    """SHA-256 hex digest of the content."""

    upload_timestamp: datetime
    """Creation time (UTC)."""

    @field_serializer("upload_timestamp")
    def _serialize_timestamp(self, value: datetime) -> str:
        return ensure_aware(value).isoformat().replace("+00:00", "Z")


class UploadFailureResponse(CamelModel):
    index: int
    """Position of the item in the submitted batch (0-based)."""

    original_name: str
    code: str
    message: str


class MultipleUploadResponse(CamelModel):
    success: bool
    """True when every item was stored."""

    files: List[FileRecordResponse]
    count: int
    failed: List[UploadFailureResponse]
    failed_count: int


class Pagination(CamelModel):
    page: int
    limit: int
    total: int
    total_pages: int


class FileListResponse(CamelModel):
    files: List[FileRecordResponse]
    pagination: Pagination


class RenameRequest(CamelModel):
    new_name: Optional[str] = None


class RenameResponse(CamelModel):
    success: bool = True
    message: str = "File renamed successfully"
    new_name: str


class DeleteResponse(CamelModel):
    success: bool = True
    message: str = "File deleted successfully"


class BulkDeleteRequest(CamelModel):
    ids: List[int]


class BulkDeleteResult(CamelModel):
    id: int
    success: bool
    code: Optional[str] = None
    message: Optional[str] = None


class BulkDeleteResponse(CamelModel):
    success: bool
    """True when every id was deleted."""

    results: List[BulkDeleteResult]
    deleted_count: int
    failed_count: int


class VerifyResponse(CamelModel):
    id: int
    hash: str
    actual_hash: str
    valid: bool


class MimeTypeCount(CamelModel):
    mime_type: str
    count: int


class StatsResponse(CamelModel):
    total_files: int
    total_size: int
    total_size_formatted: str
    files_by_type: List[MimeTypeCount]
