"""
File record database model.

This module defines the FileRecord model for storing metadata of uploaded
blobs: generated on-disk name, display name, size, content type, upload
timestamp and content hash.
"""
from datetime import datetime, timezone

from sqlalchemy import BigInteger, DateTime, String, func
from sqlalchemy.orm import Mapped, mapped_column

from storage_bucket.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class FileRecord(Base):
    """
    Metadata row describing one stored blob.

    Attributes:
        id: Primary key, assigned on insert
        stored_name: Generated unique on-disk filename
        original_name: User-supplied display name (mutable via rename)
        storage_path: Path of the blob on disk
        size_bytes: Byte length at upload completion
        mime_type: Client-declared content type
        upload_timestamp: Creation time (naive UTC)
        content_hash: SHA-256 hex digest of the full content
    """

    __tablename__ = "files"

    # sqlite_autoincrement: ids are never reused after deletes
    __table_args__ = {"sqlite_autoincrement": True}

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    stored_name: Mapped[str] = mapped_column(String(255), unique=True)
    original_name: Mapped[str] = mapped_column(String(255))
    storage_path: Mapped[str] = mapped_column(String(1024))
    size_bytes: Mapped[int] = mapped_column(BigInteger)
    mime_type: Mapped[str] = mapped_column(String(255))
    upload_timestamp: Mapped[datetime] = mapped_column(
        DateTime, default=_utcnow, server_default=func.now(), index=True
    )
    content_hash: Mapped[str] = mapped_column(String(64))

    def __repr__(self) -> str:
        return (
            f"<FileRecord(id={self.id}, stored_name={self.stored_name}, "
            f"original_name={self.original_name})>"
        )
