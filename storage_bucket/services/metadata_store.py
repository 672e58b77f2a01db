"""
File metadata store.

This module provides the single-table persistence layer for FileRecord rows:
insert, lookup, filtered and paginated listing, rename, delete and aggregate
statistics. Listing filters are built from a mapping of filter keys to
parameterized SQLAlchemy clauses.
"""
from collections.abc import Callable
from dataclasses import dataclass, fields
from datetime import datetime
from typing import Any

from sqlalchemy import ColumnElement, delete, func, or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from storage_bucket.exceptions import StoreError
from storage_bucket.logging_config import setup_logging
from storage_bucket.models.file_record import FileRecord

logger = setup_logging()


@dataclass
class FileFilters:
    """Conjunction of listing filters; None means "not filtered"."""

    search: str | None = None
    mime_type: str | None = None
    min_size: int | None = None
    max_size: int | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None


@dataclass
class StorageStats:
    """Aggregate summary over all records."""

    total_count: int
    total_size_bytes: int
    per_mime_type_counts: list[tuple[str, int]]


def _search_clause(value: str) -> ColumnElement[bool]:
    return or_(
        FileRecord.original_name.icontains(value, autoescape=True),
        FileRecord.stored_name.icontains(value, autoescape=True),
    )


# Each recognized filter key maps to a parameterized clause
FILTER_CLAUSES: dict[str, Callable[[Any], ColumnElement[bool]]] = {
    "search": _search_clause,
    "mime_type": lambda value: FileRecord.mime_type.icontains(value, autoescape=True),
    "min_size": lambda value: FileRecord.size_bytes >= value,
    "max_size": lambda value: FileRecord.size_bytes <= value,
    "start_date": lambda value: FileRecord.upload_timestamp >= value,
    "end_date": lambda value: FileRecord.upload_timestamp <= value,
}


def build_conditions(filters: FileFilters | None) -> list[ColumnElement[bool]]:
    """Translate supplied filters into a list of clauses to be AND-ed."""
    if filters is None:
        return []

    conditions = []
    for field in fields(filters):
        value = getattr(filters, field.name)
        if value is None or value == "":
            continue
        conditions.append(FILTER_CLAUSES[field.name](value))
    return conditions


class FileMetadataStore:
    """
    Durable table of FileRecord keyed by auto-assigned id.

    Every method wraps database failures in StoreError after rolling back
    the session, so callers never observe a half-applied change.
    """

    def __init__(self, db: Session):
        self.db = db

    def insert(
        self,
        stored_name: str,
        original_name: str,
        storage_path: str,
        size_bytes: int,
        mime_type: str,
        content_hash: str,
    ) -> FileRecord:
        """
        Insert a record; the store assigns id and upload timestamp.

        Raises:
            StoreError: On constraint violation or database failure
        """
        record = FileRecord(
            stored_name=stored_name,
            original_name=original_name,
            storage_path=storage_path,
            size_bytes=size_bytes,
            mime_type=mime_type,
            content_hash=content_hash,
        )
        try:
            self.db.add(record)
            self.db.commit()
            self.db.refresh(record)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to insert file record {stored_name}: {str(e)}", exc_info=True)
            raise StoreError("Failed to save file metadata") from e
        return record

    def get_by_id(self, file_id: int) -> FileRecord | None:
        try:
            return self.db.get(FileRecord, file_id)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to fetch file record {file_id}: {str(e)}", exc_info=True)
            raise StoreError("Failed to read file metadata") from e

    def list_records(
        self,
        filters: FileFilters | None = None,
        page: int = 1,
        page_size: int = 10,
    ) -> tuple[list[FileRecord], int]:
        """
        List records matching all filters, newest first.

        Args:
            filters: Filters combined with AND
            page: 1-indexed page number
            page_size: Maximum number of records returned

        Returns:
            (records on the page, total count of the filtered set)
        """
        conditions = build_conditions(filters)
        offset = (page - 1) * page_size

        try:
            total = self.db.execute(
                select(func.count(FileRecord.id)).where(*conditions)
            ).scalar_one()

            records = self.db.execute(
                select(FileRecord)
                .where(*conditions)
                .order_by(FileRecord.upload_timestamp.desc(), FileRecord.id.desc())
                .limit(page_size)
                .offset(offset)
            ).scalars().all()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to list file records: {str(e)}", exc_info=True)
            raise StoreError("Failed to list files") from e

        return list(records), total

    def update_name(self, file_id: int, new_name: str) -> bool:
        """Rename a record; returns False when no record has that id."""
        try:
            result = self.db.execute(
                update(FileRecord)
                .where(FileRecord.id == file_id)
                .values(original_name=new_name)
            )
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to rename file record {file_id}: {str(e)}", exc_info=True)
            raise StoreError("Failed to rename file") from e
        return result.rowcount > 0

    def delete(self, file_id: int) -> bool:
        """Delete a record; returns whether it existed."""
        try:
            result = self.db.execute(delete(FileRecord).where(FileRecord.id == file_id))
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to delete file record {file_id}: {str(e)}", exc_info=True)
            raise StoreError("Failed to delete file metadata") from e
        return result.rowcount > 0

    def aggregate_stats(self) -> StorageStats:
        """Count, total size, and per exact mime type counts over all records."""
        try:
            total_count, total_size = self.db.execute(
                select(
                    func.count(FileRecord.id),
                    func.coalesce(func.sum(FileRecord.size_bytes), 0),
                )
            ).one()

            count_column = func.count(FileRecord.id)
            per_type = self.db.execute(
                select(FileRecord.mime_type, count_column)
                .group_by(FileRecord.mime_type)
                .order_by(count_column.desc(), FileRecord.mime_type)
            ).all()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to aggregate file stats: {str(e)}", exc_info=True)
            raise StoreError("Failed to compute statistics") from e

        return StorageStats(
            total_count=total_count,
            total_size_bytes=int(total_size),
            per_mime_type_counts=[(mime_type, count) for mime_type, count in per_type],
        )
