"""
File lifecycle service.

Read, stream, rename, verify and delete stored files. Delete removes the
blob first (best effort) and then always removes the metadata row.
"""
from dataclasses import dataclass

from storage_bucket.exceptions import (
    BlobMissingError,
    BucketError,
    NotFoundError,
    ValidationError,
)
from storage_bucket.logging_config import setup_logging
from storage_bucket.models.file_record import FileRecord
from storage_bucket.services.hashing import hash_stream
from storage_bucket.services.metadata_store import FileFilters, FileMetadataStore, StorageStats
from storage_bucket.storage.base import StorageBackend
from storage_bucket.storage.exceptions import BlobNotFoundError, StorageError

logger = setup_logging()

MAX_NAME_LENGTH = 255


@dataclass
class DeleteOutcome:
    file_id: int
    success: bool
    error: BucketError | None = None


@dataclass
class VerifyResult:
    record: FileRecord
    actual_hash: str

    @property
    def valid(self) -> bool:
        return self.actual_hash == self.record.content_hash


class FileService:
    def __init__(self, store: FileMetadataStore, storage: StorageBackend):
        self.store = store
        self.storage = storage

    def get(self, file_id: int) -> FileRecord:
        """
        Raises:
            NotFoundError: If no record has that id
        """
        record = self.store.get_by_id(file_id)
        if record is None:
            logger.warning(f"File not found: ID {file_id}")
            raise NotFoundError(file_id)
        return record

    def list_files(
        self,
        filters: FileFilters | None = None,
        page: int = 1,
        page_size: int = 10,
    ) -> tuple[list[FileRecord], int]:
        if page < 1 or page_size < 1:
            raise ValidationError("page and limit must be positive integers")
        return self.store.list_records(filters, page, page_size)

    def get_blob_path(self, file_id: int) -> tuple[FileRecord, str]:
        """
        Resolve the on-disk path of a file for download or preview.

        Raises:
            NotFoundError: If no record has that id
            BlobMissingError: If the record exists but the blob is gone
        """
        record = self.get(file_id)
        try:
            path = self.storage.get_file_path(record.stored_name)
        except (BlobNotFoundError, StorageError):
            logger.error(
                f"File exists in DB but not on disk: {record.storage_path} (ID: {file_id})"
            )
            raise BlobMissingError(file_id, record.storage_path)
        return record, path

    def rename(self, file_id: int, new_name: str | None) -> str:
        """
        Change the display name only; the stored path never changes.

        Raises:
            ValidationError: If the new name is empty or too long
            NotFoundError: If no record has that id
        """
        new_name = (new_name or "").strip()
        if not new_name:
            raise ValidationError("New name is required")
        if len(new_name) > MAX_NAME_LENGTH:
            raise ValidationError(f"New name must be at most {MAX_NAME_LENGTH} characters")

        if not self.store.update_name(file_id, new_name):
            logger.warning(f"Rename failed: File not found (ID: {file_id})")
            raise NotFoundError(file_id)

        logger.info(f"File renamed successfully: ID {file_id} -> {new_name!r}")
        return new_name

    async def delete(self, file_id: int) -> None:
        """
        Remove the blob (best effort), then the metadata row.

        A blob that is already missing or cannot be removed is logged; the
        record is still removed.

        Raises:
            NotFoundError: If no record has that id
        """
        record = self.get(file_id)
        original_name = record.original_name

        try:
            await self.storage.delete_file(record.stored_name)
        except BlobNotFoundError:
            logger.warning(f"File not found on disk during delete: {record.storage_path}")
        except StorageError as e:
            logger.error(f"Failed to delete file from disk: {record.storage_path}: {str(e)}")

        if not self.store.delete(file_id):
            # Removed concurrently between lookup and delete
            raise NotFoundError(file_id)

        logger.info(f"File deleted successfully: {original_name} (ID: {file_id})")

    async def delete_many(self, file_ids: list[int]) -> list[DeleteOutcome]:
        """Apply single delete to each id; duplicates are processed once."""
        outcomes = []
        for file_id in dict.fromkeys(file_ids):
            try:
                await self.delete(file_id)
                outcomes.append(DeleteOutcome(file_id=file_id, success=True))
            except BucketError as e:
                outcomes.append(DeleteOutcome(file_id=file_id, success=False, error=e))
        return outcomes

    async def verify(self, file_id: int) -> VerifyResult:
        """
        Re-hash the blob on disk and compare with the stored digest.

        Raises:
            NotFoundError: If no record has that id
            BlobMissingError: If the blob is gone
        """
        record, _ = self.get_blob_path(file_id)
        try:
            actual_hash = await hash_stream(self.storage.open_stream(record.stored_name))
        except BlobNotFoundError:
            # Deleted between the existence check and the read
            logger.error(f"Blob disappeared during verify: {record.storage_path} (ID: {file_id})")
            raise BlobMissingError(file_id, record.storage_path)
        result = VerifyResult(record=record, actual_hash=actual_hash)
        if not result.valid:
            logger.error(
                f"Integrity check failed for ID {file_id}: "
                f"stored {record.content_hash}, actual {actual_hash}"
            )
        return result

    def stats(self) -> StorageStats:
        return self.store.aggregate_stats()
