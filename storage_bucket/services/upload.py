"""
Upload pipeline service.

Streams each uploaded file to a unique path while hashing it in the same
pass, and registers the metadata record only after the blob is completely on
disk. Batch uploads process every item independently and report partial
success.
"""
import mimetypes
import time
from dataclasses import dataclass, field
from pathlib import PurePath
from typing import AsyncIterator

from storage_bucket.exceptions import (
    BucketError,
    LimitExceededError,
    StorageIOError,
    StoreError,
    ValidationError,
)
from storage_bucket.logging_config import setup_logging
from storage_bucket.models.file_record import FileRecord
from storage_bucket.services.hashing import ContentHasher
from storage_bucket.services.metadata_store import FileMetadataStore
from storage_bucket.storage.base import StorageBackend
from storage_bucket.storage.exceptions import (
    BlobNotFoundError,
    FileSizeExceededError,
    StorageError,
)
from storage_bucket.utils.formatting import format_bytes
from storage_bucket.utils.ids import generate_stored_name

logger = setup_logging()

DEFAULT_CONTENT_TYPE = "application/octet-stream"


@dataclass
class UploadSource:
    """One named byte stream offered for upload."""

    filename: str
    content_type: str | None
    stream: AsyncIterator[bytes]
    size: int | None = None  # declared size, when the decoder knows it up front


@dataclass
class UploadFailure:
    """A batch item that was not stored."""

    index: int
    original_name: str
    error: BucketError


@dataclass
class BatchUploadResult:
    records: list[FileRecord] = field(default_factory=list)
    failures: list[UploadFailure] = field(default_factory=list)


def display_name(filename: str | None) -> str:
    """Strip any client-side directory components from an uploaded filename."""
    if not filename:
        return ""
    return PurePath(filename.replace("\\", "/")).name.strip()


def resolve_content_type(filename: str, declared: str | None) -> str:
    if declared:
        return declared
    guessed, _ = mimetypes.guess_type(filename)
    return guessed or DEFAULT_CONTENT_TYPE


class UploadService:
    """
    Write-then-register upload pipeline.

    Args:
        store: Metadata store receiving one insert per stored blob
        storage: Blob storage; its max_size_bytes is the per-file limit
        max_files: Maximum number of files accepted in one batch
    """

    def __init__(self, store: FileMetadataStore, storage: StorageBackend, max_files: int):
        self.store = store
        self.storage = storage
        self.max_files = max_files

    def _size_limit_error(self) -> LimitExceededError:
        max_size = self.storage.max_size_bytes
        return LimitExceededError(
            f"File too large. Maximum size is {format_bytes(max_size)}",
            limit_name="maxSize",
            limit=max_size,
            limit_formatted=format_bytes(max_size),
        )

    async def upload_one(self, source: UploadSource) -> FileRecord:
        """
        Store one stream and register its metadata.

        Raises:
            ValidationError: If no filename was supplied
            LimitExceededError: If the stream exceeds the size limit
            StorageIOError: If writing the blob fails
            StoreError: If the metadata insert fails (the blob is removed)
        """
        start_time = time.time()
        original_name = display_name(source.filename)
        if not original_name:
            raise ValidationError("No file uploaded")

        if source.size is not None and source.size > self.storage.max_size_bytes:
            logger.warning(
                f"Upload rejected before write: {original_name} "
                f"({format_bytes(source.size)}) exceeds {format_bytes(self.storage.max_size_bytes)}"
            )
            raise self._size_limit_error()

        content_type = resolve_content_type(original_name, source.content_type)
        stored_name = generate_stored_name(original_name)
        hasher = ContentHasher()

        # 1. Stream to disk, hashing in the same pass
        try:
            storage_path = await self.storage.save_file(
                stored_name, hasher.tee(source.stream), content_type
            )
        except FileSizeExceededError as e:
            logger.warning(f"Upload rejected: {original_name}: {str(e)}")
            raise self._size_limit_error() from e
        except StorageError as e:
            logger.error(f"Failed to write upload {original_name}: {str(e)}", exc_info=True)
            raise StorageIOError("Failed to store file") from e

        # 2. Register metadata only once the blob is complete
        try:
            record = self.store.insert(
                stored_name=stored_name,
                original_name=original_name,
                storage_path=storage_path,
                size_bytes=hasher.size,
                mime_type=content_type,
                content_hash=hasher.hexdigest(),
            )
        except StoreError:
            await self._discard_blob(stored_name)
            raise

        duration_ms = int((time.time() - start_time) * 1000)
        logger.info(
            f"Upload successful: {original_name} (ID: {record.id}, "
            f"{format_bytes(record.size_bytes)}) in {duration_ms}ms"
        )
        return record

    async def upload_batch(self, sources: list[UploadSource]) -> BatchUploadResult:
        """
        Store each stream independently; no batch-wide rollback.

        Raises:
            ValidationError: If the batch is empty
            LimitExceededError: If the batch has more than max_files items
        """
        if not sources:
            raise ValidationError("No files uploaded")

        if len(sources) > self.max_files:
            logger.warning(f"Batch rejected: {len(sources)} files, limit {self.max_files}")
            raise LimitExceededError(
                f"Too many files. Maximum is {self.max_files} per upload",
                limit_name="maxFiles",
                limit=self.max_files,
            )

        result = BatchUploadResult()
        for index, source in enumerate(sources):
            try:
                result.records.append(await self.upload_one(source))
            except BucketError as e:
                result.failures.append(
                    UploadFailure(
                        index=index,
                        original_name=display_name(source.filename),
                        error=e,
                    )
                )

        logger.info(
            f"Batch upload finished: {len(result.records)} stored, "
            f"{len(result.failures)} failed"
        )
        return result

    async def _discard_blob(self, stored_name: str) -> None:
        try:
            await self.storage.delete_file(stored_name)
        except BlobNotFoundError:
            pass
        except StorageError as e:
            # Orphan blob without a record; reportable, not fatal
            logger.error(f"Failed to remove orphan blob {stored_name}: {str(e)}")
