"""
Local filesystem storage implementation.

This module provides a local filesystem implementation of the storage backend
with async file operations. All blobs live flat in one upload directory,
named by their stored name.
"""
import os
from pathlib import Path
from typing import AsyncIterator

import aiofiles

from storage_bucket.config import settings
from storage_bucket.storage.base import StorageBackend
from storage_bucket.storage.exceptions import (
    BlobNotFoundError,
    FileSizeExceededError,
    StorageError,
)

CHUNK_SIZE = 64 * 1024  # 64KB


class LocalStorageBackend(StorageBackend):
    """
    Local filesystem storage with async operations.

    Structure: <base_path>/<stored_name>
    """

    def __init__(self, base_path: str | None = None, max_size_bytes: int | None = None):
        """
        Initialize local storage backend.

        Args:
            base_path: Upload directory (default from config)
            max_size_bytes: Maximum blob size in bytes (default from config)
        """
        self.base_path = Path(base_path or settings.UPLOAD_DIR)
        self.max_size_bytes = max_size_bytes if max_size_bytes is not None else settings.MAX_FILE_SIZE

    async def save_file(
        self,
        stored_name: str,
        file_stream: AsyncIterator[bytes],
        content_type: str,
    ) -> str:
        """
        Stream a blob to disk in chunks (async).

        The size limit is checked on every chunk, so an oversized stream is
        rejected as soon as it crosses the limit.

        Args:
            stored_name: Unique generated name of the blob
            file_stream: Async iterator yielding file chunks
            content_type: MIME type of the file

        Returns:
            Full file path where the blob was saved

        Raises:
            FileSizeExceededError: If the stream exceeds the maximum size
            StorageError: If the write fails
        """
        file_path = self._get_file_path(stored_name)
        self._ensure_directory_exists(file_path)

        total_size = 0
        completed = False

        try:
            async with aiofiles.open(file_path, "wb") as f:
                async for chunk in file_stream:
                    total_size += len(chunk)

                    if total_size > self.max_size_bytes:
                        raise FileSizeExceededError(total_size, self.max_size_bytes)

                    await f.write(chunk)
            completed = True

        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to save file {stored_name}: {e}") from e
        finally:
            # Also covers cancellation (client abort) mid-write
            if not completed:
                self._remove_partial(file_path)

        return str(file_path)

    def get_file_path(self, stored_name: str) -> str:
        """
        Get the full path for reading a blob.

        Raises:
            BlobNotFoundError: If the blob doesn't exist
        """
        file_path = self._get_file_path(stored_name)

        if not file_path.is_file():
            raise BlobNotFoundError(stored_name)

        return str(file_path)

    async def open_stream(self, stored_name: str, chunk_size: int = CHUNK_SIZE) -> AsyncIterator[bytes]:
        """
        Read a blob from disk in chunks (async).

        Raises:
            BlobNotFoundError: If the blob doesn't exist
        """
        file_path = self.get_file_path(stored_name)

        try:
            f = await aiofiles.open(file_path, "rb")
        except FileNotFoundError:
            raise BlobNotFoundError(stored_name)

        try:
            while True:
                chunk = await f.read(chunk_size)
                if not chunk:
                    break
                yield chunk
        finally:
            await f.close()

    async def delete_file(self, stored_name: str) -> None:
        """
        Delete a blob from storage.

        Raises:
            BlobNotFoundError: If the blob doesn't exist
            StorageError: If removal fails
        """
        file_path = self._get_file_path(stored_name)

        if not file_path.exists():
            raise BlobNotFoundError(stored_name)

        try:
            os.remove(file_path)
        except OSError as e:
            raise StorageError(f"Failed to delete file {stored_name}: {e}") from e

    def file_exists(self, stored_name: str) -> bool:
        return self._get_file_path(stored_name).is_file()

    def _get_file_path(self, stored_name: str) -> Path:
        # Stored names are generated, never user input; reject separators anyway
        if not stored_name or Path(stored_name).name != stored_name:
            raise StorageError(f"Invalid stored name: {stored_name!r}")
        return self.base_path / stored_name

    def _ensure_directory_exists(self, file_path: Path) -> None:
        file_path.parent.mkdir(parents=True, exist_ok=True)

    def _remove_partial(self, file_path: Path) -> None:
        try:
            if file_path.exists():
                os.remove(file_path)
        except OSError:
            # Best effort; the original error is the one worth reporting
            pass
