"""
Abstract base class for storage backends.

This module defines the interface that blob storage backends must implement.
Blobs are addressed by their generated stored name.
"""
from abc import ABC, abstractmethod
from typing import AsyncIterator


class StorageBackend(ABC):
    """
    Abstract base class for storage backends.

    Implementations stream bytes to and from an opaque blob store and enforce
    the maximum blob size while writing.
    """

    max_size_bytes: int

    @abstractmethod
    async def save_file(
        self,
        stored_name: str,
        file_stream: AsyncIterator[bytes],
        content_type: str,
    ) -> str:
        """
        Save a blob to storage.

        Args:
            stored_name: Unique generated name of the blob
            file_stream: Async iterator yielding file chunks
            content_type: MIME type of the file

        Returns:
            Full path of the written blob

        Raises:
            FileSizeExceededError: If the stream exceeds the maximum size
            StorageError: If the write fails; no partial blob is left behind
        """
        pass

    @abstractmethod
    def get_file_path(self, stored_name: str) -> str:
        """
        Get the path for reading a blob.

        Raises:
            BlobNotFoundError: If the blob doesn't exist
        """
        pass

    @abstractmethod
    def open_stream(self, stored_name: str, chunk_size: int = 64 * 1024) -> AsyncIterator[bytes]:
        """
        Iterate over the bytes of a blob.

        Raises:
            BlobNotFoundError: If the blob doesn't exist
        """
        pass

    @abstractmethod
    async def delete_file(self, stored_name: str) -> None:
        """
        Delete a blob from storage.

        Raises:
            BlobNotFoundError: If the blob doesn't exist
            StorageError: If the delete operation fails
        """
        pass

    @abstractmethod
    def file_exists(self, stored_name: str) -> bool:
        """Check if a blob exists in storage."""
        pass
