"""
Storage-specific exceptions.

These exceptions provide detailed error handling for blob storage operations.
"""


class StorageError(IOError):
    """Base exception for storage operations."""

    pass


class FileSizeExceededError(StorageError):
    """Raised when an uploaded stream exceeds the maximum size limit."""

    def __init__(self, file_size: int, max_size: int):
        self.file_size = file_size
        self.max_size = max_size
        super().__init__(
            f"File size ({file_size} bytes) exceeds maximum allowed size ({max_size} bytes)"
        )


class BlobNotFoundError(StorageError):
    """Raised when a requested blob is not present on disk."""

    def __init__(self, stored_name: str):
        self.stored_name = stored_name
        super().__init__(f"Blob not found: {stored_name}")
