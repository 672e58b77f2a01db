"""
Storage abstraction layer for blob operations.

This package provides a backend interface for blob storage and its local
filesystem implementation.
"""

from storage_bucket.storage.base import StorageBackend
from storage_bucket.storage.local import LocalStorageBackend
from storage_bucket.storage.exceptions import (
    BlobNotFoundError,
    FileSizeExceededError,
    StorageError,
)

__all__ = [
    "StorageBackend",
    "LocalStorageBackend",
    "BlobNotFoundError",
    "FileSizeExceededError",
    "StorageError",
]
