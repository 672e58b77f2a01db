"""
Domain exceptions raised at the operation boundary.

Each exception carries a machine-readable code and the HTTP status the API
layer answers with. Lower-level storage and database failures are translated
into these before they reach a route.
"""
from fastapi import status


class BucketError(Exception):
    """Base exception for storage bucket operations."""

    code = "error"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def extra(self) -> dict:
        """Additional fields merged into the error response body."""
        return {}


class ValidationError(BucketError):
    """Bad or missing input that the user can correct."""

    code = "validation_error"
    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(BucketError):
    """Requested record does not exist."""

    code = "not_found"
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, file_id: int, message: str = "File not found"):
        self.file_id = file_id
        super().__init__(message)


class BlobMissingError(NotFoundError):
    """Record exists but its blob is gone from disk."""

    def __init__(self, file_id: int, storage_path: str):
        self.storage_path = storage_path
        super().__init__(file_id, "File not found on disk")


class LimitExceededError(BucketError):
    """Upload size or count over the configured bound."""

    code = "limit_exceeded"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, limit_name: str, limit: int, limit_formatted: str | None = None):
        self.limit_name = limit_name
        self.limit = limit
        self.limit_formatted = limit_formatted
        super().__init__(message)

    def extra(self) -> dict:
        return {self.limit_name: self.limit_formatted or self.limit}


class AuthenticationError(BucketError):
    """Missing or invalid dashboard credentials."""

    code = "unauthorized"
    status_code = status.HTTP_401_UNAUTHORIZED


class StoreError(BucketError):
    """Metadata store failure (constraint or database I/O)."""

    code = "store_error"


class StorageIOError(BucketError):
    """Disk failure while writing or reading a blob."""

    code = "io_error"
