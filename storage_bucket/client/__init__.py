from storage_bucket.client.api import BucketClient, BucketClientError, MultipartUploadStream
from storage_bucket.client.upload_queue import (
    DEFAULT_CONCURRENCY,
    InvalidTransitionError,
    UploadQueue,
    UploadStatus,
    UploadTask,
)

__all__ = [
    "BucketClient",
    "BucketClientError",
    "MultipartUploadStream",
    "DEFAULT_CONCURRENCY",
    "InvalidTransitionError",
    "UploadQueue",
    "UploadStatus",
    "UploadTask",
]
