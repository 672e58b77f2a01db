"""
Storage and service dependency injection for FastAPI.

This module provides FastAPI dependency functions for injecting the storage
backend, the metadata store and the services built on them into endpoints.
"""
from fastapi import Depends
from sqlalchemy.orm import Session

from storage_bucket.config import Settings
from storage_bucket.database import get_db
from storage_bucket.dependencies.settings import get_settings
from storage_bucket.services.files import FileService
from storage_bucket.services.metadata_store import FileMetadataStore
from storage_bucket.services.upload import UploadService
from storage_bucket.storage.base import StorageBackend
from storage_bucket.storage.local import LocalStorageBackend


def get_storage(settings: Settings = Depends(get_settings)) -> StorageBackend:
    """
    Return the blob storage backend for the configured upload directory.

    MAX_FILE_SIZE from the settings is enforced by the backend while writing.
    """
    return LocalStorageBackend(
        base_path=settings.UPLOAD_DIR,
        max_size_bytes=settings.MAX_FILE_SIZE,
    )


def get_metadata_store(db: Session = Depends(get_db)) -> FileMetadataStore:
    return FileMetadataStore(db)


def get_file_service(
    store: FileMetadataStore = Depends(get_metadata_store),
    storage: StorageBackend = Depends(get_storage),
) -> FileService:
    return FileService(store, storage)


def get_upload_service(
    store: FileMetadataStore = Depends(get_metadata_store),
    storage: StorageBackend = Depends(get_storage),
    settings: Settings = Depends(get_settings),
) -> UploadService:
    return UploadService(store, storage, max_files=settings.MAX_FILES_PER_UPLOAD)
