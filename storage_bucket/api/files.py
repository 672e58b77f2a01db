"""
File API endpoints.

This module provides the REST surface of the bucket: single and batch upload,
filtered listing, metadata lookup, download/preview streaming, integrity
verification, rename, delete and bulk delete.
"""
import math
from typing import AsyncIterator, List, Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile, status
from fastapi.responses import FileResponse

from storage_bucket.dependencies.auth import require_auth
from storage_bucket.dependencies.storage import get_file_service, get_upload_service
from storage_bucket.exceptions import ValidationError
from storage_bucket.logging_config import setup_logging
from storage_bucket.schemas.common import ErrorResponse
from storage_bucket.schemas.files import (
    BulkDeleteRequest,
    BulkDeleteResponse,
    BulkDeleteResult,
    DeleteResponse,
    FileListResponse,
    FileRecordResponse,
    MultipleUploadResponse,
    Pagination,
    RenameRequest,
    RenameResponse,
    UploadFailureResponse,
    VerifyResponse,
)
from storage_bucket.services.files import FileService
from storage_bucket.services.metadata_store import FileFilters
from storage_bucket.services.upload import UploadService, UploadSource
from storage_bucket.storage.local import CHUNK_SIZE
from storage_bucket.utils.datetime import parse_bound

router = APIRouter(tags=["files"], dependencies=[Depends(require_auth)])

logger = setup_logging()

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


async def _iter_upload(upload: UploadFile) -> AsyncIterator[bytes]:
    while True:
        chunk = await upload.read(CHUNK_SIZE)
        if not chunk:
            break
        yield chunk


def _to_source(upload: UploadFile) -> UploadSource:
    return UploadSource(
        filename=upload.filename or "",
        content_type=upload.content_type,
        stream=_iter_upload(upload),
        size=upload.size,
    )


def _parse_date(value: Optional[str], name: str, end_of_day: bool = False):
    try:
        return parse_bound(value, end_of_day=end_of_day)
    except ValueError:
        raise ValidationError(f"Invalid {name}: expected an ISO date or datetime")


@router.post(
    "/upload",
    response_model=FileRecordResponse,
    status_code=status.HTTP_200_OK,
    responses=ERROR_RESPONSES,
)
async def upload_file(
    file: Optional[UploadFile] = File(None, description="File to store"),
    service: UploadService = Depends(get_upload_service),
):
    """
    Upload a single file.

    **Request (multipart/form-data):**
    - file: File data

    **Example:**
    ```bash
    curl -X POST -F 'file=@example.jpg' http://localhost:3001/upload
    ```
    """
    if file is None:
        logger.warning("Upload failed: No file provided")
        raise ValidationError("No file uploaded")

    try:
        record = await service.upload_one(_to_source(file))
    finally:
        await file.close()

    return FileRecordResponse.model_validate(record)


@router.post(
    "/upload-multiple",
    response_model=MultipleUploadResponse,
    status_code=status.HTTP_200_OK,
    responses=ERROR_RESPONSES,
)
async def upload_multiple_files(
    files: Optional[List[UploadFile]] = File(None, description="Files to store"),
    service: UploadService = Depends(get_upload_service),
):
    """
    Upload several files in one request.

    Every file is stored independently: a failing item does not undo the
    others. The response lists stored files and failed items.

    **Example:**
    ```bash
    curl -X POST -F 'files=@file1.jpg' -F 'files=@file2.pdf' http://localhost:3001/upload-multiple
    ```
    """
    files = files or []
    try:
        result = await service.upload_batch([_to_source(upload) for upload in files])
    finally:
        for upload in files:
            await upload.close()

    return MultipleUploadResponse(
        success=not result.failures,
        files=[FileRecordResponse.model_validate(record) for record in result.records],
        count=len(result.records),
        failed=[
            UploadFailureResponse(
                index=failure.index,
                original_name=failure.original_name,
                code=failure.error.code,
                message=failure.error.message,
            )
            for failure in result.failures
        ],
        failed_count=len(result.failures),
    )


@router.get(
    "/files",
    response_model=FileListResponse,
    status_code=status.HTTP_200_OK,
    responses=ERROR_RESPONSES,
)
def list_files(
    page: int = Query(1, ge=1, description="1-indexed page number."),
    limit: int = Query(10, ge=1, le=1000, description="Files per page."),
    search: Optional[str] = Query(None, description="Substring of the original or stored name."),
    mime_type: Optional[str] = Query(None, alias="type", description="Substring of the MIME type."),
    min_size: Optional[int] = Query(None, alias="minSize", ge=0),
    max_size: Optional[int] = Query(None, alias="maxSize", ge=0),
    start_date: Optional[str] = Query(None, alias="startDate", description="ISO date or datetime."),
    end_date: Optional[str] = Query(None, alias="endDate", description="ISO date or datetime."),
    service: FileService = Depends(get_file_service),
):
    """
    List files, newest first, with optional filters combined with AND.

    A date-only endDate includes the whole day.
    """
    filters = FileFilters(
        search=search,
        mime_type=mime_type,
        min_size=min_size,
        max_size=max_size,
        start_date=_parse_date(start_date, "startDate"),
        end_date=_parse_date(end_date, "endDate", end_of_day=True),
    )

    records, total = service.list_files(filters, page, limit)

    logger.info(
        f"Files list retrieved: {len(records)} files "
        f"(page {page}/{math.ceil(total / limit)}, total {total})"
    )

    return FileListResponse(
        files=[FileRecordResponse.model_validate(record) for record in records],
        pagination=Pagination(
            page=page,
            limit=limit,
            total=total,
            total_pages=math.ceil(total / limit),
        ),
    )


@router.post(
    "/files/delete",
    response_model=BulkDeleteResponse,
    status_code=status.HTTP_200_OK,
    responses=ERROR_RESPONSES,
)
async def delete_multiple_files(
    payload: BulkDeleteRequest,
    service: FileService = Depends(get_file_service),
):
    """Delete several files; the response reports the outcome per id."""
    if not payload.ids:
        raise ValidationError("No file ids provided")

    outcomes = await service.delete_many(payload.ids)
    results = [
        BulkDeleteResult(
            id=outcome.file_id,
            success=outcome.success,
            code=outcome.error.code if outcome.error else None,
            message=outcome.error.message if outcome.error else None,
        )
        for outcome in outcomes
    ]
    deleted_count = sum(1 for outcome in outcomes if outcome.success)

    logger.info(f"Bulk delete: {deleted_count}/{len(outcomes)} files deleted")

    return BulkDeleteResponse(
        success=deleted_count == len(outcomes),
        results=results,
        deleted_count=deleted_count,
        failed_count=len(outcomes) - deleted_count,
    )


@router.get(
    "/file/{file_id}",
    response_model=FileRecordResponse,
    status_code=status.HTTP_200_OK,
    responses=ERROR_RESPONSES,
)
def get_file(
    file_id: int,
    service: FileService = Depends(get_file_service),
):
    """Get file metadata by id."""
    return FileRecordResponse.model_validate(service.get(file_id))


@router.get(
    "/file/{file_id}/verify",
    response_model=VerifyResponse,
    status_code=status.HTTP_200_OK,
    responses=ERROR_RESPONSES,
)
async def verify_file(
    file_id: int,
    service: FileService = Depends(get_file_service),
):
    """Re-hash the stored blob and compare it with the recorded hash."""
    result = await service.verify(file_id)
    return VerifyResponse(
        id=result.record.id,
        hash=result.record.content_hash,
        actual_hash=result.actual_hash,
        valid=result.valid,
    )


@router.put(
    "/file/{file_id}",
    response_model=RenameResponse,
    status_code=status.HTTP_200_OK,
    responses=ERROR_RESPONSES,
)
def rename_file(
    file_id: int,
    payload: RenameRequest,
    service: FileService = Depends(get_file_service),
):
    """Rename a file. Only the display name changes; the blob stays in place."""
    new_name = service.rename(file_id, payload.new_name)
    return RenameResponse(new_name=new_name)


@router.delete(
    "/file/{file_id}",
    response_model=DeleteResponse,
    status_code=status.HTTP_200_OK,
    responses=ERROR_RESPONSES,
)
async def delete_file(
    file_id: int,
    service: FileService = Depends(get_file_service),
):
    """Delete a file from disk and from the metadata store."""
    await service.delete(file_id)
    return DeleteResponse()


def _blob_response(service: FileService, file_id: int, disposition: str) -> FileResponse:
    record, path = service.get_blob_path(file_id)
    logger.info(f"{disposition.capitalize()} started: {record.original_name} (ID: {file_id})")

    # FileResponse streams the file in chunks and stops when the client disconnects
    return FileResponse(
        path=path,
        filename=record.original_name,
        media_type=record.mime_type,
        content_disposition_type=disposition,
    )


@router.get(
    "/download/{file_id}",
    status_code=status.HTTP_200_OK,
    responses={404: {"model": ErrorResponse}},
)
def download_file(
    file_id: int,
    service: FileService = Depends(get_file_service),
):
    """Stream a file with an attachment disposition (triggers a browser download)."""
    return _blob_response(service, file_id, "attachment")


@router.get(
    "/preview/{file_id}",
    status_code=status.HTTP_200_OK,
    responses={404: {"model": ErrorResponse}},
)
def preview_file(
    file_id: int,
    service: FileService = Depends(get_file_service),
):
    """Stream a file with an inline disposition for in-browser viewing."""
    return _blob_response(service, file_id, "inline")
