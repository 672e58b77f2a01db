from fastapi import APIRouter, Depends, status

from storage_bucket.dependencies.auth import require_auth
from storage_bucket.dependencies.storage import get_file_service
from storage_bucket.logging_config import setup_logging
from storage_bucket.schemas.common import ErrorResponse
from storage_bucket.schemas.files import MimeTypeCount, StatsResponse
from storage_bucket.services.files import FileService
from storage_bucket.utils.formatting import format_bytes

router = APIRouter(tags=["stats"], dependencies=[Depends(require_auth)])

logger = setup_logging()


@router.get(
    "/stats",
    response_model=StatsResponse,
    status_code=status.HTTP_200_OK,
    responses={500: {"model": ErrorResponse}},
)
def get_stats(service: FileService = Depends(get_file_service)):
    """
    Get storage statistics.

    Returns the number of files, their total size, and the number of files
    per exact MIME type (most common first).
    """
    stats = service.stats()

    logger.info(
        f"Stats retrieved: {stats.total_count} files, {format_bytes(stats.total_size_bytes)}"
    )

    return StatsResponse(
        total_files=stats.total_count,
        total_size=stats.total_size_bytes,
        total_size_formatted=format_bytes(stats.total_size_bytes),
        files_by_type=[
            MimeTypeCount(mime_type=mime_type, count=count)
            for mime_type, count in stats.per_mime_type_counts
        ],
    )
