import resource
import sys
import time
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request, status

from storage_bucket.config import Settings
from storage_bucket.dependencies.settings import get_settings
from storage_bucket.schemas.common import HealthResponse, MemoryUsage
from storage_bucket.utils.formatting import format_bytes

router = APIRouter(tags=["system"])


def memory_usage() -> MemoryUsage | None:
    """Peak resident set size of this process."""
    try:
        max_rss = resource.getrusage(resource.RUSAGE_SELF).ru_maxrss
    except (ValueError, OSError):
        return None
    # ru_maxrss is kilobytes on Linux, bytes on macOS
    if sys.platform != "darwin":
        max_rss *= 1024
    return MemoryUsage(max_rss=max_rss, max_rss_formatted=format_bytes(max_rss))


@router.get("/", status_code=status.HTTP_200_OK)
def api_index(settings: Settings = Depends(get_settings)):
    """API name, version and endpoint catalogue."""
    return {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "description": "A local file storage API for uploading, managing, and retrieving files",
        "limits": {
            "maxFileSize": format_bytes(settings.MAX_FILE_SIZE),
            "maxFilesPerUpload": settings.MAX_FILES_PER_UPLOAD,
        },
        "endpoints": {
            "POST /upload": "Upload a single file (multipart field 'file')",
            "POST /upload-multiple": "Upload multiple files (multipart field 'files')",
            "GET /files": "List files: ?page&limit&search&type&minSize&maxSize&startDate&endDate",
            "GET /file/{id}": "Get file metadata",
            "GET /file/{id}/verify": "Re-hash the stored file and compare with its recorded hash",
            "PUT /file/{id}": "Rename a file: {\"newName\": \"...\"}",
            "DELETE /file/{id}": "Delete a file",
            "POST /files/delete": "Delete several files: {\"ids\": [...]}",
            "GET /download/{id}": "Download a file",
            "GET /preview/{id}": "View a file inline",
            "GET /stats": "Storage statistics",
            "GET /health": "Health check",
        },
    }


@router.get("/health", response_model=HealthResponse, status_code=status.HTTP_200_OK)
def health(request: Request, settings: Settings = Depends(get_settings)):
    """Liveness check with uptime and peak memory."""
    started_at = getattr(request.app.state, "started_at", None)
    uptime = time.monotonic() - started_at if started_at is not None else 0.0
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        uptime=round(uptime, 3),
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT,
        memory=memory_usage(),
    )
