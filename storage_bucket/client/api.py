"""
HTTP client for the storage bucket API.

Wraps httpx.AsyncClient with one method per endpoint. Upload methods report
progress as an integer percentage of request body bytes sent.
"""
import mimetypes
import secrets
from pathlib import Path
from typing import AsyncIterator, Callable

import aiofiles
import httpx

from storage_bucket.logging_config import setup_logging

logger = setup_logging()

ProgressCallback = Callable[[int], None]

DEFAULT_TIMEOUT = 30.0
DOWNLOAD_CHUNK_SIZE = 64 * 1024
UPLOAD_CHUNK_SIZE = 64 * 1024

CRLF = b"\r\n"
# HTML5 form encoding of characters that would break the quoted filename
FILENAME_ESCAPES = {'"': "%22", "\r": "%0D", "\n": "%0A"}

# Python keyword -> query parameter of GET /files
FILTER_PARAMS = {
    "search": "search",
    "mime_type": "type",
    "min_size": "minSize",
    "max_size": "maxSize",
    "start_date": "startDate",
    "end_date": "endDate",
}


class BucketClientError(Exception):
    """Non-2xx answer from the bucket API."""

    def __init__(self, status_code: int, code: str | None, message: str):
        self.status_code = status_code
        self.code = code
        self.message = message
        super().__init__(f"{status_code} {code or 'error'}: {message}")


def _guess_type(path: Path) -> str:
    guessed, _ = mimetypes.guess_type(path.name)
    return guessed or "application/octet-stream"


def _quote_filename(name: str) -> str:
    for char, escaped in FILENAME_ESCAPES.items():
        name = name.replace(char, escaped)
    return name


class MultipartUploadStream(httpx.AsyncByteStream):
    """
    multipart/form-data request body read from disk with aiofiles.

    Every file becomes one part under field_name. The total length is known
    up front from the part headers and file sizes, so the request is sent
    with a Content-Length and progress is the share of that length sent.
    """

    def __init__(
        self,
        field_name: str,
        paths: list[Path],
        on_progress: ProgressCallback | None = None,
        chunk_size: int = UPLOAD_CHUNK_SIZE,
    ):
        self.boundary = secrets.token_hex(16)
        self._paths = paths
        self._on_progress = on_progress
        self._chunk_size = chunk_size
        self._sent = 0
        self._last_percent = -1

        self._headers = [
            (
                f"--{self.boundary}\r\n"
                f'Content-Disposition: form-data; name="{field_name}"; '
                f'filename="{_quote_filename(path.name)}"\r\n'
                f"Content-Type: {_guess_type(path)}\r\n\r\n"
            ).encode("utf-8")
            for path in paths
        ]
        self._closing = f"--{self.boundary}--\r\n".encode("ascii")
        self.content_length = len(self._closing) + sum(
            len(header) + path.stat().st_size + len(CRLF)
            for header, path in zip(self._headers, paths)
        )

    @property
    def content_type(self) -> str:
        return f"multipart/form-data; boundary={self.boundary}"

    async def __aiter__(self) -> AsyncIterator[bytes]:
        for header, path in zip(self._headers, self._paths):
            yield self._count(header)
            async with aiofiles.open(path, "rb") as f:
                while True:
                    chunk = await f.read(self._chunk_size)
                    if not chunk:
                        break
                    yield self._count(chunk)
            yield self._count(CRLF)
        yield self._count(self._closing)

    def _count(self, data: bytes) -> bytes:
        self._sent += len(data)
        if self._on_progress is not None and self.content_length > 0:
            percent = min(100, self._sent * 100 // self.content_length)
            # Only report increases
            if percent > self._last_percent:
                self._last_percent = percent
                self._on_progress(percent)
        return data


class BucketClient:
    """
    Async client for one bucket server.

    Use as an async context manager, or call aclose() when done.

    Args:
        base_url: Server root, e.g. http://localhost:3001
        token: Session token from POST /auth/login, when auth is enabled
        timeout: Request timeout in seconds
        transport: Optional httpx transport (httpx.ASGITransport in tests)
    """

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "BucketClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def upload_file(self, path: str | Path, on_progress: ProgressCallback | None = None) -> dict:
        """Upload one file; returns the stored record."""
        return await self._upload("/upload", "file", [Path(path)], on_progress)

    async def upload_files(
        self,
        paths: list[str | Path],
        on_progress: ProgressCallback | None = None,
    ) -> dict:
        """Upload several files in one request; returns stored and failed items."""
        return await self._upload("/upload-multiple", "files", [Path(p) for p in paths], on_progress)

    async def list_files(self, page: int = 1, limit: int = 10, **filters) -> dict:
        """
        List files, newest first.

        Filters: search, mime_type, min_size, max_size, start_date, end_date.
        """
        params = {"page": page, "limit": limit}
        for name, value in filters.items():
            if name not in FILTER_PARAMS:
                raise TypeError(f"Unknown filter: {name}")
            if value is not None:
                params[FILTER_PARAMS[name]] = value

        response = await self._client.get("/files", params=params)
        return self._json(response)

    async def get_file(self, file_id: int) -> dict:
        response = await self._client.get(f"/file/{file_id}")
        return self._json(response)

    async def download(self, file_id: int, dest: str | Path) -> Path:
        """Stream a file's content into dest; returns the written path."""
        dest = Path(dest)
        async with self._client.stream("GET", f"/download/{file_id}") as response:
            if not response.is_success:
                await response.aread()
                self._raise_for_status(response)

            async with aiofiles.open(dest, "wb") as f:
                async for chunk in response.aiter_bytes(DOWNLOAD_CHUNK_SIZE):
                    await f.write(chunk)

        return dest

    async def rename(self, file_id: int, new_name: str) -> dict:
        response = await self._client.put(f"/file/{file_id}", json={"newName": new_name})
        return self._json(response)

    async def delete(self, file_id: int) -> dict:
        response = await self._client.delete(f"/file/{file_id}")
        return self._json(response)

    async def delete_many(self, file_ids: list[int]) -> dict:
        response = await self._client.post("/files/delete", json={"ids": list(file_ids)})
        return self._json(response)

    async def stats(self) -> dict:
        response = await self._client.get("/stats")
        return self._json(response)

    async def _upload(
        self,
        url: str,
        field_name: str,
        paths: list[Path],
        on_progress: ProgressCallback | None,
    ) -> dict:
        body = MultipartUploadStream(field_name, paths, on_progress)
        response = await self._client.post(
            url,
            content=body,
            headers={
                "Content-Type": body.content_type,
                "Content-Length": str(body.content_length),
            },
        )

        result = self._json(response)
        if on_progress is not None:
            on_progress(100)
        return result

    def _json(self, response: httpx.Response) -> dict:
        self._raise_for_status(response)
        return response.json()

    @staticmethod
    def _raise_for_status(response: httpx.Response) -> None:
        if response.is_success:
            return

        code = None
        message = response.reason_phrase
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            code = body.get("code")
            message = body.get("message") or message

        logger.warning(f"{response.request.method} {response.request.url.path} failed: {response.status_code} {message}")
        raise BucketClientError(response.status_code, code, message)
