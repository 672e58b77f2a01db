from storage_bucket.services.upload import UploadSource


async def iter_chunks(data: bytes, chunk_size: int = 4):
    for start in range(0, len(data), chunk_size):
        yield data[start:start + chunk_size]


async def failing_stream(data: bytes, fail_after: int = 1):
    """Yield some chunks, then fail like a dropped client connection."""
    for index, chunk in enumerate([data[i:i + 4] for i in range(0, len(data), 4)]):
        if index >= fail_after:
            raise ConnectionResetError("client disconnected")
        yield chunk


def make_source(name: str, data: bytes, content_type: str | None = "text/plain", declare_size: bool = False):
    return UploadSource(
        filename=name,
        content_type=content_type,
        stream=iter_chunks(data),
        size=len(data) if declare_size else None,
    )
