"""
Unit tests for LocalStorageBackend.
"""
import pytest

from storage_bucket.storage.exceptions import BlobNotFoundError, FileSizeExceededError, StorageError
from storage_bucket.storage.local import LocalStorageBackend
from tests.helpers import failing_stream, iter_chunks


@pytest.mark.asyncio
async def test_save_file_writes_flat_blob(tmp_path):
    storage = LocalStorageBackend(base_path=str(tmp_path), max_size_bytes=100)

    path = await storage.save_file("123-abc.txt", iter_chunks(b"0123456789"), "text/plain")

    assert path == str(tmp_path / "123-abc.txt")
    assert (tmp_path / "123-abc.txt").read_bytes() == b"0123456789"
    assert storage.file_exists("123-abc.txt")


@pytest.mark.asyncio
async def test_save_file_size_exceeded_removes_partial_file(tmp_path):
    """Test that oversized streams are rejected and leave nothing on disk."""
    storage = LocalStorageBackend(base_path=str(tmp_path), max_size_bytes=8)

    with pytest.raises(FileSizeExceededError) as exc_info:
        await storage.save_file("big.bin", iter_chunks(b"x" * 20), "application/octet-stream")

    assert exc_info.value.max_size == 8
    assert not (tmp_path / "big.bin").exists()


@pytest.mark.asyncio
async def test_save_file_exactly_at_limit_is_accepted(tmp_path):
    storage = LocalStorageBackend(base_path=str(tmp_path), max_size_bytes=8)

    await storage.save_file("edge.bin", iter_chunks(b"x" * 8), "application/octet-stream")

    assert (tmp_path / "edge.bin").stat().st_size == 8


@pytest.mark.asyncio
async def test_save_file_stream_failure_wrapped_and_cleaned_up(tmp_path):
    storage = LocalStorageBackend(base_path=str(tmp_path), max_size_bytes=100)

    with pytest.raises(StorageError):
        await storage.save_file("broken.txt", failing_stream(b"0123456789abcdef"), "text/plain")

    assert not (tmp_path / "broken.txt").exists()


@pytest.mark.asyncio
async def test_open_stream_reads_back_content(tmp_path):
    storage = LocalStorageBackend(base_path=str(tmp_path), max_size_bytes=100)
    await storage.save_file("r.txt", iter_chunks(b"read me back"), "text/plain")

    chunks = [chunk async for chunk in storage.open_stream("r.txt", chunk_size=5)]

    assert b"".join(chunks) == b"read me back"


def test_get_file_path_missing_blob(tmp_path):
    storage = LocalStorageBackend(base_path=str(tmp_path))

    with pytest.raises(BlobNotFoundError):
        storage.get_file_path("missing.txt")


@pytest.mark.asyncio
async def test_delete_file(tmp_path):
    storage = LocalStorageBackend(base_path=str(tmp_path), max_size_bytes=100)
    await storage.save_file("d.txt", iter_chunks(b"bye"), "text/plain")

    await storage.delete_file("d.txt")

    assert not storage.file_exists("d.txt")
    with pytest.raises(BlobNotFoundError):
        await storage.delete_file("d.txt")


@pytest.mark.parametrize("name", ["../escape.txt", "nested/name.txt", ""])
def test_stored_name_with_path_components_rejected(tmp_path, name):
    storage = LocalStorageBackend(base_path=str(tmp_path))

    with pytest.raises(StorageError):
        storage.get_file_path(name)


@pytest.mark.asyncio
async def test_open_stream_blob_removed_after_lookup(tmp_path):
    class RacingStorage(LocalStorageBackend):
        def get_file_path(self, stored_name: str) -> str:
            path = super().get_file_path(stored_name)
            (tmp_path / stored_name).unlink()
            return path

    storage = RacingStorage(base_path=str(tmp_path), max_size_bytes=100)
    await storage.save_file("gone.txt", iter_chunks(b"soon gone"), "text/plain")

    with pytest.raises(BlobNotFoundError):
        async for _ in storage.open_stream("gone.txt"):
            pass
