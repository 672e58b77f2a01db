"""
Content hashing service.

Computes SHA-256 digests incrementally so a blob is hashed in the same pass
that writes it to disk, without buffering the whole file in memory.
"""
import hashlib
from typing import AsyncIterator

HASH_ALGORITHM = "sha256"


class ContentHasher:
    """Incremental digest over a byte stream that also counts its length."""

    def __init__(self):
        self._digest = hashlib.new(HASH_ALGORITHM)
        self.size = 0

    def update(self, chunk: bytes) -> None:
        self._digest.update(chunk)
        self.size += len(chunk)

    def hexdigest(self) -> str:
        return self._digest.hexdigest()

    async def tee(self, stream: AsyncIterator[bytes]) -> AsyncIterator[bytes]:
        """
        Feed every chunk of a stream into the digest while passing it on.

        Wrap the stream handed to a writer with this so hashing and writing
        consume the data exactly once.
        """
        async for chunk in stream:
            self.update(chunk)
            yield chunk


async def hash_stream(stream: AsyncIterator[bytes]) -> str:
    """
    Hash the entire content of an async byte stream.

    Args:
        stream: Async iterator yielding chunks; consumed exactly once

    Returns:
        64-character lowercase hex SHA-256 digest

    Raises:
        IOError: If the stream fails before completion; no digest is returned
    """
    hasher = ContentHasher()
    try:
        async for chunk in stream:
            hasher.update(chunk)
    except OSError:
        raise
    except Exception as e:
        raise IOError(f"Stream failed while hashing: {e}") from e
    return hasher.hexdigest()


def hash_bytes(data: bytes) -> str:
    return hashlib.new(HASH_ALGORITHM, data).hexdigest()
