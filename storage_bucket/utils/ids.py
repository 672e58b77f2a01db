"""
Utility functions for generating short, URL-safe identifiers.

This module provides functions for generating random IDs using base62 encoding,
and the collision-resistant stored names used for blobs on disk.
"""
import random
import re
import string
import time
import uuid
from pathlib import PurePath


# Base62 character set: [0-9a-zA-Z]
BASE62_CHARS = string.digits + string.ascii_letters

# Extensions kept on stored names: dot plus up to 16 alphanumerics
_SAFE_EXTENSION = re.compile(r"^\.[A-Za-z0-9]{1,16}$")


def b62encode(num: int) -> str:
    """
    Encode a number to base62 string.

    Examples:
        >>> b62encode(12345)
        '3d7'
    """
    if num == 0:
        return BASE62_CHARS[0]

    base = len(BASE62_CHARS)
    encoded = []

    while num > 0:
        num, remainder = divmod(num, base)
        encoded.append(BASE62_CHARS[remainder])

    return "".join(reversed(encoded))


def generate_short_id(length: int = 12) -> str:
    """
    Generate a short, URL-safe ID using base62 encoding.

    Args:
        length: Length of the output string (default: 12 characters)

    Returns:
        Short, URL-safe identifier using [0-9a-zA-Z] characters

    Notes:
        - 12 characters provides ~72 bits of entropy
        - Uses base62 encoding [0-9a-zA-Z] for URL safety
    """
    random_bytes = uuid.uuid4().bytes
    num = int.from_bytes(random_bytes, byteorder="big")
    encoded = b62encode(num)

    if len(encoded) < length:
        padding = "".join(random.choices(BASE62_CHARS, k=length - len(encoded)))
        return encoded + padding

    return encoded[:length]


def safe_extension(filename: str) -> str:
    """
    Return the extension of a user-supplied filename if it is safe to keep.

    Examples:
        >>> safe_extension("report.PDF")
        '.PDF'
        >>> safe_extension("../../etc/passwd")
        ''
    """
    suffix = PurePath(filename.replace("\\", "/")).suffix
    return suffix if _SAFE_EXTENSION.match(suffix) else ""


def generate_stored_name(original_name: str) -> str:
    """
    Generate a unique on-disk filename for an upload.

    Format: <epoch milliseconds>-<12 char base62><original extension>
    Example: 1760781600000-a3b8f2d4e1c9.txt
    """
    timestamp_ms = time.time_ns() // 1_000_000
    return f"{timestamp_ms}-{generate_short_id()}{safe_extension(original_name)}"
