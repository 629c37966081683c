"""
Utility functions for the chunked uploader.
"""

import io
import os
from typing import BinaryIO


def format_bytes(bytes_size: float) -> str:
    """Format bytes as human-readable string.

    Args:
        bytes_size: Size in bytes

    Returns:
        Formatted string (e.g., "1.5 GB")
    """
    for unit in ['B', 'KB', 'MB', 'GB', 'TB']:
        if bytes_size < 1024.0:
            return f"{bytes_size:.1f} {unit}"
        bytes_size /= 1024.0
    return f"{bytes_size:.1f} PB"


def remaining_size(source: BinaryIO) -> int:
    """Bytes between the current stream position and end-of-stream.

    Uses fstat for real files and falls back to seeking for in-memory
    streams; the position is left unchanged.
    """
    position = source.tell()

    try:
        return os.fstat(source.fileno()).st_size - position
    except (AttributeError, io.UnsupportedOperation):
        pass

    end = source.seek(0, os.SEEK_END)
    source.seek(position, os.SEEK_SET)
    return end - position


def is_success(response) -> bool:
    """True for 2xx responses only; redirects are not a success."""
    return 200 <= response.status_code < 300
