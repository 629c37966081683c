"""
SHA-1 digest computation for upload integrity headers.
Digests are base64-encoded raw SHA-1 values, as carried in the Digest header.
"""

import base64
import hashlib
import os
import time
from pathlib import Path
from typing import BinaryIO, Callable, Optional

from .logger import get_logger

logger = get_logger(__name__)


class FileHasher:
    """Computes whole-file and per-chunk SHA-1 digests."""

    READ_SIZE = 8192 * 1024  # 8MB blocks for reading
    DIGEST_PREFIX = "sha="

    @staticmethod
    def encode(raw_digest: bytes) -> str:
        """Encode a raw digest for transport headers."""
        return base64.b64encode(raw_digest).decode('ascii')

    @classmethod
    def chunk_digest(cls, data: bytes) -> str:
        """Digest of exactly the given bytes."""
        return cls.encode(hashlib.sha1(data).digest())

    @classmethod
    def digest_header(cls, digest: str) -> str:
        """Render a ``Digest`` header value."""
        return f"{cls.DIGEST_PREFIX}{digest}"

    def compute_digest(
        self,
        source: BinaryIO,
        progress_callback: Optional[Callable[[int], None]] = None
    ) -> str:
        """Digest a seekable stream from its current position to EOF.

        The stream is rewound to where it was, so chunk reading afterwards
        covers the same bytes that were hashed.

        Args:
            source: Seekable binary stream
            progress_callback: Optional callback(bytes_read)

        Returns:
            Base64-encoded SHA-1 digest
        """
        start_position = source.tell()
        start_time = time.time()

        sha1 = hashlib.sha1()
        bytes_read = 0

        try:
            while True:
                block = source.read(self.READ_SIZE)
                if not block:
                    break

                sha1.update(block)
                bytes_read += len(block)

                if progress_callback:
                    progress_callback(bytes_read)
        finally:
            source.seek(start_position, os.SEEK_SET)

        digest = self.encode(sha1.digest())
        logger.debug(
            f"SHA-1 computed over {bytes_read} bytes in {time.time() - start_time:.2f}s: {digest}"
        )
        return digest

    def compute_file_digest(self, file_path: Path) -> str:
        """Digest a file on disk.

        Raises:
            FileNotFoundError: If file doesn't exist
            OSError: If the path is not a regular file
        """
        file_path = Path(file_path)
        if not file_path.exists():
            raise FileNotFoundError(f"File not found: {file_path}")

        if not file_path.is_file():
            raise OSError(f"Not a regular file: {file_path}")

        with open(file_path, 'rb') as f:
            return self.compute_digest(f)
