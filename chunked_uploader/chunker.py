"""
File chunking for upload sessions.
Splits a binary stream into fixed-size parts tagged with their byte offset.
"""

from typing import BinaryIO, Iterator

from .logger import get_logger
from .models import Chunk

logger = get_logger(__name__)


class FileChunker:
    """Reads fixed-size chunks from a binary stream."""

    def __init__(self, chunk_size: int):
        """Initialize file chunker.

        Args:
            chunk_size: Maximum chunk size in bytes (the session part size)

        Raises:
            ValueError: If chunk_size is not positive
        """
        if chunk_size <= 0:
            raise ValueError(f"Chunk size must be positive, got {chunk_size}")
        self.chunk_size = chunk_size

    def count_chunks(self, file_size: int) -> int:
        """Number of chunks a file of ``file_size`` bytes splits into."""
        return (file_size + self.chunk_size - 1) // self.chunk_size

    def iter_chunks(self, source: BinaryIO) -> Iterator[Chunk]:
        """Yield chunks from the current stream position to end-of-stream.

        Every chunk is exactly ``chunk_size`` bytes except possibly the last.
        Reading stops at the first empty read; no empty chunk is ever yielded.
        The stream position advances as chunks are consumed, so the iterator
        must be driven from a single thread.

        Args:
            source: Binary stream opened for reading

        Yields:
            Chunk objects in ascending offset order
        """
        offset = 0
        index = 0

        while True:
            data = self._read_full(source)
            if not data:
                break

            yield Chunk(index=index, offset=offset, data=data)

            offset += len(data)
            index += 1

            if len(data) < self.chunk_size:
                # A short chunk was topped up until EOF, nothing follows it
                break

        logger.debug(f"Read {index} chunks ({offset} bytes)")

    def _read_full(self, source: BinaryIO) -> bytes:
        """Read up to ``chunk_size`` bytes, retrying short reads until EOF."""
        data = source.read(self.chunk_size)
        if not data or len(data) == self.chunk_size:
            return data

        buffer = bytearray(data)
        while len(buffer) < self.chunk_size:
            more = source.read(self.chunk_size - len(buffer))
            if not more:
                break
            buffer.extend(more)
        return bytes(buffer)
