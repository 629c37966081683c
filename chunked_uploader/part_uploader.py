"""
Concurrent part upload for an open upload session.

Chunks are read on the calling thread only and handed to a bounded
thread pool; at most ``concurrency`` part requests are outstanding at any
time. Part descriptors are keyed by chunk index as they complete and are
re-sorted before being returned, since the commit must list parts in
ascending offset order.
"""

from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from typing import BinaryIO, Callable, Dict, List, Optional, Tuple

import requests

from .api_client import APIClient
from .chunker import FileChunker
from .exceptions import ChunkUploadError
from .hasher import FileHasher
from .logger import get_logger, upload_context
from .models import Chunk, PartDescriptor, UploadSession
from .utils import is_success

logger = get_logger(__name__)

DEFAULT_CONCURRENCY = 5

# (index, offset, length) of the chunk behind each outstanding future
_ChunkMeta = Tuple[int, int, int]


class ConcurrentPartUploader:
    """Uploads the parts of one file through a bounded worker pool."""

    def __init__(
        self,
        api: APIClient,
        hasher: Optional[FileHasher] = None,
        concurrency: int = DEFAULT_CONCURRENCY
    ):
        """Initialize part uploader.

        Args:
            api: API client
            hasher: Digest calculator for per-part digests
            concurrency: Maximum part requests in flight
        """
        if concurrency < 1:
            raise ValueError(f"Concurrency must be at least 1, got {concurrency}")

        self.api = api
        self.hasher = hasher or FileHasher()
        self.concurrency = concurrency

    def upload_parts(
        self,
        source: BinaryIO,
        file_size: int,
        session: UploadSession,
        progress_callback: Optional[Callable[[int, int], None]] = None
    ) -> List[PartDescriptor]:
        """Upload every chunk of ``source`` into ``session``.

        Args:
            source: Binary stream positioned at the start of the file content
            file_size: Total file size in bytes (Content-Range total)
            session: Open upload session
            progress_callback: Optional callback(bytes_uploaded, total_bytes)

        Returns:
            Part descriptors in ascending chunk order

        Raises:
            ChunkUploadError: On the first failed part; in-flight parts drain first
        """
        chunker = FileChunker(session.part_size)
        chunks = chunker.iter_chunks(source)

        parts: Dict[int, PartDescriptor] = {}
        pending: Dict[Future, _ChunkMeta] = {}
        failure: Optional[ChunkUploadError] = None
        bytes_uploaded = 0
        submitted = 0
        log = upload_context(logger, session_id=session.session_id)

        log.info(
            f"Uploading {chunker.count_chunks(file_size)} parts to session {session.session_id} "
            f"(part_size={session.part_size}, concurrency={self.concurrency})"
        )

        with ThreadPoolExecutor(max_workers=self.concurrency, thread_name_prefix="part-upload") as executor:
            while failure is None:
                if len(pending) >= self.concurrency:
                    done, _ = wait(pending, return_when=FIRST_COMPLETED)
                    failure, uploaded = self._collect(done, pending, parts)
                    bytes_uploaded += uploaded
                    if uploaded and progress_callback:
                        progress_callback(bytes_uploaded, file_size)
                    continue

                chunk = next(chunks, None)
                if chunk is None:
                    break

                future = executor.submit(self._upload_part, session, chunk, file_size)
                pending[future] = (chunk.index, chunk.offset, chunk.length)
                submitted += 1

            # Let in-flight parts finish; nothing new is submitted after a failure
            if pending:
                done, _ = wait(pending)
                drain_failure, uploaded = self._collect(done, pending, parts)
                failure = failure or drain_failure
                bytes_uploaded += uploaded
                if uploaded and progress_callback:
                    progress_callback(bytes_uploaded, file_size)

        if failure is not None:
            log.error(
                f"Part upload failed for session {session.session_id} "
                f"({len(parts)}/{submitted} parts succeeded): {failure}"
            )
            raise failure

        if bytes_uploaded != file_size:
            log.warning(
                f"Uploaded {bytes_uploaded} bytes but file size is {file_size}; "
                f"commit is likely to be rejected"
            )

        log.info(f"Uploaded {len(parts)} parts ({bytes_uploaded} bytes) to session {session.session_id}")

        return [parts[index] for index in sorted(parts)]

    def _collect(
        self,
        done,
        pending: Dict[Future, _ChunkMeta],
        parts: Dict[int, PartDescriptor]
    ) -> Tuple[Optional[ChunkUploadError], int]:
        """Move finished futures into ``parts``.

        Returns:
            (first failure among ``done`` or None, bytes uploaded by ``done``)
        """
        failure = None
        uploaded = 0

        for future in done:
            index, offset, length = pending.pop(future)
            try:
                parts[index] = future.result()
                uploaded += length
            except ChunkUploadError as e:
                failure = failure or e
            except Exception as e:
                failure = failure or ChunkUploadError(index, offset, e)

        return failure, uploaded

    def _upload_part(self, session: UploadSession, chunk: Chunk, file_size: int) -> PartDescriptor:
        """Upload one chunk; runs on a pool thread."""
        digest = self.hasher.chunk_digest(chunk.data)
        content_range = chunk.content_range(file_size)

        logger.debug(f"Uploading part {chunk.index}: {content_range}")

        try:
            response = self.api.upload_part(session.session_id, chunk.data, content_range, digest)
        except requests.exceptions.RequestException as e:
            raise ChunkUploadError(chunk.index, chunk.offset, e) from e

        if not is_success(response):
            cause = requests.HTTPError(
                f"{response.status_code} - {response.text}", response=response
            )
            raise ChunkUploadError(chunk.index, chunk.offset, cause) from cause

        try:
            part = response.json()['part']
        except (ValueError, KeyError, TypeError) as e:
            raise ChunkUploadError(chunk.index, chunk.offset, e) from e

        logger.debug(f"Part {chunk.index} uploaded ({chunk.length} bytes)")
        return part
