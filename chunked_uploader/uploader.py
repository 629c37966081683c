"""
Upload orchestration for the chunked upload session protocol.

Flow:
    1. Resolve target path -> folder id / existing file id
    2. Compute whole-file SHA-1
    3. Create upload session
    4. Upload parts concurrently
    5. Commit (polling while the server is processing)
    6. Update metadata cache
    7. Delete upload session (always, success or failure)
"""

import time
from pathlib import Path
from typing import BinaryIO, Callable, Optional

from .api_client import APIClient
from .commit import DEFAULT_MAX_ATTEMPTS, DEFAULT_RETRY_DELAY
from .config import Config
from .exceptions import UploadError
from .hasher import FileHasher
from .logger import get_logger, setup_logger, upload_context
from .models import CommitResult, UploadTarget
from .part_uploader import DEFAULT_CONCURRENCY, ConcurrentPartUploader
from .resolver import MetadataCache, PathResolver, resolve_target
from .session_manager import SessionManager
from .utils import format_bytes, remaining_size

logger = get_logger(__name__)

ProgressCallback = Callable[[int, int], None]


class UploadOrchestrator:
    """Uploads one file through an upload session and always cleans it up."""

    def __init__(
        self,
        api: APIClient,
        resolver: Optional[PathResolver] = None,
        cache: Optional[MetadataCache] = None,
        concurrency: int = DEFAULT_CONCURRENCY,
        commit_max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        commit_retry_delay: float = DEFAULT_RETRY_DELAY,
        hasher: Optional[FileHasher] = None,
        sleep: Callable[[float], None] = time.sleep
    ):
        """Initialize upload orchestrator.

        Args:
            api: API client
            resolver: Path resolver, required by upload()/upload_file()
            cache: Metadata cache updated after each successful commit
            concurrency: Maximum part uploads in flight
            commit_max_attempts: Commit attempts before giving up
            commit_retry_delay: Delay between commit attempts in seconds
            hasher: Digest calculator
            sleep: Sleep function used between commit attempts
        """
        self.api = api
        self.resolver = resolver
        self.cache = cache
        self.hasher = hasher or FileHasher()
        self.sessions = SessionManager(
            api,
            commit_max_attempts=commit_max_attempts,
            commit_retry_delay=commit_retry_delay,
            sleep=sleep
        )
        self.part_uploader = ConcurrentPartUploader(api, self.hasher, concurrency)

    @classmethod
    def from_config(
        cls,
        config: Config,
        resolver: Optional[PathResolver] = None,
        cache: Optional[MetadataCache] = None,
        configure_logging: bool = True
    ) -> "UploadOrchestrator":
        """Build an orchestrator and its API client from configuration."""
        if configure_logging:
            setup_logger(
                log_dir=Path(config.log_dir) if config.log_dir else None,
                log_level=config.log_level
            )

        api = APIClient(
            access_token=config.access_token,
            upload_endpoint=config.upload_endpoint,
            timeout=config.api_timeout,
            verify_ssl=config.api_verify_ssl
        )
        return cls(
            api,
            resolver=resolver,
            cache=cache,
            concurrency=config.request_concurrency,
            commit_max_attempts=config.commit_max_attempts,
            commit_retry_delay=config.commit_retry_delay
        )

    def upload(
        self,
        path: str,
        source: BinaryIO,
        progress_callback: Optional[ProgressCallback] = None
    ) -> CommitResult:
        """Upload a stream to a logical path.

        Args:
            path: Destination path, resolved through the PathResolver
            source: Seekable binary stream
            progress_callback: Optional callback(bytes_uploaded, total_bytes)

        Returns:
            CommitResult of the stored file

        Raises:
            InvalidTarget: If the path names a folder
            UploadError: If any step of the upload fails
        """
        if self.resolver is None:
            raise ValueError("A PathResolver is required to upload by path")

        target = resolve_target(path, self.resolver)

        def on_committed(result: CommitResult) -> None:
            if self.cache is not None:
                self.cache.put(path, result.entry)

        return self.upload_to_target(
            target,
            source,
            progress_callback=progress_callback,
            on_committed=on_committed
        )

    def upload_file(
        self,
        path: str,
        local_path: Path,
        progress_callback: Optional[ProgressCallback] = None
    ) -> CommitResult:
        """Upload a local file to a logical path."""
        local_path = Path(local_path)
        if not local_path.is_file():
            raise FileNotFoundError(f"File not found: {local_path}")

        with open(local_path, 'rb') as source:
            return self.upload(path, source, progress_callback=progress_callback)

    def upload_to_target(
        self,
        target: UploadTarget,
        source: BinaryIO,
        file_size: Optional[int] = None,
        progress_callback: Optional[ProgressCallback] = None,
        on_committed: Optional[Callable[[CommitResult], None]] = None
    ) -> CommitResult:
        """Upload a stream to a resolved target.

        The upload session is deleted exactly once whether the upload
        succeeds or fails; the original failure is what the caller sees.

        Args:
            target: Upload destination
            source: Seekable binary stream positioned at the content start
            file_size: Content size in bytes (derived from the stream if None)
            progress_callback: Optional callback(bytes_uploaded, total_bytes)
            on_committed: Called with the result before the session is deleted

        Returns:
            CommitResult of the stored file
        """
        if file_size is None:
            file_size = remaining_size(source)

        log = upload_context(logger, file_name=target.file_name)
        start_time = time.time()
        log.info(f"Starting upload: {target.file_name} ({format_bytes(file_size)})")

        whole_digest = self.hasher.compute_digest(source)

        with self.sessions.open_session(target, file_size) as session:
            log = log.bind(session_id=session.session_id)
            try:
                parts = self.part_uploader.upload_parts(
                    source, file_size, session, progress_callback=progress_callback
                )
                result = self.sessions.commit(session, whole_digest, parts)

                if on_committed is not None:
                    on_committed(result)

            except UploadError as e:
                log.error(f"Upload session {session.session_id} aborted: {e}")
                raise

        duration = time.time() - start_time
        log.info(
            f"Upload successful: {target.file_name} "
            f"(file_id={result.file_id}, duration={duration:.2f}s)"
        )
        return result
