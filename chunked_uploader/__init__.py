"""
Chunked Uploader
Version: 1.0

Uploads large files to object storage through resumable upload sessions:
parts are sent concurrently with per-part SHA-1 digests, then the session is
committed atomically and always cleaned up.
"""

__version__ = "1.0.0"

from .api_client import APIClient
from .chunker import FileChunker
from .commit import CommitCoordinator, CommitState
from .config import Config, ConfigManager
from .exceptions import (
    ChunkUploadError,
    CommitError,
    CommitRetryExhausted,
    InvalidTarget,
    SessionCreateError,
    SessionDeleteError,
    UploadError,
)
from .hasher import FileHasher
from .logger import get_logger, setup_logger, upload_context
from .models import Chunk, CommitResult, UploadSession, UploadTarget
from .part_uploader import ConcurrentPartUploader
from .resolver import InMemoryMetadataCache, MetadataCache, PathResolver, resolve_target
from .session_manager import SessionManager
from .uploader import UploadOrchestrator

__all__ = [
    "APIClient",
    "FileChunker",
    "CommitCoordinator",
    "CommitState",
    "Config",
    "ConfigManager",
    "UploadError",
    "InvalidTarget",
    "SessionCreateError",
    "ChunkUploadError",
    "CommitError",
    "CommitRetryExhausted",
    "SessionDeleteError",
    "FileHasher",
    "get_logger",
    "setup_logger",
    "upload_context",
    "Chunk",
    "CommitResult",
    "UploadSession",
    "UploadTarget",
    "ConcurrentPartUploader",
    "InMemoryMetadataCache",
    "MetadataCache",
    "PathResolver",
    "resolve_target",
    "SessionManager",
    "UploadOrchestrator",
    "__version__"
]
