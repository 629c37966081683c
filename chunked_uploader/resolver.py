"""
Target resolution and metadata cache interfaces.

The filesystem adapter that maps logical paths to folder and file
identifiers lives outside this package; it only has to provide the
PathResolver methods below.
"""

import threading
from typing import Any, Dict, Optional, Protocol, runtime_checkable

from .exceptions import InvalidTarget
from .logger import get_logger
from .models import UploadTarget

logger = get_logger(__name__)

PATH_SEPARATOR = "/"
TYPE_FILE = "file"

ItemInfo = Dict[str, Any]


@runtime_checkable
class PathResolver(Protocol):
    """Maps logical paths to remote items."""

    def resolve(self, path: str) -> Optional[ItemInfo]:
        """Return item info (``{"type": ..., "id": ...}``) or None if absent."""
        ...

    def ensure_parent_folders(self, path: str) -> str:
        """Return the parent folder id of ``path``, creating missing folders."""
        ...


@runtime_checkable
class MetadataCache(Protocol):
    """Stores item info for paths after a successful write."""

    def put(self, path: str, info: ItemInfo) -> None:
        ...


class InMemoryMetadataCache:
    """Thread-safe dict-backed MetadataCache."""

    def __init__(self):
        self._items: Dict[str, ItemInfo] = {}
        self._lock = threading.Lock()

    def put(self, path: str, info: ItemInfo) -> None:
        with self._lock:
            self._items[path] = info

    def get(self, path: str) -> Optional[ItemInfo]:
        with self._lock:
            return self._items.get(path)

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)


def resolve_target(path: str, resolver: PathResolver) -> UploadTarget:
    """Resolve a logical path into an UploadTarget.

    An existing file at ``path`` is overwritten; anything else existing there
    (a folder) is rejected. Missing parent folders are created.

    Args:
        path: Logical destination path, ``/``-separated
        resolver: Path resolver

    Returns:
        UploadTarget

    Raises:
        InvalidTarget: If the path names a folder or has no file name
    """
    file_name = path.rstrip(PATH_SEPARATOR).split(PATH_SEPARATOR)[-1]
    if not file_name or path.endswith(PATH_SEPARATOR):
        raise InvalidTarget(path)

    file_id = None
    info = resolver.resolve(path)
    if info:
        if info.get('type') != TYPE_FILE:
            raise InvalidTarget(path)
        file_id = str(info['id'])
        logger.info(f"Overwriting existing file {path} (file_id={file_id})")

    folder_id = str(resolver.ensure_parent_folders(path))

    return UploadTarget(folder_id=folder_id, file_name=file_name, file_id=file_id)
