"""
Data model for one upload session workflow.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

# Opaque per-part token returned by the server, sent back verbatim on commit
PartDescriptor = Dict[str, Any]


@dataclass(frozen=True)
class UploadTarget:
    """Logical destination of an upload.

    Attributes:
        folder_id: Parent folder identifier
        file_name: Name of the stored file
        file_id: Identifier of an existing file to overwrite
    """

    folder_id: str
    file_name: str
    file_id: Optional[str] = None

    @property
    def is_overwrite(self) -> bool:
        return self.file_id is not None


@dataclass(frozen=True)
class UploadSession:
    """Server-side upload session negotiated for one file."""

    session_id: str
    part_size: int
    file_size: int
    total_parts: Optional[int] = None

    @classmethod
    def from_response(cls, body: Dict[str, Any], file_size: int) -> "UploadSession":
        """Build a session from the session-creation response body.

        Raises:
            KeyError: If ``id`` or ``part_size`` is missing
        """
        return cls(
            session_id=str(body['id']),
            part_size=int(body['part_size']),
            file_size=file_size,
            total_parts=body.get('total_parts'),
        )


@dataclass
class Chunk:
    """A contiguous slice of the source file."""

    index: int
    offset: int
    data: bytes = field(repr=False)

    @property
    def length(self) -> int:
        return len(self.data)

    @property
    def end(self) -> int:
        """Inclusive last byte offset."""
        return self.offset + len(self.data) - 1

    def content_range(self, total_size: int) -> str:
        return f"bytes {self.offset}-{self.end}/{total_size}"


@dataclass(frozen=True)
class CommitResult:
    """Stored object returned by a successful commit."""

    file_id: str
    name: Optional[str] = None
    size: Optional[int] = None
    sha1: Optional[str] = None
    entry: Dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_entry(cls, entry: Dict[str, Any]) -> "CommitResult":
        return cls(
            file_id=str(entry['id']),
            name=entry.get('name'),
            size=entry.get('size'),
            sha1=entry.get('sha1'),
            entry=entry,
        )
