"""
Exceptions raised by the upload session workflow.
All of them are fatal to the upload they were raised from.
"""

from typing import Optional


class UploadError(Exception):
    """Base exception for upload errors"""
    pass


class InvalidTarget(UploadError):
    """Destination path does not denote a writable file"""

    def __init__(self, path: str, reason: str = "File name is required."):
        self.path = path
        self.reason = reason
        super().__init__(f"Unable to write file at {path!r}: {reason}")


class SessionCreateError(UploadError):
    """Upload session could not be created"""

    def __init__(self, status_code: Optional[int] = None, detail: str = ""):
        self.status_code = status_code
        self.detail = detail
        message = "Upload session creation failed"
        if status_code is not None:
            message += f": {status_code}"
        if detail:
            message += f" - {detail}"
        super().__init__(message)


class ChunkUploadError(UploadError):
    """A single part upload failed; the cause is chained"""

    def __init__(self, index: int, offset: int, cause: BaseException):
        self.index = index
        self.offset = offset
        self.cause = cause
        super().__init__(f"Upload of part {index} (offset {offset}) failed: {cause}")


class CommitError(UploadError):
    """Commit returned an unexpected terminal status"""

    def __init__(self, status_code: Optional[int], detail: str = ""):
        self.status_code = status_code
        self.detail = detail
        message = f"Commit error, status code {status_code}"
        if detail:
            message += f" - {detail}"
        super().__init__(message)


class CommitRetryExhausted(UploadError):
    """Commit was still processing after the maximum number of attempts"""

    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__(f"Commit retry count exceeds max retry count({attempts}).")


class SessionDeleteError(UploadError):
    """Upload session cleanup failed"""

    def __init__(self, session_id: str, status_code: Optional[int] = None, detail: str = ""):
        self.session_id = session_id
        self.status_code = status_code
        self.detail = detail
        message = f"Failed to delete upload session {session_id}"
        if status_code is not None:
            message += f": {status_code}"
        if detail:
            message += f" - {detail}"
        super().__init__(message)
