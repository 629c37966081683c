"""
Upload session lifecycle: create, commit, delete.
"""

import time
from contextlib import contextmanager
from typing import Callable, Iterator, List

import requests

from .api_client import APIClient
from .commit import DEFAULT_MAX_ATTEMPTS, DEFAULT_RETRY_DELAY, CommitCoordinator
from .exceptions import SessionCreateError, SessionDeleteError
from .logger import get_logger
from .models import CommitResult, PartDescriptor, UploadSession, UploadTarget
from .utils import is_success

logger = get_logger(__name__)


class SessionManager:
    """Creates, commits and deletes upload sessions."""

    def __init__(
        self,
        api: APIClient,
        commit_max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        commit_retry_delay: float = DEFAULT_RETRY_DELAY,
        sleep: Callable[[float], None] = time.sleep
    ):
        """Initialize session manager.

        Args:
            api: API client
            commit_max_attempts: Commit attempts before giving up
            commit_retry_delay: Delay between commit attempts in seconds
            sleep: Sleep function used between commit attempts
        """
        self.api = api
        self.commit_max_attempts = commit_max_attempts
        self.commit_retry_delay = commit_retry_delay
        self.sleep = sleep

    def create_session(self, target: UploadTarget, file_size: int) -> UploadSession:
        """Create a remote upload session.

        Args:
            target: Upload destination (overwrite mode when file_id is set)
            file_size: Total file size in bytes

        Returns:
            UploadSession with the negotiated part size

        Raises:
            SessionCreateError: On a non-success response or transport error
        """
        logger.info(
            f"Creating upload session for {target.file_name} ({file_size} bytes, "
            f"{'overwrite ' + target.file_id if target.is_overwrite else 'folder ' + target.folder_id})"
        )

        try:
            response = self.api.create_upload_session(
                file_name=target.file_name,
                file_size=file_size,
                folder_id=target.folder_id,
                file_id=target.file_id
            )
        except requests.exceptions.RequestException as e:
            raise SessionCreateError(None, str(e)) from e

        if not is_success(response):
            logger.error(f"Upload session creation failed: {response.status_code} - {response.text}")
            raise SessionCreateError(response.status_code, response.text)

        try:
            session = UploadSession.from_response(response.json(), file_size)
        except (ValueError, KeyError, TypeError) as e:
            raise SessionCreateError(response.status_code, f"Malformed session response: {e}") from e

        logger.info(
            f"Upload session created: session_id={session.session_id}, "
            f"part_size={session.part_size}"
        )
        return session

    def commit(
        self,
        session: UploadSession,
        whole_digest: str,
        parts: List[PartDescriptor]
    ) -> CommitResult:
        """Commit the session. See CommitCoordinator.commit."""
        coordinator = CommitCoordinator(
            self.api,
            max_attempts=self.commit_max_attempts,
            retry_delay=self.commit_retry_delay,
            sleep=self.sleep
        )
        return coordinator.commit(session, whole_digest, parts)

    def abort(self, session: UploadSession) -> None:
        """Delete the remote upload session.

        A 404 means the session is already gone and is not an error.

        Raises:
            SessionDeleteError: If the delete call fails
        """
        try:
            response = self.api.delete_upload_session(session.session_id)
        except requests.exceptions.RequestException as e:
            raise SessionDeleteError(session.session_id, None, str(e)) from e

        if response.status_code == 404:
            logger.debug(f"Upload session {session.session_id} already gone")
            return

        if not is_success(response):
            raise SessionDeleteError(session.session_id, response.status_code, response.text)

        logger.info(f"Upload session deleted: {session.session_id}")

    @contextmanager
    def open_session(self, target: UploadTarget, file_size: int) -> Iterator[UploadSession]:
        """Create a session and delete it on every exit path.

        A cleanup failure is logged; it never replaces an exception raised
        inside the block.
        """
        session = self.create_session(target, file_size)
        try:
            yield session
        finally:
            try:
                self.abort(session)
            except SessionDeleteError as e:
                logger.error(f"Upload session cleanup failed: {e}", exc_info=True)
