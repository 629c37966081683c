"""
Commit coordination for upload sessions.

The server usually answers the first commit with 202 while it assembles
the parts; the commit is resubmitted after a fixed delay until it answers
201 or the attempt budget runs out.

    PENDING --202--> PROCESSING --202--> PROCESSING ... --201--> DONE
       |                  |
       +--other status----+--------------------------------> FAILED
"""

import time
from enum import Enum
from typing import Callable, List

import requests

from .api_client import APIClient
from .exceptions import CommitError, CommitRetryExhausted
from .logger import get_logger
from .models import CommitResult, PartDescriptor, UploadSession

logger = get_logger(__name__)

STATUS_CREATED = 201
STATUS_ACCEPTED = 202

DEFAULT_MAX_ATTEMPTS = 20
DEFAULT_RETRY_DELAY = 0.5  # seconds


class CommitState(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    DONE = "done"
    FAILED = "failed"


class CommitCoordinator:
    """Submits a session commit, polling while the server is processing."""

    def __init__(
        self,
        api: APIClient,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        retry_delay: float = DEFAULT_RETRY_DELAY,
        sleep: Callable[[float], None] = time.sleep
    ):
        """Initialize commit coordinator.

        Args:
            api: API client
            max_attempts: Total commit attempts before giving up
            retry_delay: Fixed delay between attempts in seconds
            sleep: Sleep function (injectable for tests)
        """
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {max_attempts}")

        self.api = api
        self.max_attempts = max_attempts
        self.retry_delay = retry_delay
        self.sleep = sleep
        self.state = CommitState.PENDING
        self.attempts = 0

    def commit(
        self,
        session: UploadSession,
        whole_digest: str,
        parts: List[PartDescriptor]
    ) -> CommitResult:
        """Commit the session and return the stored object.

        Args:
            session: Upload session to commit
            whole_digest: Base64 SHA-1 of the whole file
            parts: Part descriptors in ascending offset order

        Returns:
            CommitResult built from the first committed entry

        Raises:
            CommitError: On any status other than 201/202, or a transport error
            CommitRetryExhausted: If still processing after max_attempts
        """
        self.state = CommitState.PENDING
        self.attempts = 0

        logger.info(f"Committing upload session {session.session_id} ({len(parts)} parts)")

        while self.attempts < self.max_attempts:
            if self.attempts > 0:
                self.sleep(self.retry_delay)

            self.attempts += 1

            try:
                response = self.api.commit_upload_session(session.session_id, whole_digest, parts)
            except requests.exceptions.RequestException as e:
                self.state = CommitState.FAILED
                raise CommitError(None, str(e)) from e

            if response.status_code == STATUS_ACCEPTED:
                self.state = CommitState.PROCESSING
                logger.debug(
                    f"Commit of {session.session_id} still processing "
                    f"(attempt {self.attempts}/{self.max_attempts})"
                )
                continue

            if response.status_code == STATUS_CREATED:
                return self._finish(session, response)

            self.state = CommitState.FAILED
            logger.error(
                f"Commit of {session.session_id} failed with status {response.status_code}: "
                f"{response.text}"
            )
            raise CommitError(response.status_code, response.text)

        self.state = CommitState.FAILED
        logger.error(
            f"Commit of {session.session_id} still processing after {self.attempts} attempts"
        )
        raise CommitRetryExhausted(self.attempts)

    def _finish(self, session: UploadSession, response: requests.Response) -> CommitResult:
        try:
            entry = response.json()['entries'][0]
            result = CommitResult.from_entry(entry)
        except (ValueError, KeyError, IndexError, TypeError) as e:
            self.state = CommitState.FAILED
            raise CommitError(response.status_code, f"Malformed commit response: {e}") from e

        self.state = CommitState.DONE
        logger.info(
            f"Upload session {session.session_id} committed after {self.attempts} "
            f"attempt(s): file_id={result.file_id}"
        )
        return result
