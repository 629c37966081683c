"""
Tests for commit coordination
"""
from unittest.mock import MagicMock

import pytest
import requests

from chunked_uploader.commit import CommitCoordinator, CommitState
from chunked_uploader.exceptions import CommitError, CommitRetryExhausted
from chunked_uploader.models import UploadSession

from conftest import FakeResponse, FakeUploadAPI

SESSION = UploadSession(session_id="session-1", part_size=10, file_size=30)
PARTS = [{'part_id': 'a'}, {'part_id': 'b'}]


def _coordinator(api, delays):
    return CommitCoordinator(api, max_attempts=20, retry_delay=0.5, sleep=delays.append)


def test_processing_nineteen_times_then_created():
    api = FakeUploadAPI(commit_statuses=[202] * 19 + [201])
    delays = []
    coordinator = _coordinator(api, delays)

    result = coordinator.commit(SESSION, "digest==", PARTS)

    assert result.file_id == "file-42"
    assert result.entry['type'] == "file"
    assert coordinator.state == CommitState.DONE
    assert coordinator.attempts == 20
    assert len(api.commit_calls) == 20
    assert delays == [0.5] * 19  # no delay before the first attempt


def test_processing_twenty_times_exhausts_retries():
    api = FakeUploadAPI(commit_statuses=[202] * 20)
    coordinator = _coordinator(api, [])

    with pytest.raises(CommitRetryExhausted) as exc_info:
        coordinator.commit(SESSION, "digest==", PARTS)

    assert exc_info.value.attempts == 20
    assert len(api.commit_calls) == 20
    assert coordinator.state == CommitState.FAILED


def test_server_error_fails_immediately():
    api = FakeUploadAPI(commit_statuses=[500])
    delays = []
    coordinator = _coordinator(api, delays)

    with pytest.raises(CommitError) as exc_info:
        coordinator.commit(SESSION, "digest==", PARTS)

    assert exc_info.value.status_code == 500
    assert len(api.commit_calls) == 1
    assert delays == []
    assert coordinator.state == CommitState.FAILED


def test_error_after_processing():
    api = FakeUploadAPI(commit_statuses=[202, 202, 409])
    coordinator = _coordinator(api, [])

    with pytest.raises(CommitError) as exc_info:
        coordinator.commit(SESSION, "digest==", PARTS)

    assert exc_info.value.status_code == 409
    assert len(api.commit_calls) == 3


def test_commit_sends_digest_and_parts():
    api = FakeUploadAPI()
    _coordinator(api, []).commit(SESSION, "whole==", PARTS)

    call = api.commit_calls[0]
    assert call['session_id'] == "session-1"
    assert call['digest'] == "whole=="
    assert call['parts'] == PARTS


def test_transport_error_is_commit_error():
    api = MagicMock()
    api.commit_upload_session.side_effect = requests.exceptions.ConnectionError("reset")
    coordinator = _coordinator(api, [])

    with pytest.raises(CommitError) as exc_info:
        coordinator.commit(SESSION, "digest==", PARTS)

    assert exc_info.value.status_code is None
    assert isinstance(exc_info.value.__cause__, requests.exceptions.ConnectionError)


def test_created_without_entries_is_commit_error():
    api = MagicMock()
    api.commit_upload_session.return_value = FakeResponse(201, {'entries': []})

    with pytest.raises(CommitError):
        _coordinator(api, []).commit(SESSION, "digest==", PARTS)


def test_state_is_processing_between_attempts():
    api = FakeUploadAPI(commit_statuses=[202, 201])
    states = []
    coordinator = CommitCoordinator(api, sleep=lambda _: states.append(coordinator.state))

    coordinator.commit(SESSION, "digest==", PARTS)

    assert states == [CommitState.PROCESSING]


def test_invalid_max_attempts():
    with pytest.raises(ValueError):
        CommitCoordinator(MagicMock(), max_attempts=0)
