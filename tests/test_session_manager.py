"""
Tests for upload session lifecycle
"""
from unittest.mock import MagicMock

import pytest
import requests

from chunked_uploader.exceptions import CommitRetryExhausted, SessionCreateError, SessionDeleteError
from chunked_uploader.models import UploadSession, UploadTarget
from chunked_uploader.session_manager import SessionManager

from conftest import MB, FakeResponse, FakeUploadAPI

NEW_FILE = UploadTarget(folder_id="folder-7", file_name="data.bin")
OVERWRITE = UploadTarget(folder_id="folder-7", file_name="data.bin", file_id="file-42")


class TestCreateSession:
    """Session creation"""

    def test_new_file(self):
        api = FakeUploadAPI(part_size=4 * MB)

        session = SessionManager(api).create_session(NEW_FILE, 12 * MB)

        assert session == UploadSession("session-1", 4 * MB, 12 * MB, total_parts=3)
        assert api.session_calls == [{
            'file_name': "data.bin",
            'file_size': 12 * MB,
            'folder_id': "folder-7",
            'file_id': None,
        }]

    def test_overwrite_passes_file_id(self):
        api = FakeUploadAPI()

        SessionManager(api).create_session(OVERWRITE, 100)

        assert api.session_calls[0]['file_id'] == "file-42"

    def test_error_status(self):
        api = FakeUploadAPI(session_status=409)

        with pytest.raises(SessionCreateError) as exc_info:
            SessionManager(api).create_session(NEW_FILE, 100)

        assert exc_info.value.status_code == 409

    def test_redirect_is_not_a_created_session(self):
        api = FakeUploadAPI(session_status=302)

        with pytest.raises(SessionCreateError) as exc_info:
            SessionManager(api).create_session(NEW_FILE, 100)

        assert exc_info.value.status_code == 302

    def test_transport_error(self):
        api = MagicMock()
        api.create_upload_session.side_effect = requests.exceptions.Timeout("slow")

        with pytest.raises(SessionCreateError) as exc_info:
            SessionManager(api).create_session(NEW_FILE, 100)

        assert exc_info.value.status_code is None
        assert isinstance(exc_info.value.__cause__, requests.exceptions.Timeout)

    def test_malformed_response(self):
        api = MagicMock()
        api.create_upload_session.return_value = FakeResponse(201, {'id': 'only-id'})

        with pytest.raises(SessionCreateError):
            SessionManager(api).create_session(NEW_FILE, 100)


class TestAbort:
    """Session deletion"""

    SESSION = UploadSession("session-1", 10, 100)

    def test_delete(self):
        api = FakeUploadAPI()

        SessionManager(api).abort(self.SESSION)

        assert api.delete_calls == ["session-1"]

    def test_already_deleted_is_not_an_error(self):
        api = FakeUploadAPI(delete_status=404)

        SessionManager(api).abort(self.SESSION)

    def test_error_status(self):
        api = FakeUploadAPI(delete_status=500)

        with pytest.raises(SessionDeleteError) as exc_info:
            SessionManager(api).abort(self.SESSION)

        assert exc_info.value.session_id == "session-1"
        assert exc_info.value.status_code == 500

    def test_redirect_is_not_a_successful_delete(self):
        api = FakeUploadAPI(delete_status=307)

        with pytest.raises(SessionDeleteError) as exc_info:
            SessionManager(api).abort(self.SESSION)

        assert exc_info.value.status_code == 307

    def test_transport_error(self):
        api = MagicMock()
        api.delete_upload_session.side_effect = requests.exceptions.ConnectionError("down")

        with pytest.raises(SessionDeleteError):
            SessionManager(api).abort(self.SESSION)


class TestOpenSession:
    """Scoped session cleanup"""

    def test_deleted_after_success(self):
        api = FakeUploadAPI()

        with SessionManager(api).open_session(NEW_FILE, 100) as session:
            assert api.delete_calls == []

        assert api.delete_calls == [session.session_id]

    def test_deleted_after_failure(self):
        api = FakeUploadAPI()

        with pytest.raises(RuntimeError):
            with SessionManager(api).open_session(NEW_FILE, 100):
                raise RuntimeError("boom")

        assert api.delete_calls == ["session-1"]

    def test_cleanup_failure_does_not_mask_original_error(self, caplog):
        api = FakeUploadAPI(delete_status=500)

        with pytest.raises(RuntimeError, match="boom"):
            with SessionManager(api).open_session(NEW_FILE, 100):
                raise RuntimeError("boom")

        assert api.delete_calls == ["session-1"]
        assert "cleanup failed" in caplog.text

    def test_no_delete_when_creation_fails(self):
        api = FakeUploadAPI(session_status=500)

        with pytest.raises(SessionCreateError):
            with SessionManager(api).open_session(NEW_FILE, 100):
                pass

        assert api.delete_calls == []


def test_commit_uses_configured_attempts():
    api = FakeUploadAPI(commit_statuses=[202, 202, 202])
    manager = SessionManager(api, commit_max_attempts=3, commit_retry_delay=0, sleep=lambda _: None)

    with pytest.raises(CommitRetryExhausted):
        manager.commit(UploadSession("session-1", 10, 100), "digest==", [])

    assert len(api.commit_calls) == 3
