"""
Shared test helpers: fake HTTP responses and a scripted upload-session API.
"""

import json
import threading
from typing import Any, Callable, Dict, List, Optional

MB = 1024 * 1024


class FakeResponse:
    """Minimal stand-in for requests.Response."""

    def __init__(self, status_code: int, body: Any = None):
        self.status_code = status_code
        self._body = body
        self.text = json.dumps(body) if body is not None else ""

    @property
    def ok(self) -> bool:
        return self.status_code < 400

    def json(self):
        if self._body is None:
            raise ValueError("No JSON body")
        return self._body


class FakeUploadAPI:
    """Scripted APIClient replacement that records every call.

    Part uploads answer with ``{"part": {"part_id": ..., "offset": ...}}``;
    ``part_hook`` may override the response for a given chunk.
    """

    def __init__(
        self,
        part_size: int = 4 * MB,
        session_status: int = 201,
        commit_statuses: Optional[List[int]] = None,
        delete_status: int = 204,
        part_hook: Optional[Callable[[int, bytes], Optional[FakeResponse]]] = None
    ):
        self.part_size = part_size
        self.session_status = session_status
        self.commit_statuses = list(commit_statuses or [201])
        self.delete_status = delete_status
        self.part_hook = part_hook

        self._lock = threading.Lock()
        self.session_calls: List[Dict[str, Any]] = []
        self.part_calls: List[Dict[str, Any]] = []
        self.commit_calls: List[Dict[str, Any]] = []
        self.delete_calls: List[str] = []

    def create_upload_session(self, file_name, file_size, folder_id=None, file_id=None):
        self.session_calls.append({
            'file_name': file_name,
            'file_size': file_size,
            'folder_id': folder_id,
            'file_id': file_id,
        })
        if self.session_status >= 400:
            return FakeResponse(self.session_status, {'code': 'error'})
        return FakeResponse(self.session_status, {
            'id': 'session-1',
            'part_size': self.part_size,
            'total_parts': (file_size + self.part_size - 1) // self.part_size,
        })

    def upload_part(self, session_id, data, content_range, digest):
        offset = int(content_range.split(' ')[1].split('-')[0])
        with self._lock:
            self.part_calls.append({
                'session_id': session_id,
                'data': data,
                'content_range': content_range,
                'digest': digest,
            })

        if self.part_hook is not None:
            response = self.part_hook(offset, data)
            if response is not None:
                return response

        return FakeResponse(200, {'part': {'part_id': f"p{offset}", 'offset': offset, 'size': len(data)}})

    def commit_upload_session(self, session_id, digest, parts):
        self.commit_calls.append({'session_id': session_id, 'digest': digest, 'parts': list(parts)})
        status = self.commit_statuses.pop(0) if len(self.commit_statuses) > 1 else self.commit_statuses[0]
        if status == 201:
            return FakeResponse(201, {
                'total_count': 1,
                'entries': [{'id': 'file-42', 'type': 'file', 'name': 'data.bin', 'size': 12 * MB}],
            })
        return FakeResponse(status, {'status': status} if status != 202 else None)

    def delete_upload_session(self, session_id):
        self.delete_calls.append(session_id)
        return FakeResponse(self.delete_status)


class FakeResolver:
    """PathResolver over a fixed dict of known items."""

    def __init__(self, items: Optional[Dict[str, Dict[str, Any]]] = None, parent_id: str = "folder-7"):
        self.items = items or {}
        self.parent_id = parent_id
        self.ensured: List[str] = []

    def resolve(self, path):
        return self.items.get(path)

    def ensure_parent_folders(self, path):
        self.ensured.append(path)
        return self.parent_id
