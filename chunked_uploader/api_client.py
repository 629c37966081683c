"""
Upload session API client.
Thin wrapper over requests for the upload-session endpoints; callers
interpret status codes.
"""

import requests
from typing import Any, Dict, List, Optional

from . import __version__
from .hasher import FileHasher
from .logger import get_logger

logger = get_logger(__name__)

DEFAULT_UPLOAD_ENDPOINT = "https://upload.box.com/api/2.0"


class APIClient:
    """Client for the chunked upload session API."""

    def __init__(
        self,
        access_token: str,
        upload_endpoint: str = DEFAULT_UPLOAD_ENDPOINT,
        timeout: float = 60,
        verify_ssl: bool = True,
        session: Optional[requests.Session] = None
    ):
        """Initialize API client.

        Args:
            access_token: Bearer token attached to every request
            upload_endpoint: Base URL of the upload API
            timeout: Request timeout in seconds
            verify_ssl: Verify SSL certificates
            session: Optional preconfigured requests session
        """
        self.upload_endpoint = upload_endpoint.rstrip('/')
        self.timeout = timeout
        self.verify_ssl = verify_ssl

        self.session = session or requests.Session()
        self.session.headers.update({
            'Authorization': f'Bearer {access_token}',
            'User-Agent': f'chunked-uploader/{__version__}'
        })

    def __enter__(self) -> "APIClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _request(
        self,
        method: str,
        endpoint: str,
        json_data: Optional[Dict[str, Any]] = None,
        data: Optional[bytes] = None,
        headers: Optional[Dict[str, str]] = None
    ) -> requests.Response:
        """Send a request and return the raw response.

        Args:
            method: HTTP method
            endpoint: Path relative to the upload endpoint
            json_data: Optional JSON body
            data: Optional raw body
            headers: Optional additional headers

        Returns:
            Response, whatever its status code

        Raises:
            requests.RequestException: On transport errors
        """
        url = f"{self.upload_endpoint}/{endpoint.lstrip('/')}"

        try:
            logger.debug(f"{method} {url}")

            response = self.session.request(
                method=method,
                url=url,
                json=json_data,
                data=data,
                headers=headers,
                timeout=self.timeout,
                verify=self.verify_ssl
            )

            logger.debug(f"{method} {url} -> {response.status_code}")
            return response

        except requests.exceptions.Timeout:
            logger.error(f"Request timeout: {method} {url}")
            raise

        except requests.exceptions.RequestException as e:
            logger.error(f"Request failed: {method} {url} - {e}")
            raise

    # ========================================
    # Upload sessions
    # ========================================

    def create_upload_session(
        self,
        file_name: str,
        file_size: int,
        folder_id: Optional[str] = None,
        file_id: Optional[str] = None
    ) -> requests.Response:
        """Create an upload session.

        POST files/upload_sessions (new file)
        POST files/<file_id>/upload_sessions (new version of an existing file)

        ``folder_id`` is only sent for new files.
        """
        if file_id is not None:
            endpoint = f"files/{file_id}/upload_sessions"
            body = {
                'file_size': file_size,
                'file_name': file_name,
            }
        else:
            endpoint = "files/upload_sessions"
            body = {
                'folder_id': folder_id,
                'file_size': file_size,
                'file_name': file_name,
            }

        return self._request('POST', endpoint, json_data=body)

    def upload_part(
        self,
        session_id: str,
        data: bytes,
        content_range: str,
        digest: str
    ) -> requests.Response:
        """Upload one part.

        PUT files/upload_sessions/<session_id>

        Args:
            session_id: Upload session ID
            data: Raw part bytes
            content_range: ``bytes <start>-<end>/<total>``
            digest: Base64 SHA-1 of ``data``
        """
        return self._request(
            'PUT',
            f"files/upload_sessions/{session_id}",
            data=data,
            headers={
                'Digest': FileHasher.digest_header(digest),
                'Content-Range': content_range,
                'Content-Type': 'application/octet-stream'
            }
        )

    def commit_upload_session(
        self,
        session_id: str,
        digest: str,
        parts: List[Dict[str, Any]]
    ) -> requests.Response:
        """Commit an upload session.

        POST files/upload_sessions/<session_id>/commit

        Args:
            session_id: Upload session ID
            digest: Base64 SHA-1 of the whole file
            parts: Part descriptors in ascending offset order
        """
        return self._request(
            'POST',
            f"files/upload_sessions/{session_id}/commit",
            json_data={'parts': parts},
            headers={'Digest': FileHasher.digest_header(digest)}
        )

    def delete_upload_session(self, session_id: str) -> requests.Response:
        """Delete an upload session.

        DELETE files/upload_sessions/<session_id>
        """
        return self._request('DELETE', f"files/upload_sessions/{session_id}")

    def close(self) -> None:
        """Close HTTP session."""
        self.session.close()
