"""Base HTTP client for the noticeboard server API."""

import logging
from typing import Any, Optional

import requests

from ..errors import AuthFailure, RemoteError, TransportFailure

__all__ = ["ApiClient", "unwrap_envelope"]

logger = logging.getLogger(__name__)


def unwrap_envelope(body: Any) -> Any:
    """Strip the server's ``{type, success, message, data}`` response envelope.

    Bare payloads are returned unchanged.
    """
    if isinstance(body, dict) and "data" in body and ("success" in body or "type" in body):
        return body["data"]
    return body


class ApiClient:
    """HTTP client shared by the authenticator, probe and sync pipelines.

    Handles:
    - Session management
    - Bearer authentication headers
    - Mandatory per-call timeouts
    - Classification of failures into the sync error taxonomy

    No retries happen here; callers own their retry policy.
    """

    USER_AGENT = "Noticeboard-Sync/1.0.0"

    def __init__(
        self,
        server_url: str,
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
    ):
        """Initialize API client.

        Args:
            server_url: Server base URL (e.g. http://localhost:3000)
            timeout: Default request timeout in seconds
            session: Optional requests session (for dependency injection/testing)
        """
        self.server_url = server_url.rstrip("/")
        self.timeout = timeout
        self._session = session or requests.Session()
        self._owns_session = session is None

    def _get_headers(self, token: Optional[str] = None) -> dict:
        """Get request headers, with bearer authentication when a token is given."""
        headers = {
            "Accept": "application/json",
            "User-Agent": self.USER_AGENT,
        }
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    def request(
        self,
        method: str,
        endpoint: str,
        data: Optional[dict] = None,
        token: Optional[str] = None,
        timeout: Optional[float] = None,
        decode: bool = True,
    ) -> Any:
        """Make a request to the server.

        Args:
            method: HTTP method
            endpoint: API endpoint (relative to server_url)
            data: JSON body
            token: Bearer token, if the endpoint requires one
            timeout: Override of the default timeout
            decode: Parse the response body as JSON (False returns {} for any 2xx)

        Returns:
            Decoded JSON response ({} for an empty body)

        Raises:
            AuthFailure: For 401/403 responses
            TransportFailure: For connection errors, timeouts and 5xx responses
            RemoteError: For other non-2xx responses
        """
        url = f"{self.server_url}/{endpoint.lstrip('/')}"
        kwargs: dict = {
            "timeout": timeout if timeout is not None else self.timeout,
            "headers": self._get_headers(token),
        }
        if data is not None:
            kwargs["json"] = data

        try:
            response = self._session.request(method, url, **kwargs)
        except requests.exceptions.Timeout as e:
            raise TransportFailure("Request timed out") from e
        except requests.exceptions.ConnectionError as e:
            raise TransportFailure("Cannot connect to server") from e
        except requests.exceptions.RequestException as e:
            raise TransportFailure(f"Request failed: {e}") from e

        if response.status_code == 401:
            raise AuthFailure(self._error_message(response) or "Invalid or expired token")
        if response.status_code == 403:
            raise AuthFailure(self._error_message(response) or "Not authorized")
        if response.status_code >= 500:
            raise TransportFailure(f"Server error: {response.status_code}")
        if response.status_code >= 400:
            details = self._error_body(response)
            message = self._error_message(response) or response.reason
            raise RemoteError(
                f"API error ({response.status_code}): {message}",
                status_code=response.status_code,
                details=details,
            )

        if not decode or not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            raise RemoteError(
                "Invalid JSON in server response", status_code=response.status_code
            ) from e

    @staticmethod
    def _error_body(response: requests.Response) -> Any:
        try:
            return response.json()
        except ValueError:
            return None

    @classmethod
    def _error_message(cls, response: requests.Response) -> str:
        body = cls._error_body(response)
        if isinstance(body, dict):
            return str(body.get("message") or body.get("error") or "")
        return ""

    def close(self) -> None:
        """Close the session if we own it."""
        if self._owns_session and self._session is not None:
            self._session.close()
            self._session = None

    def __enter__(self) -> "ApiClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
