"""Session token lifecycle: credential exchange and invalidation."""

import logging
from dataclasses import dataclass
from typing import Optional

from ..errors import AuthFailure, ConfigurationFailure, SyncError
from ..sync.http_client import ApiClient, unwrap_envelope
from ..sync.state import SyncState

__all__ = ["Authenticator", "Credentials", "LOGIN_ENDPOINT"]

logger = logging.getLogger(__name__)

LOGIN_ENDPOINT = "auth/login"
DEFAULT_AUTH_TIMEOUT = 10.0


@dataclass(frozen=True)
class Credentials:
    """Long-lived login credentials. Held in memory only."""

    admission_no: str
    password: str

    def __repr__(self) -> str:
        return f"Credentials(admission_no={self.admission_no!r}, password='***')"

    @property
    def is_complete(self) -> bool:
        return bool(self.admission_no) and bool(self.password)

    def to_payload(self) -> dict:
        return {"admissionNo": self.admission_no, "password": self.password}


class Authenticator:
    """Exchanges credentials for a short-lived bearer token.

    The token lives in the shared ``SyncState``. It is cleared before every
    attempt, so a failed re-authentication leaves the process unauthenticated.
    No retries happen here.
    """

    def __init__(
        self,
        client: ApiClient,
        state: SyncState,
        credentials: Optional[Credentials] = None,
        timeout: float = DEFAULT_AUTH_TIMEOUT,
    ):
        """Initialize authenticator.

        Args:
            client: Server API client
            state: State object that owns the current token
            credentials: Default credentials for authenticate()
            timeout: Login request timeout in seconds
        """
        self.client = client
        self.state = state
        self.credentials = credentials
        self.timeout = timeout

    @property
    def token(self) -> Optional[str]:
        return self.state.current_token

    def authenticate(self, credentials: Optional[Credentials] = None) -> str:
        """Log in and store the new session token.

        Raises:
            ConfigurationFailure: If no usable credentials are available
            AuthFailure: If the server rejects the credentials or the call fails
        """
        credentials = credentials or self.credentials
        if credentials is None or not credentials.is_complete:
            raise ConfigurationFailure("Credentials are required to authenticate")

        self.invalidate()

        try:
            response = self.client.request(
                "POST", LOGIN_ENDPOINT, data=credentials.to_payload(), timeout=self.timeout
            )
        except AuthFailure as e:
            logger.warning(f"Authentication failed: {e}")
            raise
        except SyncError as e:
            logger.warning(f"Authentication failed: {e}")
            raise AuthFailure(f"Authentication request failed: {e}") from e

        token = self._extract_token(response)
        if not token:
            logger.warning("Authentication failed: no access token in response")
            raise AuthFailure("Invalid authentication response")

        with self.state.lock:
            self.state.current_token = token
        logger.info("Authentication successful")
        return token

    def invalidate(self) -> None:
        """Drop the current token (e.g. after a 401)."""
        with self.state.lock:
            self.state.current_token = None

    @staticmethod
    def _extract_token(response) -> Optional[str]:
        if not isinstance(response, dict):
            return None
        if response.get("success") is False:
            return None
        data = unwrap_envelope(response)
        if not isinstance(data, dict):
            return None
        token = data.get("accessToken")
        return token if isinstance(token, str) and token else None
