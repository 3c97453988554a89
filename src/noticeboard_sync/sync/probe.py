"""Connectivity probe against the server's liveness endpoint."""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..errors import AuthFailure, RemoteError, TransportFailure
from .http_client import ApiClient

__all__ = ["ConnectivityProbe", "ProbeOutcome", "ProbeStatus", "HEALTH_ENDPOINT"]

logger = logging.getLogger(__name__)

HEALTH_ENDPOINT = "api/health"
DEFAULT_PROBE_TIMEOUT = 5.0


class ProbeStatus(Enum):
    ONLINE = "online"
    AUTH_EXPIRED = "auth_expired"
    UNREACHABLE = "unreachable"


@dataclass
class ProbeOutcome:
    """Classification of a single liveness check."""

    status: ProbeStatus
    cause: Optional[Exception] = None

    @property
    def is_online(self) -> bool:
        return self.status is ProbeStatus.ONLINE


class ConnectivityProbe:
    """Classifies the server as online, auth-expired or unreachable.

    A probe has no side effects, so overlapping probes are harmless.
    """

    def __init__(self, client: ApiClient, timeout: float = DEFAULT_PROBE_TIMEOUT):
        if not timeout or timeout <= 0:
            raise ValueError("Probe timeout must be a positive number of seconds")
        self.client = client
        self.timeout = timeout

    def probe(self, token: Optional[str]) -> ProbeOutcome:
        try:
            self.client.request(
                "GET", HEALTH_ENDPOINT, token=token, timeout=self.timeout, decode=False
            )
        except AuthFailure as e:
            logger.info(f"Probe: session token rejected ({e})")
            return ProbeOutcome(ProbeStatus.AUTH_EXPIRED, e)
        except (TransportFailure, RemoteError) as e:
            logger.warning(f"Probe: server unreachable ({e})")
            return ProbeOutcome(ProbeStatus.UNREACHABLE, e)

        logger.debug("Probe: server online")
        return ProbeOutcome(ProbeStatus.ONLINE)
