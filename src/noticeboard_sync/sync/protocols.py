"""Protocol types for SyncOrchestrator dependencies.

Defines the interfaces that SyncOrchestrator requires from its collaborators,
enabling easier testing and looser coupling.
"""

from typing import Optional, Protocol, runtime_checkable

from .entities import EntityKind
from .pipeline import SyncOutcome
from .probe import ProbeOutcome


@runtime_checkable
class AuthenticatorProtocol(Protocol):
    """Owns the session token."""

    @property
    def token(self) -> Optional[str]: ...

    def authenticate(self, credentials=None) -> str: ...

    def invalidate(self) -> None: ...


@runtime_checkable
class ConnectivityProbeProtocol(Protocol):
    """Classifies server connectivity."""

    def probe(self, token: Optional[str]) -> ProbeOutcome: ...


@runtime_checkable
class EntitySyncPipelineProtocol(Protocol):
    """Pushes one entity kind to the server."""

    kind: EntityKind

    def sync_local_to_remote(self, token: Optional[str]) -> SyncOutcome: ...
