"""Sync module - reads local snapshots and reconciles them into the server."""

from .entities import ENTITY_KINDS, MEDIA, NOTICES, REPORTS, EntityKind, EntityRecord
from .http_client import ApiClient
from .local_cache import LocalCacheReader
from .orchestrator import OrchestratorState, SyncOrchestrator
from .pipeline import EntitySyncPipeline, SyncOutcome, SyncResult
from .probe import ConnectivityProbe, ProbeOutcome, ProbeStatus
from .protocols import (
    AuthenticatorProtocol,
    ConnectivityProbeProtocol,
    EntitySyncPipelineProtocol,
)
from .retry import BackoffScheduler, RetryConfig
from .state import SyncState

__all__ = [
    "ApiClient",
    "AuthenticatorProtocol",
    "BackoffScheduler",
    "ConnectivityProbe",
    "ConnectivityProbeProtocol",
    "ENTITY_KINDS",
    "EntityKind",
    "EntityRecord",
    "EntitySyncPipeline",
    "EntitySyncPipelineProtocol",
    "LocalCacheReader",
    "MEDIA",
    "NOTICES",
    "OrchestratorState",
    "ProbeOutcome",
    "ProbeStatus",
    "REPORTS",
    "RetryConfig",
    "SyncOrchestrator",
    "SyncOutcome",
    "SyncResult",
    "SyncState",
]
