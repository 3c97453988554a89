"""Noticeboard Sync - Main entry point."""

import logging
import signal
import sys
import threading
from typing import Callable, Optional

import requests

from . import __version__
from .auth import Authenticator, Credentials, load_credentials
from .config import Config, setup_logging
from .errors import ConfigurationFailure
from .sync import (
    ENTITY_KINDS,
    ApiClient,
    BackoffScheduler,
    ConnectivityProbe,
    EntitySyncPipeline,
    LocalCacheReader,
    RetryConfig,
    SyncOrchestrator,
    SyncResult,
    SyncState,
)

logger = logging.getLogger(__name__)


def build_orchestrator(
    config: Config,
    credentials: Optional[Credentials],
    on_sync_complete: Optional[Callable[[SyncResult], None]] = None,
    on_sync_error: Optional[Callable[[Exception], None]] = None,
    session: Optional[requests.Session] = None,
    scheduler=None,
) -> SyncOrchestrator:
    """Wire the reconciliation components from configuration."""
    client = ApiClient(config.server.url, timeout=config.timeouts.reports, session=session)
    state = SyncState()
    cache = LocalCacheReader(config.local_cache_dir)

    authenticator = Authenticator(
        client, state, credentials=credentials, timeout=config.timeouts.auth
    )
    probe = ConnectivityProbe(client, timeout=config.timeouts.probe)
    pipelines = [
        EntitySyncPipeline(kind, client, cache, timeout=config.timeouts.for_kind(kind.name))
        for kind in ENTITY_KINDS
    ]
    backoff = BackoffScheduler(
        RetryConfig(
            max_retries=config.retry.max_retries,
            base_delay=config.retry.base_delay,
            max_delay=config.retry.ceiling,
        )
    )
    return SyncOrchestrator(
        authenticator=authenticator,
        probe=probe,
        pipelines=pipelines,
        state=state,
        backoff=backoff,
        interval_seconds=config.sync.interval_seconds,
        on_sync_complete=on_sync_complete,
        on_sync_error=on_sync_error,
        scheduler=scheduler,
    )


class NoticeboardSyncApp:
    """Runs the orchestrator until a shutdown signal arrives."""

    def __init__(self, config: Optional[Config] = None, credentials: Optional[Credentials] = None):
        self.config = config or Config.load()
        setup_logging(self.config.debug_mode)

        logger.info(f"Noticeboard Sync {__version__} starting...")
        logger.info(f"Using server URL: {self.config.server.url}")
        logger.info(f"Reading local snapshots from {self.config.local_cache_dir}")

        self.orchestrator = build_orchestrator(
            self.config,
            credentials if credentials is not None else load_credentials(),
            on_sync_complete=self._on_sync_complete,
            on_sync_error=self._on_sync_error,
        )
        self._shutdown_event = threading.Event()
        self._shutdown_done = False

    def run(self) -> int:
        """Run the application. Returns a process exit code."""
        signal.signal(signal.SIGINT, self._signal_handler)
        signal.signal(signal.SIGTERM, self._signal_handler)

        try:
            started = self.orchestrator.start()
        except ConfigurationFailure as e:
            logger.error(f"{e} (set NOTICEBOARD_ADMISSION_NO and NOTICEBOARD_PASSWORD)")
            return 2
        if not started:
            return 1

        logger.info("Noticeboard Sync running")
        try:
            self._shutdown_event.wait()
        finally:
            self._shutdown()
        return 0

    # -- callbacks --------------------------------------------------------

    def _on_sync_complete(self, result: SyncResult) -> None:
        for kind, outcome in result.outcomes.items():
            if outcome.is_error:
                logger.warning(f"{kind}: sync error ({outcome.error})")
            else:
                s = outcome.summary
                logger.info(
                    f"{kind}: {outcome.status} - {s.created} created, "
                    f"{s.skipped} skipped, {s.failed} failed"
                )

    def _on_sync_error(self, error: Exception) -> None:
        logger.error(f"Sync error: {error}")

    def _signal_handler(self, signum, frame) -> None:
        """Handle shutdown signals."""
        logger.info(f"Received signal {signum}")
        self._shutdown_event.set()

    # -- Lifecycle --------------------------------------------------------

    def _shutdown(self) -> None:
        """Shutdown the application. Safe to call multiple times."""
        if self._shutdown_done:
            return
        self._shutdown_done = True
        logger.info("Shutting down...")
        self.orchestrator.stop()
        logger.info("Shutdown complete")

    def __enter__(self) -> "NoticeboardSyncApp":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self._shutdown()


def main() -> None:
    """Main entry point."""
    with NoticeboardSyncApp() as app:
        code = app.run()
    sys.exit(code)


if __name__ == "__main__":
    main()
