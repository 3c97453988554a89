"""Sync orchestrator - owns the poll loop, connectivity state and retries."""

import logging
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Callable, Optional, Sequence

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.date import DateTrigger
from apscheduler.triggers.interval import IntervalTrigger

from ..errors import AuthFailure, ConfigurationFailure, RetryExhausted, SyncError
from .pipeline import SyncOutcome, SyncResult
from .probe import ProbeStatus
from .protocols import (
    AuthenticatorProtocol,
    ConnectivityProbeProtocol,
    EntitySyncPipelineProtocol,
)
from .retry import BackoffScheduler
from .state import SyncState

__all__ = ["SyncOrchestrator", "OrchestratorState", "TICK_JOB_ID", "BACKOFF_JOB_ID"]

logger = logging.getLogger(__name__)

TICK_JOB_ID = "sync_tick"
BACKOFF_JOB_ID = "backoff_probe"


class OrchestratorState(Enum):
    STOPPED = "stopped"
    AUTHENTICATING = "authenticating"
    IDLE = "idle"
    PROBING = "probing"
    SYNCING = "syncing"
    BACKOFF = "backoff"


class SyncOrchestrator:
    """Drives probe -> (re-auth | backoff | sync) cycles on a fixed interval.

    Ticks come from an APScheduler interval job; backoff re-probes are
    one-shot date jobs whose handle is kept so stop() can cancel them.
    Failures reach the error callback and never escape a scheduler job.
    """

    def __init__(
        self,
        authenticator: AuthenticatorProtocol,
        probe: ConnectivityProbeProtocol,
        pipelines: Sequence[EntitySyncPipelineProtocol],
        state: Optional[SyncState] = None,
        backoff: Optional[BackoffScheduler] = None,
        interval_seconds: float = 30,
        on_sync_complete: Optional[Callable[[SyncResult], None]] = None,
        on_sync_error: Optional[Callable[[Exception], None]] = None,
        scheduler: Optional[BackgroundScheduler] = None,
    ):
        """Initialize the orchestrator.

        Args:
            authenticator: Owns the session token
            probe: Liveness check against the server
            pipelines: One pipeline per entity kind
            state: Shared state (must be the authenticator's state object)
            backoff: Retry delay policy
            interval_seconds: Fixed tick interval
            on_sync_complete: Called with the SyncResult of every sync pass
            on_sync_error: Called with the error of every failed cycle
            scheduler: APScheduler instance (created and owned if None)
        """
        self.authenticator = authenticator
        self.probe = probe
        self.pipelines = list(pipelines)
        self.state = state or SyncState()
        self.backoff = backoff or BackoffScheduler()
        self.interval_seconds = interval_seconds
        self._on_sync_complete = on_sync_complete
        self._on_sync_error = on_sync_error

        self._owns_scheduler = scheduler is None
        self.scheduler = scheduler
        self._tick_job = None
        self._backoff_job = None

        self._running = False
        self._phase = OrchestratorState.STOPPED
        self._last_result: Optional[SyncResult] = None

    # -- lifecycle --------------------------------------------------------

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def phase(self) -> OrchestratorState:
        return self._phase

    @property
    def last_result(self) -> Optional[SyncResult]:
        return self._last_result

    def start(self) -> bool:
        """Authenticate, run one immediate cycle, then arm the tick timer.

        Returns:
            False if authentication failed (the loop is not entered)

        Raises:
            ConfigurationFailure: If credentials are missing
        """
        with self.state.lock:
            if self._running:
                logger.warning("Sync service already running")
                return True
            self.state.reset()
            self._phase = OrchestratorState.AUTHENTICATING

        logger.info("Starting sync service...")
        try:
            self.authenticator.authenticate()
        except ConfigurationFailure as e:
            self._phase = OrchestratorState.STOPPED
            logger.error(f"Cannot start sync service: {e}")
            raise
        except SyncError as e:
            self._phase = OrchestratorState.STOPPED
            logger.error("Failed to authenticate. Service not started.")
            self._notify_error(e)
            return False

        with self.state.lock:
            self._running = True
            self._phase = OrchestratorState.IDLE

        self.check_connectivity_and_sync()

        with self.state.lock:
            if not self._running:
                return True
            scheduler = self._ensure_scheduler()
            self._tick_job = scheduler.add_job(
                self.check_connectivity_and_sync,
                trigger=IntervalTrigger(seconds=self.interval_seconds),
                id=TICK_JOB_ID,
                replace_existing=True,
                coalesce=True,
            )
            if not scheduler.running:
                scheduler.start()

        logger.info(f"Sync loop started (interval: {self.interval_seconds}s)")
        return True

    def stop(self) -> None:
        """Cancel all timers and clear state. Safe to call repeatedly."""
        with self.state.lock:
            was_running = self._running
            self._running = False
            self._cancel_backoff()
            self._remove_job(self._tick_job)
            self._tick_job = None
            self.state.reset()
            self._phase = OrchestratorState.STOPPED
            scheduler = self.scheduler
            if self._owns_scheduler:
                self.scheduler = None

        if self._owns_scheduler and scheduler is not None and scheduler.running:
            scheduler.shutdown(wait=False)

        if was_running:
            logger.info("Sync service stopped")

    # -- cycle ------------------------------------------------------------

    def check_connectivity_and_sync(self) -> Optional[SyncResult]:
        """One probe and the branch it selects. Never raises."""
        if not self._running:
            return None
        try:
            return self._run_cycle()
        except Exception as e:
            logger.exception(f"Sync cycle failed: {e}")
            self._set_phase(OrchestratorState.IDLE)
            self._notify_error(e)
            return None

    def _run_cycle(self) -> Optional[SyncResult]:
        self._set_phase(OrchestratorState.PROBING)
        outcome = self.probe.probe(self.state.current_token)

        if outcome.status is ProbeStatus.ONLINE:
            with self.state.lock:
                if not self._running:
                    return None
                self.state.is_online = True
                self.state.retry_count = 0
                self._cancel_backoff()
            return self._sync_all()

        if outcome.status is ProbeStatus.AUTH_EXPIRED:
            logger.info("Token expired, attempting to reauthenticate...")
            return self._reauthenticate_and_sync()

        return self._handle_unreachable(outcome.cause)

    def _reauthenticate_and_sync(self) -> Optional[SyncResult]:
        self._set_phase(OrchestratorState.AUTHENTICATING)
        try:
            self.authenticator.authenticate()
        except SyncError as e:
            logger.error(f"Re-authentication failed: {e}")
            self._set_phase(OrchestratorState.IDLE)
            self._notify_error(e)
            return None

        with self.state.lock:
            if not self._running:
                # stop() ran while the login was in flight
                self.authenticator.invalidate()
                return None
            # A 401 proves the server answered
            self.state.is_online = True
        return self._sync_all()

    def _handle_unreachable(self, cause: Optional[Exception]) -> None:
        with self.state.lock:
            if not self._running:
                return None
            self.state.is_online = False
            retry_count = self.state.retry_count
            exhausted = not self.backoff.should_retry(retry_count)
            if not exhausted:
                delay = self.backoff.next_delay(retry_count)
                self.state.retry_count = retry_count + 1
                self._schedule_backoff(delay)
                self._phase = OrchestratorState.BACKOFF

        if exhausted:
            logger.error("Max retries reached")
            self._set_phase(OrchestratorState.IDLE)
            self._notify_error(RetryExhausted(retry_count, cause))
        else:
            logger.info(
                f"Retry attempt {retry_count + 1} of {self.backoff.max_retries} in {delay:.0f}s"
            )
        return None

    def _sync_all(self) -> SyncResult:
        token = self.state.current_token
        if token is None:
            raise AuthFailure("Not authenticated")

        self._set_phase(OrchestratorState.SYNCING)
        logger.info("Starting sync operation...")

        result = SyncResult()
        for pipeline in self.pipelines:
            kind = pipeline.kind
            try:
                outcome = pipeline.sync_local_to_remote(token)
            except AuthFailure as e:
                logger.warning(f"{kind} sync rejected token: {e}")
                self.authenticator.invalidate()
                outcome = SyncOutcome.from_error(kind, e)
            except Exception as e:
                logger.exception(f"{kind} sync failed: {e}")
                outcome = SyncOutcome.from_error(kind, e)
            result.outcomes[kind.name] = outcome

        with self.state.lock:
            if not self._running:
                return result
            self._last_result = result
            if self._phase is OrchestratorState.SYNCING:
                self._phase = OrchestratorState.IDLE

        self._notify_complete(result)
        return result

    # -- timers -----------------------------------------------------------

    def _ensure_scheduler(self) -> BackgroundScheduler:
        if self.scheduler is None:
            self.scheduler = BackgroundScheduler()
        return self.scheduler

    def _schedule_backoff(self, delay: float) -> None:
        self._cancel_backoff()
        run_date = datetime.now(timezone.utc) + timedelta(seconds=delay)
        self._backoff_job = self._ensure_scheduler().add_job(
            self._run_backoff_probe,
            trigger=DateTrigger(run_date=run_date),
            id=BACKOFF_JOB_ID,
            replace_existing=True,
            misfire_grace_time=None,
        )

    def _run_backoff_probe(self) -> None:
        with self.state.lock:
            self._backoff_job = None
        self.check_connectivity_and_sync()

    def _cancel_backoff(self) -> None:
        self._remove_job(self._backoff_job)
        self._backoff_job = None

    @staticmethod
    def _remove_job(job) -> None:
        if job is None:
            return
        try:
            job.remove()
        except JobLookupError:
            pass  # already fired or removed

    # -- helpers ----------------------------------------------------------

    def _set_phase(self, phase: OrchestratorState) -> None:
        with self.state.lock:
            if self._running:
                self._phase = phase

    def _notify_complete(self, result: SyncResult) -> None:
        if not self._on_sync_complete:
            return
        try:
            self._on_sync_complete(result)
        except Exception as e:
            logger.exception(f"Sync completion callback failed: {e}")

    def _notify_error(self, error: Exception) -> None:
        if not self._on_sync_error:
            return
        try:
            self._on_sync_error(error)
        except Exception as e:
            logger.exception(f"Sync error callback failed: {e}")

    def get_status(self) -> dict:
        """Get current sync status."""
        with self.state.lock:
            last = self._last_result
            return {
                "state": self._phase.value,
                "running": self._running,
                "is_online": self.state.is_online,
                "retry_count": self.state.retry_count,
                "authenticated": self.state.has_token,
                "backoff_pending": self._backoff_job is not None,
                "last_sync": last.completed_at.isoformat() if last else None,
            }
