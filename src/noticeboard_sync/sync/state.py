"""Process state shared by the orchestrator and the authenticator."""

import threading
from dataclasses import dataclass, field
from typing import Optional

__all__ = ["SyncState"]


@dataclass
class SyncState:
    """Online flag, retry count and current session token.

    One instance per orchestrator. Mutations go through ``lock`` because
    scheduler jobs run on worker threads.
    """

    is_online: bool = False
    retry_count: int = 0
    current_token: Optional[str] = None
    lock: threading.RLock = field(default_factory=threading.RLock, repr=False, compare=False)

    @property
    def has_token(self) -> bool:
        return self.current_token is not None

    def reset(self) -> None:
        """Clear everything (used on stop)."""
        with self.lock:
            self.is_online = False
            self.retry_count = 0
            self.current_token = None
