"""Per-kind local-to-remote sync pipeline and its result types."""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

from ..errors import AuthFailure, RemoteError, SyncError
from .entities import EntityKind, EntityRecord
from .http_client import ApiClient, unwrap_envelope
from .local_cache import LocalCacheReader

__all__ = [
    "EntitySyncPipeline",
    "FailedRecord",
    "RecordRef",
    "SyncOutcome",
    "SyncResult",
    "SyncSummary",
    "STATUS_SUCCESS",
    "STATUS_SKIPPED",
    "STATUS_ERROR",
]

logger = logging.getLogger(__name__)

STATUS_SUCCESS = "success"
STATUS_SKIPPED = "skipped"  # nothing to sync for this kind
STATUS_ERROR = "error"  # the whole batch failed before per-record processing

ITEM_CREATED = "created"
ITEM_SKIPPED = "skipped"


@dataclass
class RecordRef:
    id: Optional[str]
    title: Optional[str]


@dataclass
class FailedRecord:
    title: Optional[str]
    reason: str


@dataclass
class SyncSummary:
    total: int = 0
    created: int = 0
    skipped: int = 0
    failed: int = 0

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "created": self.created,
            "skipped": self.skipped,
            "failed": self.failed,
        }


@dataclass
class SyncOutcome:
    """Result of one sync pass for one entity kind."""

    kind: str
    status: str = STATUS_SUCCESS
    created: list[RecordRef] = field(default_factory=list)
    skipped: list[RecordRef] = field(default_factory=list)
    failed: list[FailedRecord] = field(default_factory=list)
    message: Optional[str] = None
    error: Optional[str] = None
    details: Any = None

    @classmethod
    def nothing_to_sync(cls, kind: EntityKind) -> "SyncOutcome":
        return cls(kind=kind.name, status=STATUS_SKIPPED, message=f"No local {kind} to sync")

    @classmethod
    def from_error(cls, kind: EntityKind, error: Exception) -> "SyncOutcome":
        return cls(
            kind=kind.name,
            status=STATUS_ERROR,
            error=str(error),
            details=getattr(error, "details", None),
        )

    @property
    def summary(self) -> SyncSummary:
        return SyncSummary(
            total=len(self.created) + len(self.skipped) + len(self.failed),
            created=len(self.created),
            skipped=len(self.skipped),
            failed=len(self.failed),
        )

    @property
    def is_error(self) -> bool:
        return self.status == STATUS_ERROR

    def to_dict(self) -> dict:
        result = {
            "status": self.status,
            "created": [{"id": r.id, "title": r.title} for r in self.created],
            "skipped": [{"id": r.id, "title": r.title} for r in self.skipped],
            "failed": [{"title": f.title, "reason": f.reason} for f in self.failed],
            "summary": self.summary.to_dict(),
        }
        if self.message:
            result["message"] = self.message
        if self.error:
            result["error"] = self.error
        if self.details is not None:
            result["details"] = self.details
        return result


@dataclass
class SyncResult:
    """Outcomes of one sync pass, keyed by entity kind name."""

    outcomes: dict[str, SyncOutcome] = field(default_factory=dict)
    completed_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __getitem__(self, kind_name: str) -> SyncOutcome:
        return self.outcomes[kind_name]

    def __contains__(self, kind_name: str) -> bool:
        return kind_name in self.outcomes

    @property
    def success(self) -> bool:
        return not any(o.is_error for o in self.outcomes.values())

    @property
    def errors(self) -> dict[str, str]:
        return {k: o.error or "" for k, o in self.outcomes.items() if o.is_error}

    def to_dict(self) -> dict:
        return {k: o.to_dict() for k, o in self.outcomes.items()}


class EntitySyncPipeline:
    """Pushes one kind's local snapshot to the server's bulk-upsert endpoint.

    The local snapshot is never modified: skipped and failed records stay
    there and are resubmitted on the next pass, where server-side matching
    absorbs the duplicates.
    """

    def __init__(
        self,
        kind: EntityKind,
        client: ApiClient,
        cache: LocalCacheReader,
        timeout: float = 30.0,
    ):
        self.kind = kind
        self.client = client
        self.cache = cache
        self.timeout = timeout

    def sync_local_to_remote(self, token: Optional[str]) -> SyncOutcome:
        """Submit all local records for this kind in one request.

        Raises:
            AuthFailure: If the server rejected the token; the caller owns
                token invalidation.
        """
        kind = self.kind
        records = self.cache.read(kind)
        logger.info(f"Found {len(records)} local {kind} to sync")
        if not records:
            return SyncOutcome.nothing_to_sync(kind)

        payload = {kind.name: [record.to_payload() for record in records]}
        try:
            response = self.client.request(
                "POST", kind.endpoint, data=payload, token=token, timeout=self.timeout
            )
            outcome = self._parse_response(records, response)
        except AuthFailure:
            raise
        except SyncError as e:
            logger.error(f"{kind.name.capitalize()} sync failed: {e}")
            return SyncOutcome.from_error(kind, e)

        summary = outcome.summary
        logger.info(
            f"{kind.name.capitalize()} sync complete: {summary.created} created, "
            f"{summary.skipped} skipped, {summary.failed} failed"
        )
        return outcome

    def _parse_response(self, records: list[EntityRecord], response: Any) -> SyncOutcome:
        body = unwrap_envelope(response)
        if not isinstance(body, dict):
            raise RemoteError(f"Malformed {self.kind} sync response", details=response)

        success_items = [i for i in body.get("success") or [] if isinstance(i, dict)]
        failed_items = [i for i in body.get("failed") or [] if isinstance(i, dict)]

        outcome = SyncOutcome(kind=self.kind.name)
        for item in failed_items:
            outcome.failed.append(
                FailedRecord(
                    title=item.get(self.kind.item_key),
                    reason=str(item.get("error") or "Unknown error"),
                )
            )

        titles = self._titles_for_success(records, success_items, outcome.failed)
        for item, title in zip(success_items, titles):
            ref = RecordRef(id=item.get("id"), title=item.get("title", title))
            status = item.get("status")
            if status == ITEM_CREATED:
                outcome.created.append(ref)
            elif status == ITEM_SKIPPED:
                outcome.skipped.append(ref)
            else:
                logger.warning(f"Unexpected item status {status!r} in {self.kind} sync response")
                outcome.failed.append(FailedRecord(title=ref.title, reason=f"Unknown status: {status}"))
        return outcome

    @staticmethod
    def _titles_for_success(
        records: list[EntityRecord],
        success_items: list[dict],
        failed: list[FailedRecord],
    ) -> list[Optional[str]]:
        """Recover submitted titles for success entries.

        The server reports successes without titles, in submission order,
        with failures (which do carry titles) removed.
        """
        titles: list[Optional[str]] = []
        failed_index = 0
        for record in records:
            if failed_index < len(failed) and record.title == failed[failed_index].title:
                failed_index += 1
                continue
            titles.append(record.title)
        titles.extend([None] * (len(success_items) - len(titles)))
        return titles[: len(success_items)]
