"""Server-side bulk upsert for ``POST /api/{kind}/sync-local``.

Each submitted record is matched, then created or skipped on its own. A
record that fails validation is reported and the batch carries on.
"""

import copy
import logging
import re
from datetime import datetime
from typing import Any, Callable, Optional

from ..errors import ValidationFailure
from ..sync.entities import MEDIA, NOTICES, REPORTS, EntityKind, get_kind
from .dedup import DedupMatcher
from .store import RecordStore

__all__ = ["SyncLocalHandler", "validate_record", "prepare_record"]

logger = logging.getLogger(__name__)

DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
TIME_RE = re.compile(r"^([0-1][0-9]|2[0-3]):[0-5][0-9]:[0-5][0-9]$")
UPLOAD_URL_RE = re.compile(r"^/uploads/[A-Za-z0-9_.-]+$")

MAX_TITLE_LENGTH = 255
MAX_REPORT_DETAILS_LENGTH = 5000
MAX_MEDIA_SIZE = 100 * 1024 * 1024  # 100MB

REPORT_TYPES = ("TEXT", "MEDIA", "MIXED")
MEDIA_TYPES = ("IMAGE", "VIDEO")

NOTICE_DEFAULT_PRIORITY = "NORMAL"
NOTICE_DEFAULT_STATUS = "ACTIVE"


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _check_title(fields: dict, errors: list[str]) -> None:
    title = fields.get("title")
    if _is_blank(title):
        errors.append("title is required")
    elif not isinstance(title, str):
        errors.append("title must be a string")
    elif len(title.strip()) > MAX_TITLE_LENGTH:
        errors.append(f"title exceeds {MAX_TITLE_LENGTH} characters")


def _check_pattern(obj: dict, key: str, pattern: re.Pattern, label: str, errors: list[str]) -> None:
    value = obj.get(key)
    if _is_blank(value):
        errors.append(f"{label} is required")
    elif not isinstance(value, str) or not pattern.match(value):
        errors.append(f"{label} has an invalid format")


def _validate_notice(fields: dict) -> list[str]:
    errors: list[str] = []
    _check_title(fields, errors)

    info = fields.get("noticeInfo")
    if not isinstance(info, dict):
        errors.append("noticeInfo is required")
    else:
        for key in ("organisationName", "organisationAddress", "noticeDetails", "noticeType"):
            if _is_blank(info.get(key)) or info.get(key) == []:
                errors.append(f"noticeInfo.{key} is required")

    schedule = fields.get("eventSchedule")
    if not isinstance(schedule, dict):
        errors.append("eventSchedule is required")
    else:
        for key in ("dateFromStart", "dateToEnd"):
            if _is_blank(schedule.get(key)):
                errors.append(f"eventSchedule.{key} is required")
    return errors


def _validate_report(fields: dict) -> list[str]:
    errors: list[str] = []
    _check_title(fields, errors)

    info = fields.get("reportInfo")
    if not isinstance(info, dict):
        errors.append("reportInfo is required")
        return errors

    _check_pattern(info, "dateCreated", DATE_RE, "reportInfo.dateCreated", errors)
    _check_pattern(info, "timeCreated", TIME_RE, "reportInfo.timeCreated", errors)

    details = info.get("reportDetails")
    if _is_blank(details):
        errors.append("reportInfo.reportDetails is required")
    elif not isinstance(details, str) or len(details.strip()) > MAX_REPORT_DETAILS_LENGTH:
        errors.append(f"reportInfo.reportDetails exceeds {MAX_REPORT_DETAILS_LENGTH} characters")

    if info.get("type", "TEXT") not in REPORT_TYPES:
        errors.append(f"reportInfo.type must be one of {', '.join(REPORT_TYPES)}")
    return errors


def _validate_media(fields: dict) -> list[str]:
    errors: list[str] = []
    _check_title(fields, errors)

    if fields.get("type") not in MEDIA_TYPES:
        errors.append(f"type must be one of {', '.join(MEDIA_TYPES)}")

    _check_pattern(fields, "url", UPLOAD_URL_RE, "url", errors)
    thumbnail = fields.get("thumbnailUrl")
    if thumbnail and not (isinstance(thumbnail, str) and UPLOAD_URL_RE.match(thumbnail)):
        errors.append("thumbnailUrl has an invalid format")

    size = fields.get("size")
    if isinstance(size, bool) or not isinstance(size, (int, float)):
        errors.append("size is required")
    elif not 0 <= size <= MAX_MEDIA_SIZE:
        errors.append(f"size must be between 0 and {MAX_MEDIA_SIZE}")

    _check_pattern(fields, "dateUploaded", DATE_RE, "dateUploaded", errors)
    _check_pattern(fields, "timeUploaded", TIME_RE, "timeUploaded", errors)

    if _is_blank(fields.get("user")):
        errors.append("user is required")
    return errors


_VALIDATORS: dict[str, Callable[[dict], list[str]]] = {
    NOTICES.name: _validate_notice,
    REPORTS.name: _validate_report,
    MEDIA.name: _validate_media,
}


def validate_record(kind: EntityKind, fields: dict) -> None:
    """Raise ValidationFailure listing every problem with ``fields``."""
    errors = _VALIDATORS[kind.name](fields)
    if errors:
        raise ValidationFailure(f"{kind.item_key.capitalize()} validation failed: {'; '.join(errors)}")


def normalize_record(kind: EntityKind, fields: dict) -> dict:
    """Pre-match normalisation. Returns a copy."""
    fields = copy.deepcopy(fields)
    if kind is NOTICES:
        info = fields.get("noticeInfo")
        if isinstance(info, dict) and "noticeDetails" in info:
            if not isinstance(info["noticeDetails"], list):
                info["noticeDetails"] = [info["noticeDetails"]]
    return fields


def prepare_record(kind: EntityKind, fields: dict, now: Optional[datetime] = None) -> dict:
    """Apply creation defaults and trimming. Returns a copy."""
    now = now or datetime.now()
    today = now.strftime("%Y-%m-%d")
    clock = now.strftime("%H:%M:%S")
    record = copy.deepcopy(fields)

    if isinstance(record.get("title"), str):
        record["title"] = record["title"].strip()

    if kind is NOTICES:
        record["priority"] = record.get("priority") or NOTICE_DEFAULT_PRIORITY
        record["status"] = record.get("status") or NOTICE_DEFAULT_STATUS
        record["audience"] = record.get("audience") or {"isSchoolWide": False}
        record["attachments"] = record.get("attachments") or []
        schedule = record.setdefault("eventSchedule", {})
        schedule.setdefault("dateCreated", today)
        schedule.setdefault("timeCreated", clock)
        schedule["dateUpdated"] = today
        schedule["timeUpdated"] = clock
    elif kind is REPORTS:
        info = record.setdefault("reportInfo", {})
        info.setdefault("type", "TEXT")
        if isinstance(info.get("reportDetails"), str):
            info["reportDetails"] = info["reportDetails"].strip()
    elif kind is MEDIA:
        if isinstance(record.get("url"), str):
            record["url"] = record["url"].strip()
        record.setdefault("thumbnailUrl", None)
    return record


class SyncLocalHandler:
    """Reconciles a batch of client records into the record store."""

    def __init__(self, store: RecordStore, matcher: Optional[DedupMatcher] = None):
        self.store = store
        self.matcher = matcher or DedupMatcher(store)

    def handle(self, kind_name: str, body: dict) -> dict:
        """Process a ``{<kind>: [record, ...]}`` request body.

        Returns:
            ``{"success": [...], "failed": [...], "summary": {...}}``

        Raises:
            ValidationFailure: If the body carries no record list at all
        """
        kind = get_kind(kind_name)
        records = body.get(kind.name) if isinstance(body, dict) else None
        if not isinstance(records, list):
            raise ValidationFailure(f"No {kind} found to sync")

        success: list[dict] = []
        failed: list[dict] = []
        for submitted in records:
            try:
                success.append(self._upsert(kind, submitted))
            except (ValidationFailure, TypeError, ValueError) as e:
                title = submitted.get(kind.title_field) if isinstance(submitted, dict) else None
                failed.append({kind.item_key: title, "error": str(e)})

        created = sum(1 for item in success if item["status"] == "created")
        summary = {
            "total": len(records),
            "created": created,
            "skipped": len(success) - created,
            "failed": len(failed),
        }
        logger.info(
            f"Local {kind} synced: {summary['created']} created, "
            f"{summary['skipped']} skipped, {summary['failed']} failed"
        )
        return {"success": success, "failed": failed, "summary": summary}

    def handle_enveloped(self, kind_name: str, body: dict) -> dict:
        """Same as handle(), wrapped in the server's standard response envelope."""
        kind = get_kind(kind_name)
        return {
            "type": "Success",
            "success": True,
            "message": f"Local {kind} synced with server",
            "data": self.handle(kind_name, body),
        }

    def _upsert(self, kind: EntityKind, submitted: Any) -> dict:
        if not isinstance(submitted, dict):
            raise ValidationFailure(f"{kind.item_key.capitalize()} must be an object")

        fields = normalize_record(kind, submitted)
        with self.store.transaction():
            existing = self.matcher.find_existing(kind, fields)
            if existing is not None:
                return {
                    "id": existing.id,
                    "status": "skipped",
                    "message": f"{kind.item_key.capitalize()} already exists",
                }

            validate_record(kind, fields)
            match_key = self.matcher.match_key(kind, fields)
            saved = self.store.insert(kind.name, match_key, prepare_record(kind, fields))

        return {
            "id": saved.id,
            "status": "created",
            "message": f"New {kind.item_key} created",
        }
