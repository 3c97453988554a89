"""Entity kinds synced by the pipeline, and the record type that crosses the wire.

Each kind names its snapshot key, the key used for failed entries in a
``sync-local`` response, and the MatchKey fields the server deduplicates on.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Mapping, Optional

__all__ = [
    "EntityKind",
    "EntityRecord",
    "NOTICES",
    "REPORTS",
    "MEDIA",
    "ENTITY_KINDS",
    "IDENTITY_FIELDS",
    "get_kind",
    "get_path",
    "strip_identity",
]

# Local-only identity; the server assigns its own.
IDENTITY_FIELDS = frozenset({"id", "_id"})

_MISSING = object()


@dataclass(frozen=True)
class EntityKind:
    """Schema descriptor for one syncable entity kind."""

    name: str
    item_key: str
    match_fields: tuple[str, ...]
    title_field: str = "title"

    @property
    def endpoint(self) -> str:
        return f"api/{self.name}/sync-local"

    @property
    def snapshot_file(self) -> str:
        return f"local_{self.name}.json"

    def __str__(self) -> str:
        return self.name


NOTICES = EntityKind(
    name="notices",
    item_key="notice",
    match_fields=(
        "title",
        "noticeInfo.organisationName",
        "eventSchedule.dateFromStart",
        "eventSchedule.dateToEnd",
    ),
)

REPORTS = EntityKind(
    name="reports",
    item_key="report",
    match_fields=("title", "reportInfo.dateCreated", "reportInfo.timeCreated"),
)

MEDIA = EntityKind(
    name="media",
    item_key="media",
    match_fields=("title", "url", "type"),
)

ENTITY_KINDS: tuple[EntityKind, ...] = (NOTICES, REPORTS, MEDIA)


def get_kind(name: str) -> EntityKind:
    """Look up an entity kind by name."""
    for kind in ENTITY_KINDS:
        if kind.name == name:
            return kind
    raise KeyError(f"Unknown entity kind: {name}")


def get_path(fields: Mapping[str, Any], path: str, default: Any = None) -> Any:
    """Read a dotted path (``noticeInfo.organisationName``) from nested mappings."""
    current: Any = fields
    for part in path.split("."):
        if not isinstance(current, Mapping):
            return default
        current = current.get(part, _MISSING)
        if current is _MISSING:
            return default
    return current


def strip_identity(fields: Mapping[str, Any]) -> dict:
    """Return a copy of ``fields`` without local identity fields."""
    return {k: v for k, v in fields.items() if k not in IDENTITY_FIELDS}


@dataclass(frozen=True)
class EntityRecord:
    """One locally cached record, tagged with its kind."""

    kind: EntityKind
    fields: Mapping[str, Any]

    @classmethod
    def from_snapshot(cls, kind: EntityKind, item: Mapping[str, Any]) -> "EntityRecord":
        return cls(kind=kind, fields=MappingProxyType(dict(item)))

    @property
    def local_id(self) -> Optional[str]:
        value = self.fields.get("id", self.fields.get("_id"))
        return str(value) if value is not None else None

    @property
    def title(self) -> Optional[str]:
        return self.fields.get(self.kind.title_field)

    def match_key(self) -> tuple:
        return tuple(get_path(self.fields, path) for path in self.kind.match_fields)

    def to_payload(self) -> dict:
        """Wire form: all domain fields, identity removed."""
        return strip_identity(self.fields)
