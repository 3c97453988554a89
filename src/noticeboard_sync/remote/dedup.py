"""Field-based duplicate detection for submitted records."""

import logging
from typing import Any, Mapping, Optional

from ..errors import ValidationFailure
from ..sync.entities import EntityKind, get_path
from .store import RecordStore, StoredRecord

__all__ = ["DedupMatcher"]

logger = logging.getLogger(__name__)


class DedupMatcher:
    """Finds an existing remote record equivalent to a submitted one.

    Two records with the same MatchKey are the same logical entity, whatever
    their other fields say. Distinct entities that share a key collapse into
    one; that is accepted in exchange for never creating duplicates.
    """

    def __init__(self, store: RecordStore):
        self.store = store

    @staticmethod
    def match_key(kind: EntityKind, fields: Mapping[str, Any]) -> tuple:
        """Build the MatchKey for ``fields``.

        Raises:
            ValidationFailure: If a nested object the key reads from is absent
        """
        for path in kind.match_fields:
            parent, _, _ = path.rpartition(".")
            if parent and not isinstance(get_path(fields, parent), Mapping):
                raise ValidationFailure(f"{parent} is required")
        return tuple(get_path(fields, path) for path in kind.match_fields)

    def find_existing(self, kind: EntityKind, fields: Mapping[str, Any]) -> Optional[StoredRecord]:
        return self.store.find_by_match_key(kind.name, self.match_key(kind, fields))
