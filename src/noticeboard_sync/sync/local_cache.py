"""Reads the per-kind local snapshots written by the offline client."""

import json
import logging
from pathlib import Path
from typing import Optional

from .entities import EntityKind, EntityRecord

__all__ = ["LocalCacheReader"]

logger = logging.getLogger(__name__)


class LocalCacheReader:
    """File-backed snapshot reader.

    Each kind lives in ``local_<kind>.json`` shaped ``{"<kind>": [record, ...]}``.
    A missing or unreadable snapshot reads as empty.
    """

    def __init__(self, cache_dir: Path):
        self.cache_dir = Path(cache_dir)

    def path_for(self, kind: EntityKind) -> Path:
        return self.cache_dir / kind.snapshot_file

    def read(self, kind: EntityKind) -> list[EntityRecord]:
        """Load the snapshot for ``kind`` (oldest first, as stored)."""
        data = self._load(self.path_for(kind))
        if data is None:
            return []

        items = data.get(kind.name, [])
        if not isinstance(items, list):
            logger.warning(f"Local {kind} snapshot has no record list, ignoring")
            return []

        records = []
        for index, item in enumerate(items):
            if not isinstance(item, dict):
                logger.warning(f"Skipping non-object entry {index} in local {kind} snapshot")
                continue
            records.append(EntityRecord.from_snapshot(kind, item))
        return records

    @staticmethod
    def _load(path: Path) -> Optional[dict]:
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as e:
            logger.warning(f"Cannot read local snapshot {path}: {e}")
            return None

        if not isinstance(data, dict):
            logger.warning(f"Local snapshot {path} is not a JSON object, ignoring")
            return None
        return data
