"""Tests for the local snapshot reader."""

import json
import tempfile
from pathlib import Path

from noticeboard_sync.sync.entities import MEDIA, NOTICES, REPORTS
from noticeboard_sync.sync.local_cache import LocalCacheReader


class TestLocalCacheReader:
    """Tests for LocalCacheReader."""

    def setup_method(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.cache_dir = Path(self.temp_dir.name)
        self.reader = LocalCacheReader(self.cache_dir)

    def teardown_method(self):
        self.temp_dir.cleanup()

    def _write(self, name: str, content: str) -> None:
        (self.cache_dir / name).write_text(content, encoding="utf-8")

    def test_path_for(self):
        assert self.reader.path_for(REPORTS) == self.cache_dir / "local_reports.json"

    def test_missing_snapshot_reads_empty(self):
        assert self.reader.read(NOTICES) == []

    def test_corrupt_snapshot_reads_empty(self):
        self._write("local_notices.json", "{not json")

        assert self.reader.read(NOTICES) == []

    def test_non_object_snapshot_reads_empty(self):
        self._write("local_media.json", "[1, 2, 3]")

        assert self.reader.read(MEDIA) == []

    def test_missing_key_reads_empty(self):
        self._write("local_media.json", json.dumps({"notices": [{"title": "x"}]}))

        assert self.reader.read(MEDIA) == []

    def test_non_list_value_reads_empty(self):
        self._write("local_media.json", json.dumps({"media": {"title": "x"}}))

        assert self.reader.read(MEDIA) == []

    def test_reads_records_in_stored_order(self):
        self._write(
            "local_reports.json",
            json.dumps({"reports": [{"id": "1", "title": "First"}, {"id": "2", "title": "Second"}]}),
        )

        records = self.reader.read(REPORTS)

        assert [r.title for r in records] == ["First", "Second"]
        assert all(r.kind is REPORTS for r in records)

    def test_non_object_entries_are_skipped(self):
        self._write("local_media.json", json.dumps({"media": ["junk", {"title": "Pic"}, None]}))

        records = self.reader.read(MEDIA)

        assert [r.title for r in records] == ["Pic"]

    def test_read_does_not_modify_snapshot(self):
        content = json.dumps({"notices": [{"id": "n1", "title": "Hello"}]})
        self._write("local_notices.json", content)

        self.reader.read(NOTICES)

        assert (self.cache_dir / "local_notices.json").read_text(encoding="utf-8") == content
