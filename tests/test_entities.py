"""Tests for entity kinds and records."""

import pytest

from noticeboard_sync.sync.entities import (
    ENTITY_KINDS,
    MEDIA,
    NOTICES,
    REPORTS,
    EntityRecord,
    get_kind,
    get_path,
    strip_identity,
)


class TestEntityKinds:
    """Tests for the entity kind descriptors."""

    def test_three_kinds_in_order(self):
        assert [k.name for k in ENTITY_KINDS] == ["notices", "reports", "media"]

    @pytest.mark.parametrize(
        "kind,endpoint,snapshot",
        [
            (NOTICES, "api/notices/sync-local", "local_notices.json"),
            (REPORTS, "api/reports/sync-local", "local_reports.json"),
            (MEDIA, "api/media/sync-local", "local_media.json"),
        ],
    )
    def test_endpoint_and_snapshot(self, kind, endpoint, snapshot):
        assert kind.endpoint == endpoint
        assert kind.snapshot_file == snapshot

    def test_failed_item_keys(self):
        assert (NOTICES.item_key, REPORTS.item_key, MEDIA.item_key) == ("notice", "report", "media")

    def test_get_kind(self):
        assert get_kind("reports") is REPORTS
        with pytest.raises(KeyError):
            get_kind("events")


class TestGetPath:
    """Tests for dotted path lookup."""

    def test_nested(self):
        assert get_path({"a": {"b": {"c": 1}}}, "a.b.c") == 1

    def test_missing_returns_default(self):
        assert get_path({"a": {}}, "a.b") is None
        assert get_path({"a": 3}, "a.b", default="x") == "x"

    def test_explicit_none_is_kept(self):
        assert get_path({"a": None}, "a", default="x") is None


class TestStripIdentity:
    """Tests for strip_identity."""

    def test_removes_id_and_underscore_id(self):
        fields = {"id": "L1", "_id": "abc", "title": "T"}

        assert strip_identity(fields) == {"title": "T"}

    def test_input_is_not_mutated(self):
        fields = {"id": "L1", "title": "T"}

        strip_identity(fields)

        assert fields == {"id": "L1", "title": "T"}


class TestEntityRecord:
    """Tests for EntityRecord."""

    def test_payload_has_no_identity(self):
        record = EntityRecord.from_snapshot(MEDIA, {"id": "local-1", "title": "Pic", "url": "/uploads/a.png"})

        payload = record.to_payload()

        assert "id" not in payload
        assert "_id" not in payload
        assert payload == {"title": "Pic", "url": "/uploads/a.png"}

    def test_snapshot_fields_are_read_only(self):
        record = EntityRecord.from_snapshot(MEDIA, {"title": "Pic"})

        with pytest.raises(TypeError):
            record.fields["title"] = "Other"

    def test_snapshot_copy_is_detached(self):
        item = {"title": "Pic"}
        record = EntityRecord.from_snapshot(MEDIA, item)

        item["title"] = "Changed"

        assert record.title == "Pic"

    def test_local_id(self):
        assert EntityRecord.from_snapshot(MEDIA, {"_id": 7}).local_id == "7"
        assert EntityRecord.from_snapshot(MEDIA, {"title": "x"}).local_id is None

    def test_notice_match_key(self):
        record = EntityRecord.from_snapshot(
            NOTICES,
            {
                "title": "Annual Day",
                "noticeInfo": {"organisationName": "School", "noticeType": "EVENT"},
                "eventSchedule": {"dateFromStart": "2024-03-01", "dateToEnd": "2024-03-02"},
            },
        )

        assert record.match_key() == ("Annual Day", "School", "2024-03-01", "2024-03-02")
