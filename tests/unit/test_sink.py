"""Unit tests for the in-memory geometry sink."""

import pytest


class TestInMemoryGeometrySink:
    def test_commit_and_get(self, sink):
        record_id = sink.commit("tower", {"type": "solid", "polygons": []}, {"totalHeight": 30})
        record = sink.get(record_id)
        assert record["name"] == "tower"
        assert record["attributes"] == {"totalHeight": 30}
        assert len(sink) == 1

    def test_ids_are_unique(self, sink):
        first = sink.commit("a", {}, {})
        second = sink.commit("a", {}, {})
        assert first != second
        assert len(sink.list_records()) == 2

    def test_attributes_are_copied(self, sink):
        attributes = {"floors": 3}
        record_id = sink.commit("house", {}, attributes)
        attributes["floors"] = 4
        assert sink.get(record_id)["attributes"]["floors"] == 3

    def test_requires_name(self, sink):
        with pytest.raises(ValueError):
            sink.commit("", {}, {})

    def test_missing_record(self, sink):
        assert sink.get("missing") is None
