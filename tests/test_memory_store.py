"""Tests for the in-memory store and its file persistence."""

import tempfile
from pathlib import Path

import pytest

from couchlog.models import LOGS_BY_TIMESTAMP, ViewQuery
from couchlog.store import DocumentStore, MemoryStore, open_store
from couchlog.config import TransportConfig


def _doc(ts: str, **fields):
    return {"timestamp": ts, "message": "m", "level": "info", **fields}


def test_memory_store_satisfies_protocol():
    assert isinstance(MemoryStore(), DocumentStore)


def test_open_store_picks_backend(tmp_path):
    store = open_store(TransportConfig(backend="memory", data_dir=str(tmp_path)))
    assert isinstance(store, MemoryStore)


def test_set_overwrites_and_returns_increasing_cas():
    store = MemoryStore()
    first = store.set("k", _doc("2025-02-11T12:00:00.000000Z"))
    second = store.set("k", _doc("2025-02-11T12:00:00.000000Z", extra=1))
    assert second > first
    assert store.get("k")["extra"] == 1
    assert store.get("missing") is None


def test_set_stores_a_copy():
    store = MemoryStore()
    doc = _doc("2025-02-11T12:00:00.000000Z")
    store.set("k", doc)
    doc["message"] = "changed"
    assert store.get("k")["message"] == "m"


def test_view_skips_documents_without_key_field():
    store = MemoryStore()
    store.ensure_view(LOGS_BY_TIMESTAMP)
    store.set("a", _doc("2025-02-11T12:00:00.000000Z"))
    store.set("b", {"message": "no timestamp"})
    rows = store.view_query(LOGS_BY_TIMESTAMP, ViewQuery())
    assert [r["id"] for r in rows] == ["a"]


def test_view_query_without_docs_has_no_envelope():
    store = MemoryStore()
    store.ensure_view(LOGS_BY_TIMESTAMP)
    store.set("a", _doc("2025-02-11T12:00:00.000000Z"))
    [row] = store.view_query(LOGS_BY_TIMESTAMP, ViewQuery(include_docs=False))
    assert row == {"id": "a", "key": "2025-02-11T12:00:00.000000Z", "value": None}


def test_view_descending_bounds():
    store = MemoryStore()
    store.ensure_view(LOGS_BY_TIMESTAMP)
    for minute in range(4):
        store.set(f"k{minute}", _doc(f"2025-02-11T12:0{minute}:00.000000Z"))
    rows = store.view_query(
        LOGS_BY_TIMESTAMP,
        ViewQuery(
            startkey="2025-02-11T12:02:00.000000Z",
            endkey="2025-02-11T12:01:00.000000Z",
            descending=True,
        ),
    )
    assert [r["id"] for r in rows] == ["k2", "k1"]


def test_persistence_roundtrip():
    with tempfile.TemporaryDirectory() as tmp:
        data_dir = Path(tmp) / "couchlog"
        store1 = MemoryStore(data_dir=str(data_dir))
        store1.set("k1", _doc("2025-02-11T12:00:00.000000Z", user="a"))
        store1.set("k2", _doc("2025-02-11T12:01:00.000000Z", user="b"))
        assert (data_dir / "documents.json").is_file()

        store2 = MemoryStore(data_dir=str(data_dir))
        assert store2.get("k1")["user"] == "a"
        store2.ensure_view(LOGS_BY_TIMESTAMP)
        rows = store2.view_query(LOGS_BY_TIMESTAMP, ViewQuery())
        assert [r["id"] for r in rows] == ["k1", "k2"]


def test_corrupt_persistence_file_is_ignored(tmp_path):
    (tmp_path / "documents.json").write_text("{not json", encoding="utf-8")
    store = MemoryStore(data_dir=str(tmp_path))
    assert store.get("anything") is None


def test_failed_save_leaves_store_unchanged(tmp_path):
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("occupied")
    store = MemoryStore(str(blocker))
    store.ensure_view(LOGS_BY_TIMESTAMP)

    with pytest.raises(OSError):
        store.set("k", _doc("2025-02-11T12:00:00.000000Z"))

    assert store.get("k") is None
    assert store.view_query(LOGS_BY_TIMESTAMP, ViewQuery()) == []
