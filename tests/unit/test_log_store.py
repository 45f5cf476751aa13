"""Tests for the Log Store — append-only, timestamp-ordered entries."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from vibelog.core.log_store import LogStore
from vibelog.errors import LogEntryExistsError, NotInitializedError, StoreReadError
from vibelog.models.log import ChangeStats, CommitRef


@pytest.fixture
def store(tmp_path: Path, clock) -> LogStore:
    logs = tmp_path / "logs"
    logs.mkdir()
    return LogStore(logs, clock=clock)


class TestLogStore:
    def test_create_assigns_id_and_timestamp(self, store: LogStore, clock):
        entry = store.create("first")
        assert entry.timestamp == int(clock())
        assert entry.id == f"log_{int(clock())}"

    def test_create_persists_camelcase_json(self, store: LogStore, tmp_path: Path):
        entry = store.create(
            "with diff",
            timestamp=100,
            commit_ref=CommitRef(hash="abc"),
            change_stats=ChangeStats(files_changed=2, lines_added=10),
        )
        raw = json.loads((tmp_path / "logs" / f"{entry.id}.json").read_text())
        assert raw["commit"]["hash"] == "abc"
        assert raw["diff"]["filesChanged"] == 2
        assert raw["diff"]["linesAdded"] == 10
        assert "aiSummary" not in raw

    def test_same_second_gets_suffix(self, store: LogStore):
        a = store.create("a", timestamp=100)
        b = store.create("b", timestamp=100)
        c = store.create("c", timestamp=100)
        assert [a.id, b.id, c.id] == ["log_100", "log_100_002", "log_100_003"]

    def test_append_existing_id_rejected(self, store: LogStore, make_entry):
        store.append(make_entry(100))
        with pytest.raises(LogEntryExistsError):
            store.append(make_entry(100, message="rewrite"))
        assert store.get("log_100").message == "work at 100"

    def test_all_sorted_by_timestamp_then_id(self, store: LogStore):
        store.create("late", timestamp=300)
        store.create("early", timestamp=100)
        store.create("early twin", timestamp=100)
        store.create("middle", timestamp=200)
        assert [e.message for e in store.all()] == ["early", "early twin", "middle", "late"]

    def test_since_is_strict(self, store: LogStore):
        store.create("a", timestamp=100)
        store.create("b", timestamp=200)
        store.create("c", timestamp=250)
        assert [e.timestamp for e in store.since(200)] == [250]
        assert [e.timestamp for e in store.since(0)] == [100, 200, 250]

    def test_get_missing_returns_none(self, store: LogStore):
        assert store.get("log_404") is None

    def test_count(self, store: LogStore):
        assert store.count() == 0
        store.create("a", timestamp=1)
        store.create("b", timestamp=2)
        assert store.count() == 2

    def test_missing_directory_not_initialized(self, tmp_path: Path):
        store = LogStore(tmp_path / "nope")
        with pytest.raises(NotInitializedError, match="vibe init"):
            store.all()
        with pytest.raises(NotInitializedError):
            store.create("x")

    def test_malformed_file_is_fatal(self, store: LogStore, tmp_path: Path):
        store.create("good", timestamp=100)
        (tmp_path / "logs" / "log_200.json").write_text("{not json")
        with pytest.raises(StoreReadError):
            store.all()

    def test_schema_violation_is_fatal(self, store: LogStore, tmp_path: Path):
        (tmp_path / "logs" / "log_200.json").write_text(json.dumps({"id": "log_200"}))
        with pytest.raises(StoreReadError, match="Malformed"):
            store.since(0)
