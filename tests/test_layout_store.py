"""Tests for layout persistence.

Tests cover:
- In-memory and JSON-file key-value stores
- Mode and position round trips under the stable keys
- Malformed stored data reads as absent (and the session falls back to circular)
"""

import json

import pytest

from agent_network.core.layout_store import (
    LAYOUT_MODE_KEY,
    LAYOUT_POSITIONS_KEY,
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
    LayoutPersistence,
    create_layout_persistence,
)
from agent_network.core.view_model import AgentNetworkSession
from agent_network.models.layout_metadata import LayoutMode, NodePosition, PersistedLayout


@pytest.fixture
def store():
    return InMemoryKeyValueStore()


@pytest.fixture
def persistence(store):
    return LayoutPersistence(store)


class TestInMemoryStore:

    def test_get_set_delete(self, store):
        assert store.get("k") is None
        store.set("k", "v")
        assert store.get("k") == "v"
        assert "k" in store
        assert store.delete("k") is True
        assert store.delete("k") is False
        assert len(store) == 0


class TestJsonFileStore:
    """Test the on-disk store."""

    def test_round_trip_across_instances(self, tmp_path):
        path = tmp_path / "layout.json"
        JsonFileKeyValueStore(path).set("layoutMode", "star")
        assert JsonFileKeyValueStore(path).get("layoutMode") == "star"

    def test_written_with_sorted_keys(self, tmp_path):
        path = tmp_path / "layout.json"
        store = JsonFileKeyValueStore(path)
        store.set("zeta", "1")
        store.set("alpha", "2")
        text = path.read_text()
        assert text.index("alpha") < text.index("zeta")
        assert json.loads(text) == {"alpha": "2", "zeta": "1"}

    def test_creates_parent_directories(self, tmp_path):
        path = tmp_path / "nested" / "dir" / "layout.json"
        JsonFileKeyValueStore(path).set("k", "v")
        assert path.exists()

    def test_missing_file_is_empty(self, tmp_path):
        store = JsonFileKeyValueStore(tmp_path / "absent.json")
        assert store.get("layoutMode") is None
        assert store.delete("layoutMode") is False

    @pytest.mark.parametrize("content", ["{not json", "[1, 2, 3]", ""])
    def test_unreadable_file_is_empty(self, tmp_path, content):
        path = tmp_path / "layout.json"
        path.write_text(content)
        store = JsonFileKeyValueStore(path)
        assert store.get("layoutMode") is None
        store.set("layoutMode", "circular")
        assert json.loads(path.read_text()) == {"layoutMode": "circular"}


class TestLayoutPersistence:
    """Test LayoutPersistence on top of a store."""

    def test_absent(self, persistence):
        assert persistence.load_mode() is None
        assert persistence.load_positions() is None
        assert persistence.load() is None

    def test_mode_round_trip(self, persistence, store):
        persistence.save_mode(LayoutMode.FORCE_DIRECTED)
        assert store.get(LAYOUT_MODE_KEY) == "force-directed"
        assert persistence.load_mode() is LayoutMode.FORCE_DIRECTED

    def test_positions_round_trip(self, persistence, store):
        positions = {
            "doctor": NodePosition(x=500, y=300),
            "imaging": NodePosition(x=120.5, y=80.25),
        }
        persistence.save_positions(positions)
        assert json.loads(store.get(LAYOUT_POSITIONS_KEY)) == {
            "doctor": {"x": 500.0, "y": 300.0},
            "imaging": {"x": 120.5, "y": 80.25},
        }
        assert persistence.load_positions() == positions

    def test_load_combined(self, persistence):
        persistence.save(PersistedLayout(
            mode=LayoutMode.CUSTOM,
            positions={"a": NodePosition(x=1, y=2)},
        ))
        layout = persistence.load()
        assert layout.mode is LayoutMode.CUSTOM
        assert layout.positions == {"a": NodePosition(x=1, y=2)}

    def test_mode_without_positions(self, persistence):
        persistence.save_mode(LayoutMode.STAR)
        layout = persistence.load()
        assert layout.mode is LayoutMode.STAR
        assert layout.positions == {}

    def test_clear(self, persistence, store):
        persistence.save_mode(LayoutMode.CUSTOM)
        persistence.save_positions({"a": NodePosition(x=1, y=2)})
        persistence.clear()
        assert len(store) == 0

    def test_unknown_mode_is_absent(self, store, persistence):
        store.set(LAYOUT_MODE_KEY, "spiral")
        assert persistence.load_mode() is None

    @pytest.mark.parametrize("raw", [
        "{this is not json",
        "[]",
        '"doctor"',
        '{"doctor": {"x": 1}}',
        '{"doctor": {"x": "left", "y": 2}}',
        '{"doctor": [1, 2]}',
        '{"doctor": {"x": NaN, "y": 2}}',
    ])
    def test_malformed_positions_are_absent(self, store, persistence, raw):
        store.set(LAYOUT_POSITIONS_KEY, raw)
        assert persistence.load_positions() is None

    def test_malformed_positions_logged(self, store, persistence, caplog):
        store.set(LAYOUT_POSITIONS_KEY, "{oops")
        with caplog.at_level("WARNING"):
            persistence.load_positions()
        assert "not valid JSON" in caplog.text


class TestFallbackOnCorruptStore:
    """A corrupt saved arrangement must never crash the visualization."""

    def test_invalid_positions_json_selects_circular(self, store):
        store.set(LAYOUT_MODE_KEY, "custom")
        store.set(LAYOUT_POSITIONS_KEY, "{definitely not json")
        session = AgentNetworkSession(persistence=LayoutPersistence(store))

        result = session.initialize()

        assert result.mode is LayoutMode.CIRCULAR
        assert session.mode is LayoutMode.CIRCULAR
        assert len(session.positions) == len(session.graph)

    def test_incomplete_positions_select_circular(self, store):
        persistence = LayoutPersistence(store)
        persistence.save_mode(LayoutMode.CUSTOM)
        persistence.save_positions({"doctor": NodePosition(x=100, y=100)})
        session = AgentNetworkSession(persistence=persistence)

        assert session.initialize().mode is LayoutMode.CIRCULAR


class TestFactory:

    def test_in_memory_by_default(self):
        persistence = create_layout_persistence()
        assert isinstance(persistence.store, InMemoryKeyValueStore)

    def test_file_backed(self, tmp_path):
        persistence = create_layout_persistence(str(tmp_path / "layout.json"))
        assert isinstance(persistence.store, JsonFileKeyValueStore)
        persistence.save_mode(LayoutMode.HIERARCHICAL)
        assert create_layout_persistence(str(tmp_path / "layout.json")).load_mode() \
            is LayoutMode.HIERARCHICAL
