"""Layout Store Module - Persistent Storage for the Agent Network Layout.

This module provides storage abstraction for the single most-recent layout:
- A key-value store interface (in-memory and JSON-file implementations)
- ``LayoutPersistence`` reading/writing the mode and custom positions
  under two stable keys

Stored format:
    "layoutMode"      -> one of the five mode strings
    "layoutPositions" -> JSON object {node_id: {"x": number, "y": number}}

Both keys are independently optional. Malformed stored data is reported as
absent (and logged) so callers can fall back to the circular layout.

Usage:
    from agent_network.core.layout_store import LayoutPersistence, InMemoryKeyValueStore

    persistence = LayoutPersistence(InMemoryKeyValueStore())
    persistence.save_mode(LayoutMode.CUSTOM)
    persistence.save_positions({"doctor": NodePosition(x=500, y=300)})

    persistence.load_mode()        # LayoutMode.CUSTOM
    persistence.load_positions()   # {"doctor": NodePosition(x=500.0, y=300.0)}
"""

import json
import logging
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Optional, Union

from pydantic import TypeAdapter, ValidationError

from agent_network.models.layout_metadata import (
    LayoutMode,
    NodePosition,
    PersistedLayout,
    positions_to_dict,
)

logger = logging.getLogger(__name__)

LAYOUT_MODE_KEY = "layoutMode"
LAYOUT_POSITIONS_KEY = "layoutPositions"

_POSITIONS_ADAPTER = TypeAdapter(Dict[str, NodePosition])


class KeyValueStore(ABC):
    """Durable string key-value storage."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Return the stored value, or None if the key is absent."""
        ...

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store a value under ``key``."""
        ...

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Remove a key. Returns True if it existed."""
        ...


class InMemoryKeyValueStore(KeyValueStore):
    """Process-local store, used by tests and ephemeral sessions."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})
        self._lock = threading.RLock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._data.pop(key, None) is not None

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._data

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)


class JsonFileKeyValueStore(KeyValueStore):
    """Key-value store kept in a single JSON document on disk.

    The whole document is rewritten on every ``set`` with sorted keys for
    git-friendly diffs. An unreadable or non-object document is treated as
    empty and replaced on the next write.
    """

    def __init__(self, path: Union[str, Path]):
        """Initialize the store.

        Args:
            path: JSON file location (created on first write)
        """
        self.path = Path(path)
        self._lock = threading.RLock()

    def _read(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Layout store {self.path} unreadable, treating as empty: {e}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Layout store {self.path} is not a JSON object, treating as empty")
            return {}
        return {str(k): v for k, v in data.items() if isinstance(v, str)}

    def _write(self, data: Dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, sort_keys=True)

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._read().get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            data = self._read()
            data[key] = value
            self._write(data)
            logger.debug(f"Wrote {key} to {self.path}")

    def delete(self, key: str) -> bool:
        with self._lock:
            data = self._read()
            if key not in data:
                return False
            del data[key]
            self._write(data)
            return True


class LayoutPersistence:
    """Load and save the layout mode and custom node positions.

    Loading never raises on bad data: invalid JSON, wrong shapes, unknown
    modes and non-finite coordinates all read as "absent".

    Example:
        persistence = LayoutPersistence(JsonFileKeyValueStore("layout.json"))
        mode = persistence.load_mode() or LayoutMode.CIRCULAR
    """

    def __init__(self, store: Optional[KeyValueStore] = None):
        """Initialize with a key-value store.

        Args:
            store: Backing store (in-memory if not provided)
        """
        self.store = store if store is not None else InMemoryKeyValueStore()

    def load_mode(self) -> Optional[LayoutMode]:
        """Read the saved layout mode.

        Returns:
            LayoutMode, or None if absent or not a known mode
        """
        raw = self.store.get(LAYOUT_MODE_KEY)
        if raw is None:
            return None
        mode = LayoutMode.parse(raw)
        if mode is None:
            logger.warning(f"Ignoring unknown stored layout mode: {raw!r}")
        return mode

    def save_mode(self, mode: LayoutMode) -> None:
        """Persist the active layout mode."""
        mode = LayoutMode(mode)
        self.store.set(LAYOUT_MODE_KEY, mode.value)
        logger.debug(f"Saved layout mode {mode.value}")

    def load_positions(self) -> Optional[Dict[str, NodePosition]]:
        """Read the saved custom positions.

        Returns:
            Positions keyed by node ID, or None if absent or malformed
        """
        raw = self.store.get(LAYOUT_POSITIONS_KEY)
        if raw is None:
            return None
        try:
            data = json.loads(raw)
        except (TypeError, ValueError) as e:
            logger.warning(f"Stored layout positions are not valid JSON: {e}")
            return None
        if not isinstance(data, dict):
            logger.warning("Stored layout positions are not a JSON object")
            return None
        try:
            return _POSITIONS_ADAPTER.validate_python(data)
        except ValidationError as e:
            logger.warning(f"Stored layout positions failed validation: {e.error_count()} error(s)")
            return None

    def save_positions(self, positions: Dict[str, NodePosition]) -> None:
        """Persist custom positions (replaces any previous arrangement)."""
        payload = json.dumps(positions_to_dict(positions), sort_keys=True)
        self.store.set(LAYOUT_POSITIONS_KEY, payload)
        logger.debug(f"Saved positions for {len(positions)} node(s)")

    def load(self) -> Optional[PersistedLayout]:
        """Read mode and positions together.

        Returns:
            PersistedLayout, or None if no valid mode is stored
        """
        mode = self.load_mode()
        if mode is None:
            return None
        return PersistedLayout(mode=mode, positions=self.load_positions() or {})

    def save(self, layout: PersistedLayout) -> None:
        """Persist positions, then mode."""
        self.save_positions(layout.positions)
        self.save_mode(layout.mode)

    def clear(self) -> None:
        """Forget the saved arrangement."""
        self.store.delete(LAYOUT_POSITIONS_KEY)
        self.store.delete(LAYOUT_MODE_KEY)
        logger.info("Cleared saved layout")


# Factory function
def create_layout_persistence(store_path: Optional[str] = None) -> LayoutPersistence:
    """Create layout persistence backed by a JSON file or memory.

    Args:
        store_path: JSON file path; empty or None keeps layouts in memory

    Returns:
        LayoutPersistence instance
    """
    if store_path:
        return LayoutPersistence(JsonFileKeyValueStore(store_path))
    return LayoutPersistence(InMemoryKeyValueStore())


__all__ = [
    "LAYOUT_MODE_KEY",
    "LAYOUT_POSITIONS_KEY",
    "KeyValueStore",
    "InMemoryKeyValueStore",
    "JsonFileKeyValueStore",
    "LayoutPersistence",
    "create_layout_persistence",
]
