"""Read-only source of recent agent activity.

The engine never computes activity; it shows whatever an external feed
returns, newest first and capped to a small count.
"""

import logging
import threading
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Iterable, List, Mapping, Optional, Union

from agent_network.models.flow import ActivityEntry

logger = logging.getLogger(__name__)

DEFAULT_ACTIVITY_LIMIT = 10


def newest_first(entries: Iterable[ActivityEntry], limit: int) -> List[ActivityEntry]:
    """Sort entries newest first and keep at most ``limit``."""
    ordered = sorted(entries, key=lambda entry: entry.timestamp, reverse=True)
    return ordered[:max(limit, 0)]


class ActivityFeed(ABC):
    """External activity log."""

    @abstractmethod
    def recent(self, limit: int = DEFAULT_ACTIVITY_LIMIT) -> List[ActivityEntry]:
        """Return up to ``limit`` entries, most recent first."""
        ...


class StaticActivityFeed(ActivityFeed):
    """In-process feed that other components (or tests) append to."""

    def __init__(self, entries: Optional[Iterable[Union[ActivityEntry, Mapping[str, Any]]]] = None):
        self._entries: List[ActivityEntry] = []
        self._lock = threading.RLock()
        for entry in entries or []:
            self.add(entry)

    def add(self, entry: Union[ActivityEntry, Mapping[str, Any]]) -> ActivityEntry:
        """Record an entry (dicts are validated into ``ActivityEntry``)."""
        if not isinstance(entry, ActivityEntry):
            entry = ActivityEntry(**entry)
        with self._lock:
            self._entries.append(entry)
        return entry

    def record(
        self,
        agent_name: str,
        action: str,
        confidence_score: Optional[float] = None,
        timestamp: Optional[datetime] = None,
    ) -> ActivityEntry:
        """Convenience wrapper around ``add``."""
        return self.add(ActivityEntry(
            agent_name=agent_name,
            action=action,
            confidence_score=confidence_score,
            timestamp=timestamp or datetime.now(),
        ))

    def recent(self, limit: int = DEFAULT_ACTIVITY_LIMIT) -> List[ActivityEntry]:
        with self._lock:
            return newest_first(self._entries, limit)


__all__ = [
    "DEFAULT_ACTIVITY_LIMIT",
    "ActivityFeed",
    "StaticActivityFeed",
    "newest_first",
]
