"""Layout engines registry.

Available engines:
- circular: evenly spaced ring around the canvas center
- hierarchical: explicit level table, stacked top-to-bottom
- force-directed: bounded spring-electric relaxation
- star: hub at the center, others on a ring
- custom: saved per-node positions
"""

import logging
from typing import Any, Dict

from agent_network.layout.engines.base import (
    IncompleteLayoutError,
    LayoutCancelledError,
    LayoutEngine,
)
from agent_network.layout.engines.circular import CIRCULAR_LAYOUT_OPTIONS, CircularLayoutEngine
from agent_network.layout.engines.custom import CustomLayoutEngine
from agent_network.layout.engines.force_directed import (
    FORCE_DIRECTED_LAYOUT_OPTIONS,
    ForceDirectedLayoutEngine,
)
from agent_network.layout.engines.hierarchical import (
    DEFAULT_LEVELS,
    HIERARCHICAL_LAYOUT_OPTIONS,
    HierarchicalLayoutEngine,
)
from agent_network.layout.engines.star import STAR_LAYOUT_OPTIONS, StarLayoutEngine

logger = logging.getLogger(__name__)

# Engine registry, keyed by layout mode value
ENGINES = {
    "circular": CircularLayoutEngine,
    "hierarchical": HierarchicalLayoutEngine,
    "force-directed": ForceDirectedLayoutEngine,
    "star": StarLayoutEngine,
    "custom": CustomLayoutEngine,
}

# Per-mode defaults, for display and for building overrides
DEFAULT_LAYOUT_OPTIONS: Dict[str, Dict[str, Any]] = {
    "circular": CIRCULAR_LAYOUT_OPTIONS,
    "hierarchical": HIERARCHICAL_LAYOUT_OPTIONS,
    "force-directed": FORCE_DIRECTED_LAYOUT_OPTIONS,
    "star": STAR_LAYOUT_OPTIONS,
    "custom": {},
}


def get_engine(name: str) -> LayoutEngine:
    """Get a layout engine instance by name.

    Unknown names fall back to the circular engine rather than failing.

    Args:
        name: Engine name ('circular', 'hierarchical', 'force-directed',
            'star', 'custom')

    Returns:
        Layout engine instance
    """
    engine_cls = ENGINES.get(name)
    if engine_cls is None:
        logger.warning(f"Unknown layout engine: {name}. Falling back to circular")
        engine_cls = CircularLayoutEngine
    return engine_cls()


__all__ = [
    "LayoutEngine",
    "LayoutCancelledError",
    "IncompleteLayoutError",
    "CircularLayoutEngine",
    "HierarchicalLayoutEngine",
    "ForceDirectedLayoutEngine",
    "StarLayoutEngine",
    "CustomLayoutEngine",
    "DEFAULT_LEVELS",
    "DEFAULT_LAYOUT_OPTIONS",
    "ENGINES",
    "get_engine",
]
