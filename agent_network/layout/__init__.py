"""Layout module for agent network positioning.

This module provides:
- Layout engine abstraction (LayoutEngine protocol)
- Circular, hierarchical, force-directed, star and custom engines
- compute_layout / resolve_layout with circular fallback
"""

from agent_network.layout.compute import compute_layout, resolve_layout
from agent_network.layout.engines import (
    DEFAULT_LAYOUT_OPTIONS,
    LayoutCancelledError,
    LayoutEngine,
    get_engine,
)

__all__ = [
    "LayoutEngine",
    "LayoutCancelledError",
    "DEFAULT_LAYOUT_OPTIONS",
    "compute_layout",
    "get_engine",
    "resolve_layout",
]
