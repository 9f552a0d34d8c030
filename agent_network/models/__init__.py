"""Data models for the agent network engine.

Pydantic schemas for the agent catalog, canvas positions, layout modes,
persisted layouts, flow events and activity entries.
"""

from .graph_model import (
    AgentNode,
    DEFAULT_AGENTS,
    GraphModel,
    NodeStatus,
    UnknownNodeError,
)
from .layout_metadata import (
    CanvasBounds,
    LayoutMode,
    LayoutResult,
    NodePosition,
    PersistedLayout,
    positions_to_dict,
)
from .flow import (
    ActivityEntry,
    FLOW_LABELS,
    FlowEvent,
)

__all__ = [
    # Catalog
    "AgentNode",
    "DEFAULT_AGENTS",
    "GraphModel",
    "NodeStatus",
    "UnknownNodeError",

    # Layout
    "CanvasBounds",
    "LayoutMode",
    "LayoutResult",
    "NodePosition",
    "PersistedLayout",
    "positions_to_dict",

    # Flows and activity
    "ActivityEntry",
    "FLOW_LABELS",
    "FlowEvent",
]
