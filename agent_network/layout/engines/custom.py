"""Custom layout: the user's saved arrangement, used verbatim."""

import random
from typing import Any, Dict, Optional, Sequence

from agent_network.layout.engines.base import (
    CancelCheck,
    IncompleteLayoutError,
    LayoutEngine,
)
from agent_network.models.graph_model import AgentNode
from agent_network.models.layout_metadata import CanvasBounds, NodePosition


class CustomLayoutEngine(LayoutEngine):
    """Returns saved positions for every catalog node.

    Raises ``IncompleteLayoutError`` when any node lacks a saved position,
    so the caller can fall back to circular.
    """

    @property
    def name(self) -> str:
        return "custom"

    def compute(
        self,
        nodes: Sequence[AgentNode],
        options: Optional[Dict[str, Any]] = None,
        *,
        bounds: CanvasBounds,
        persisted: Optional[Dict[str, NodePosition]] = None,
        rng: Optional[random.Random] = None,
        cancel: Optional[CancelCheck] = None,
    ) -> Dict[str, NodePosition]:
        saved = persisted or {}
        missing = [node.id for node in nodes if node.id not in saved]
        if missing or not saved:
            raise IncompleteLayoutError(missing)
        return {
            node.id: NodePosition(x=saved[node.id].x, y=saved[node.id].y)
            for node in nodes
        }
