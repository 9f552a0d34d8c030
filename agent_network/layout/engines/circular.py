"""Circular layout: nodes evenly spaced on a fixed-radius circle."""

import logging
import random
from typing import Any, Dict, Optional, Sequence

from agent_network.layout.engines.base import CancelCheck, LayoutEngine, ring_positions
from agent_network.models.graph_model import AgentNode
from agent_network.models.layout_metadata import CanvasBounds, NodePosition

logger = logging.getLogger(__name__)

CIRCULAR_LAYOUT_OPTIONS = {
    # None = canvas center
    "center": None,
    "radius": 200.0,
}


class CircularLayoutEngine(LayoutEngine):
    """Places N nodes around the canvas center, first node at the top.

    Deterministic and O(N). Also the fallback for unknown modes and for a
    custom layout without a complete saved arrangement.
    """

    default_options = CIRCULAR_LAYOUT_OPTIONS

    @property
    def name(self) -> str:
        return "circular"

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
        opts = self.resolve_options(options)
        center = self.resolve_center(opts, bounds)
        return ring_positions([node.id for node in nodes], center, float(opts["radius"]))
