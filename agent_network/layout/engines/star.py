"""Star layout: a hub node at the center, all others on a ring around it."""

import logging
import random
from typing import Any, Dict, Optional, Sequence

from agent_network.layout.engines.base import CancelCheck, LayoutEngine, ring_positions
from agent_network.models.graph_model import AgentNode
from agent_network.models.layout_metadata import CanvasBounds, NodePosition

logger = logging.getLogger(__name__)

STAR_LAYOUT_OPTIONS = {
    "center": None,
    "radius": 220.0,
    # Collaboration hub of the default catalog
    "hub": "doctor",
}


class StarLayoutEngine(LayoutEngine):
    """Hub at the center; remaining nodes spread like the circular layout."""

    default_options = STAR_LAYOUT_OPTIONS

    @property
    def name(self) -> str:
        return "star"

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
        if not nodes:
            return {}

        opts = self.resolve_options(options)
        center = self.resolve_center(opts, bounds)

        node_ids = [node.id for node in nodes]
        hub = opts["hub"]
        if hub not in node_ids:
            logger.warning(f"Star hub {hub} not in catalog, using {node_ids[0]}")
            hub = node_ids[0]

        positions = {hub: NodePosition(x=center.x, y=center.y)}
        others = [node_id for node_id in node_ids if node_id != hub]
        positions.update(ring_positions(others, center, float(opts["radius"])))
        return positions
