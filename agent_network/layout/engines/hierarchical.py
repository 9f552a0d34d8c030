"""Hierarchical layout from an explicit level table.

Levels are configuration, not inferred from the graph. Nodes absent from the
level table are left out of the result.
"""

import logging
import random
from typing import Any, Dict, Optional, Sequence

from agent_network.layout.engines.base import CancelCheck, LayoutEngine
from agent_network.models.graph_model import AgentNode
from agent_network.models.layout_metadata import CanvasBounds, NodePosition

logger = logging.getLogger(__name__)

# Triage at the top, outcome agents at the bottom
DEFAULT_LEVELS = [
    ["rapidcare"],
    ["facility", "imaging"],
    ["carepilot", "medicine", "doctor", "other"],
    ["followup", "surveillance"],
]

HIERARCHICAL_LAYOUT_OPTIONS = {
    "levels": DEFAULT_LEVELS,
    "width": 900.0,
    "top": 100.0,
    "level_spacing": 150.0,
}


class HierarchicalLayoutEngine(LayoutEngine):
    """Stacks levels top-to-bottom and spaces each level evenly across ``width``.

    A node's y coordinate depends only on its level index:
    ``y = top + level * level_spacing``. Within a level of k nodes,
    node i sits at ``x = width / (k + 1) * (i + 1)``.
    """

    default_options = HIERARCHICAL_LAYOUT_OPTIONS

    @property
    def name(self) -> str:
        return "hierarchical"

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
        known = {node.id for node in nodes}
        width = float(opts["width"])
        top = float(opts["top"])
        level_spacing = float(opts["level_spacing"])

        positions: Dict[str, NodePosition] = {}
        for level_index, level in enumerate(opts["levels"]):
            y = top + level_index * level_spacing
            spacing = width / (len(level) + 1)
            for index, node_id in enumerate(level):
                if node_id not in known:
                    logger.debug(f"Level table names unknown node {node_id}")
                    continue
                if node_id in positions:
                    logger.warning(f"Node {node_id} listed on more than one level")
                    continue
                positions[node_id] = NodePosition(x=spacing * (index + 1), y=y)

        omitted = [node_id for node_id in known if node_id not in positions]
        if omitted:
            logger.info(f"Hierarchical layout omits nodes without a level: {sorted(omitted)}")

        return positions
