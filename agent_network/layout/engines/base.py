"""Base layout engine protocol.

Defines the interface that all layout engines must implement.
"""

import math
import random
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional, Sequence

from agent_network.models.graph_model import AgentNode
from agent_network.models.layout_metadata import CanvasBounds, NodePosition

# Returns True once the owning view has been torn down
CancelCheck = Callable[[], bool]


class LayoutCancelledError(Exception):
    """Raised when a layout computation is aborted by its cancel check."""

    def __init__(self, engine: str, iteration: int):
        self.engine = engine
        self.iteration = iteration
        super().__init__(f"{engine} layout cancelled at iteration {iteration}")


class IncompleteLayoutError(Exception):
    """Raised when saved positions do not cover every node."""

    def __init__(self, missing: List[str]):
        self.missing = missing
        super().__init__(f"No saved position for {len(missing)} node(s): {missing}")


class LayoutEngine(ABC):
    """Abstract base class for layout engines.

    Layout engines are pure: they map a node sequence to canvas positions
    and never touch storage or shared state.
    """

    #: Engine-specific defaults, overridden per call through ``options``
    default_options: Dict[str, Any] = {}

    @property
    @abstractmethod
    def name(self) -> str:
        """Engine name (e.g., 'circular', 'star')."""
        ...

    @abstractmethod
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
        """Compute positions for a node sequence.

        Args:
            nodes: Agents in catalog order
            options: Engine-specific overrides of ``default_options``
            bounds: Canvas the result must fit
            persisted: Saved per-node positions (custom layout only)
            rng: Random source (force-directed only)
            cancel: Abort check for long-running engines

        Returns:
            Positions keyed by node ID. Nodes the engine cannot place are
            left out.
        """
        ...

    def resolve_options(self, options: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        """Merge per-call overrides onto the engine defaults."""
        merged = dict(self.default_options)
        if options:
            merged.update({k: v for k, v in options.items() if k in merged})
        return merged

    @staticmethod
    def resolve_center(opts: Dict[str, Any], bounds: CanvasBounds) -> NodePosition:
        """Configured center, or the canvas center when unset."""
        center = opts.get("center")
        if center is None:
            return bounds.center
        if isinstance(center, NodePosition):
            return center
        return NodePosition.from_list(list(center))


def ring_positions(
    node_ids: Sequence[str],
    center: NodePosition,
    radius: float,
) -> Dict[str, NodePosition]:
    """Spread nodes evenly on a ring, first node at the top.

    Angle of node ``i`` is ``-pi/2 + i * 2pi/N``.
    """
    count = len(node_ids)
    positions: Dict[str, NodePosition] = {}
    if count == 0:
        return positions

    step = 2 * math.pi / count
    for index, node_id in enumerate(node_ids):
        angle = -math.pi / 2 + index * step
        positions[node_id] = NodePosition(
            x=center.x + radius * math.cos(angle),
            y=center.y + radius * math.sin(angle),
        )
    return positions


__all__ = [
    "CancelCheck",
    "IncompleteLayoutError",
    "LayoutCancelledError",
    "LayoutEngine",
    "ring_positions",
]
