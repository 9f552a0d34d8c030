"""Layout computation entry points.

``compute_layout`` maps a mode and node set to positions. ``resolve_layout``
does the same and also reports the effective mode, which is ``circular``
whenever the request falls back:

- unknown mode strings
- ``custom`` without a saved position for every node
"""

import logging
import random
from typing import Any, Dict, Optional, Sequence, Union

from agent_network.layout.engines import get_engine
from agent_network.layout.engines.base import CancelCheck, IncompleteLayoutError
from agent_network.models.graph_model import AgentNode
from agent_network.models.layout_metadata import (
    CanvasBounds,
    LayoutMode,
    LayoutResult,
    NodePosition,
)

logger = logging.getLogger(__name__)


def resolve_layout(
    mode: Union[LayoutMode, str],
    nodes: Sequence[AgentNode],
    persisted_positions: Optional[Dict[str, NodePosition]] = None,
    *,
    options: Optional[Dict[str, Any]] = None,
    bounds: Optional[CanvasBounds] = None,
    rng: Optional[random.Random] = None,
    cancel: Optional[CancelCheck] = None,
) -> LayoutResult:
    """Compute a layout and report the effective mode.

    Args:
        mode: Requested layout mode (enum or string)
        nodes: Agents in catalog order
        persisted_positions: Saved positions for the custom layout
        options: Engine option overrides
        bounds: Canvas bounds (default canvas if omitted)
        rng: Random source for force-directed initialization
        cancel: Abort check, see ``LayoutCancelledError``

    Returns:
        LayoutResult with positions clamped to the canvas (custom positions
        are used verbatim)
    """
    bounds = bounds or CanvasBounds()
    requested = mode.value if isinstance(mode, LayoutMode) else str(mode)
    effective = LayoutMode.parse(mode)

    if effective is None:
        logger.warning(f"Unknown layout mode '{requested}', falling back to circular")
        effective = LayoutMode.CIRCULAR

    if effective is LayoutMode.CUSTOM:
        try:
            positions = get_engine(effective.value).compute(
                nodes, options, bounds=bounds, persisted=persisted_positions
            )
        except IncompleteLayoutError as e:
            logger.info(f"Custom layout unavailable ({e}), using circular")
            effective = LayoutMode.CIRCULAR
        else:
            return LayoutResult(
                requested_mode=requested,
                mode=effective,
                positions=positions,
            )

    positions = get_engine(effective.value).compute(
        nodes, options, bounds=bounds, rng=rng, cancel=cancel
    )
    positions = {
        node_id: bounds.clamp_position(position)
        for node_id, position in positions.items()
    }
    omitted = [node.id for node in nodes if node.id not in positions]

    return LayoutResult(
        requested_mode=requested,
        mode=effective,
        positions=positions,
        omitted=omitted,
    )


def compute_layout(
    mode: Union[LayoutMode, str],
    nodes: Sequence[AgentNode],
    persisted_positions: Optional[Dict[str, NodePosition]] = None,
    **kwargs: Any,
) -> Dict[str, NodePosition]:
    """Map a node set to positions under ``mode``.

    See ``resolve_layout`` for arguments and fallback rules.
    """
    return resolve_layout(mode, nodes, persisted_positions, **kwargs).positions
