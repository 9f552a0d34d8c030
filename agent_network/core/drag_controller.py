"""Pointer interaction state machine for repositioning agents.

States:
    IDLE      no node grabbed
    DRAGGING  one node grabbed, follows the pointer keeping its grab offset

Transitions:
    IDLE     --down on node-->   DRAGGING(node, offset = pointer - node)
    DRAGGING --move-->           DRAGGING, node = clamp(pointer - offset)
    DRAGGING --up/leave-->       IDLE, commit positions + mode "custom"

A release before the pointer has travelled more than ``click_threshold``
pixels from the grab point is a click: it selects the node and writes
nothing. Only one node can be dragged at a time.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Optional

from agent_network.core.layout_store import LayoutPersistence
from agent_network.layout import resolve_layout
from agent_network.models.graph_model import GraphModel
from agent_network.models.layout_metadata import CanvasBounds, LayoutMode, NodePosition

logger = logging.getLogger(__name__)

CLICK_THRESHOLD_PX = 5.0


class DragState(str, Enum):
    IDLE = "idle"
    DRAGGING = "dragging"


class PointerOutcome(str, Enum):
    """What a pointer event did."""

    IGNORED = "ignored"
    GRABBED = "grabbed"
    MOVED = "moved"
    SELECTED = "selected"
    COMMITTED = "committed"
    CANCELLED = "cancelled"
    NAVIGATED = "navigated"


@dataclass
class DragSession:
    """The node currently being dragged.

    ``offset`` is pointer minus node position at grab time; ``origin`` is the
    pointer position at grab time, used for the click threshold.
    """

    node_id: str
    offset: NodePosition
    origin: NodePosition
    moved: bool = False


class DragController:
    """Applies pointer events to the live position map.

    The position map is replaced wholesale on every change, so readers never
    observe a half-updated map.

    Example:
        controller = DragController(graph, persistence, on_select=session.select_node)
        controller.set_positions(layout.positions)
        controller.pointer_down("doctor", 510, 305)
        controller.pointer_move(610, 405)
        controller.pointer_up(610, 405)   # PointerOutcome.COMMITTED
    """

    def __init__(
        self,
        graph: GraphModel,
        persistence: LayoutPersistence,
        bounds: Optional[CanvasBounds] = None,
        *,
        on_select: Optional[Callable[[str], None]] = None,
        navigator: Optional[Callable[[str], None]] = None,
        on_commit: Optional[Callable[[Dict[str, NodePosition]], None]] = None,
        click_threshold: float = CLICK_THRESHOLD_PX,
    ):
        """Initialize the controller.

        Args:
            graph: Agent catalog (nodes that vanish from it cannot be committed)
            persistence: Where committed layouts are written
            bounds: Container bounds for clamping dragged nodes
            on_select: Called with the node ID on click
            navigator: Called with the node route on double-click
            on_commit: Called with the committed position map
            click_threshold: Pointer travel (px) below which a release is a click
        """
        self.graph = graph
        self.persistence = persistence
        self.bounds = bounds or CanvasBounds()
        self.on_select = on_select
        self.navigator = navigator
        self.on_commit = on_commit
        self.click_threshold = click_threshold
        self._positions: Dict[str, NodePosition] = {}
        self._session: Optional[DragSession] = None

    @property
    def state(self) -> DragState:
        return DragState.DRAGGING if self._session else DragState.IDLE

    @property
    def session(self) -> Optional[DragSession]:
        return self._session

    @property
    def dragging_node_id(self) -> Optional[str]:
        return self._session.node_id if self._session else None

    @property
    def positions(self) -> Dict[str, NodePosition]:
        """Current live positions (a copy)."""
        return dict(self._positions)

    def position_of(self, node_id: str) -> Optional[NodePosition]:
        return self._positions.get(node_id)

    def set_positions(self, positions: Dict[str, NodePosition]) -> None:
        """Replace the live positions, e.g. after a layout change.

        A node being dragged keeps its live position.
        """
        new_positions = dict(positions)
        if self._session is not None:
            live = self._positions.get(self._session.node_id)
            if live is not None:
                new_positions[self._session.node_id] = live
        self._positions = new_positions

    def pointer_down(self, node_id: str, x: float, y: float) -> PointerOutcome:
        if self._session is not None:
            logger.debug(f"Ignoring grab of {node_id}: {self._session.node_id} is being dragged")
            return PointerOutcome.IGNORED
        current = self._positions.get(node_id)
        if current is None or not self.graph.has_node(node_id):
            logger.debug(f"Ignoring grab of unplaced node {node_id}")
            return PointerOutcome.IGNORED

        pointer = NodePosition(x=x, y=y)
        dx, dy = pointer.offset_from(current)
        self._session = DragSession(
            node_id=node_id,
            offset=NodePosition(x=dx, y=dy),
            origin=pointer,
        )
        return PointerOutcome.GRABBED

    def pointer_move(self, x: float, y: float) -> PointerOutcome:
        session = self._session
        if session is None:
            return PointerOutcome.IGNORED

        pointer = NodePosition(x=x, y=y)
        if not session.moved:
            if pointer.distance_to(session.origin) <= self.click_threshold:
                return PointerOutcome.IGNORED
            session.moved = True

        target = self.bounds.clamp(x - session.offset.x, y - session.offset.y)
        self._positions = {**self._positions, session.node_id: target}
        return PointerOutcome.MOVED

    def pointer_up(self, x: Optional[float] = None, y: Optional[float] = None) -> PointerOutcome:
        """Release the pointer, committing a drag or selecting on click."""
        session = self._session
        if session is None:
            return PointerOutcome.IGNORED
        if x is not None and y is not None:
            self.pointer_move(x, y)

        self._session = None
        if not session.moved:
            if self.on_select is not None:
                self.on_select(session.node_id)
            return PointerOutcome.SELECTED
        return self._commit(session)

    def pointer_leave(self) -> PointerOutcome:
        """Pointer left the container: commit a drag, drop a pending click."""
        session = self._session
        if session is None:
            return PointerOutcome.IGNORED
        self._session = None
        if not session.moved:
            return PointerOutcome.CANCELLED
        return self._commit(session)

    def double_click(self, node_id: str) -> PointerOutcome:
        """Dispatch the node's route to the navigator, if it has one."""
        if not self.graph.has_node(node_id):
            return PointerOutcome.IGNORED
        route = self.graph.get_node(node_id).route
        if not route or self.navigator is None:
            return PointerOutcome.IGNORED
        self.navigator(route)
        return PointerOutcome.NAVIGATED

    def _commit(self, session: DragSession) -> PointerOutcome:
        if not self.graph.has_node(session.node_id):
            logger.warning(f"Dropping drag commit: agent {session.node_id} no longer exists")
            return PointerOutcome.CANCELLED

        positions = self._complete_positions()
        self._positions = dict(positions)
        self.persistence.save_positions(positions)
        self.persistence.save_mode(LayoutMode.CUSTOM)
        logger.info(f"Committed custom layout after dragging {session.node_id}")
        if self.on_commit is not None:
            self.on_commit(positions)
        return PointerOutcome.COMMITTED

    def _complete_positions(self) -> Dict[str, NodePosition]:
        """Live positions for every catalog node.

        A saved custom layout must place every agent, so nodes the current
        layout left out get their circular position.
        """
        positions = {
            node_id: position
            for node_id, position in self._positions.items()
            if self.graph.has_node(node_id)
        }
        missing = [node_id for node_id in self.graph.node_ids() if node_id not in positions]
        if missing:
            circular = resolve_layout(
                LayoutMode.CIRCULAR, self.graph.list_nodes(), bounds=self.bounds
            ).positions
            for node_id in missing:
                positions[node_id] = circular[node_id]
            logger.info(f"Placed unpositioned agents on the circle before saving: {missing}")
        return positions


__all__ = [
    "CLICK_THRESHOLD_PX",
    "DragState",
    "PointerOutcome",
    "DragSession",
    "DragController",
]
