"""Agent network session and renderable snapshot.

``AgentNetworkSession`` composes the catalog, layout computation,
persistence, drag controller, flow animator and activity feed for one
visualization. ``snapshot()`` returns everything a renderer needs as a
pydantic model:

- nodes with position, live status, selected and dragging flags
- resolvable edges, active when either endpoint is active
- in-flight flows with their interpolated marker position
- details of the selected agent
- status counts and recent activity

Usage:
    session = AgentNetworkSession(persistence=create_layout_persistence())
    session.initialize()
    session.start()
    ...
    snapshot = session.snapshot()
    session.close()
"""

import logging
import random
from typing import Any, Callable, Dict, List, Optional, Union

from pydantic import BaseModel, Field

from agent_network.config.settings import get_setting
from agent_network.core.activity_feed import (
    DEFAULT_ACTIVITY_LIMIT,
    ActivityFeed,
    StaticActivityFeed,
)
from agent_network.core.drag_controller import DragController, PointerOutcome
from agent_network.core.flow_animator import FlowAnimator
from agent_network.core.layout_store import LayoutPersistence, create_layout_persistence
from agent_network.core.scheduler import AsyncioScheduler, ManualScheduler, Scheduler
from agent_network.layout import LayoutCancelledError, resolve_layout
from agent_network.models.flow import ActivityEntry
from agent_network.models.graph_model import GraphModel, NodeStatus
from agent_network.models.layout_metadata import (
    CanvasBounds,
    LayoutMode,
    LayoutResult,
    NodePosition,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Snapshot models
# =============================================================================

class NodeView(BaseModel):
    """An agent as drawn on the canvas."""

    id: str
    name: str
    color: str = ""
    icon: str = ""
    route: Optional[str] = None
    status: NodeStatus = NodeStatus.IDLE
    position: Optional[NodePosition] = Field(
        default=None, description="None when the layout did not place the node"
    )
    selected: bool = False
    dragging: bool = False


class EdgeView(BaseModel):
    from_id: str
    to_id: str
    is_active: bool = False


class FlowView(BaseModel):
    """A flow event with its on-screen marker position."""

    id: int
    from_id: str
    to_id: str
    label: str
    progress: int
    position: NodePosition


class ConnectedAgent(BaseModel):
    id: str
    name: str
    color: str = ""


class AgentDetails(BaseModel):
    """Details panel for the selected agent."""

    id: str
    name: str
    status: NodeStatus
    color: str = ""
    description: Optional[str] = None
    route: Optional[str] = None
    connection_count: int = Field(0, description="Declared connections, dangling included")
    connected_agents: List[ConnectedAgent] = Field(default_factory=list)


class NetworkSnapshot(BaseModel):
    """Everything needed to render the network at one instant."""

    mode: LayoutMode
    nodes: List[NodeView] = Field(default_factory=list)
    edges: List[EdgeView] = Field(default_factory=list)
    flows: List[FlowView] = Field(default_factory=list)
    selected: Optional[AgentDetails] = None
    dragging_node_id: Optional[str] = None
    status_counts: Dict[str, int] = Field(default_factory=dict)
    activity: List[ActivityEntry] = Field(default_factory=list)


# =============================================================================
# Session
# =============================================================================

class AgentNetworkSession:
    """One interactive visualization of the agent network.

    Single-threaded: all methods are expected to run on the thread (or
    event loop) that owns the scheduler.
    """

    def __init__(
        self,
        graph: Optional[GraphModel] = None,
        persistence: Optional[LayoutPersistence] = None,
        scheduler: Optional[Scheduler] = None,
        *,
        rng: Optional[random.Random] = None,
        activity_feed: Optional[ActivityFeed] = None,
        bounds: Optional[CanvasBounds] = None,
        navigator: Optional[Callable[[str], None]] = None,
        layout_options: Optional[Dict[str, Dict[str, Any]]] = None,
        animator_options: Optional[Dict[str, Any]] = None,
        activity_limit: int = DEFAULT_ACTIVITY_LIMIT,
    ):
        """Wire up a session.

        Args:
            graph: Agent catalog (default catalog if omitted)
            persistence: Layout store (in-memory if omitted)
            scheduler: Timer source (manual clock if omitted)
            rng: Random source shared by layouts and the animator
            activity_feed: External activity log
            bounds: Canvas bounds
            navigator: Receives the route of a double-clicked agent
            layout_options: Per-mode engine option overrides
            animator_options: Keyword overrides for ``FlowAnimator``
            activity_limit: Activity entries kept for display
        """
        self.graph = graph if graph is not None else GraphModel.default()
        self.persistence = persistence or LayoutPersistence()
        self.scheduler = scheduler or ManualScheduler()
        self.rng = rng or random.Random()
        self.activity_feed = activity_feed or StaticActivityFeed()
        self.bounds = bounds or CanvasBounds()
        self.navigator = navigator
        self.layout_options = layout_options or {}
        self.activity_limit = activity_limit

        self.mode = LayoutMode.CIRCULAR
        self.selected_id: Optional[str] = None
        self.last_route: Optional[str] = None
        self.omitted: List[str] = []
        self._activity: List[ActivityEntry] = []
        self._closed = False

        self.drag = DragController(
            self.graph,
            self.persistence,
            self.bounds,
            on_select=self.select_node,
            navigator=self._navigate,
            on_commit=self._on_commit,
        )
        self.animator = FlowAnimator(
            self.graph, self.scheduler, self.rng, **(animator_options or {})
        )

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def positions(self) -> Dict[str, NodePosition]:
        return self.drag.positions

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def initialize(self) -> Optional[LayoutResult]:
        """Apply the saved layout mode (circular if none) and load activity."""
        mode = self.persistence.load_mode() or LayoutMode.CIRCULAR
        result = self.apply_layout(mode, persist=False)
        self.refresh_activity()
        return result

    def start(self) -> None:
        """Start the flow animation."""
        if self._closed:
            raise RuntimeError("Session is closed")
        self.animator.start()

    def close(self) -> None:
        """Tear down: cancel timers, drop flows. Idempotent."""
        if self._closed:
            return
        self._closed = True
        self.animator.stop()
        logger.info("Agent network session closed")

    # -------------------------------------------------------------------------
    # Layout
    # -------------------------------------------------------------------------

    def apply_layout(
        self,
        mode: Union[LayoutMode, str],
        persist: bool = True,
    ) -> Optional[LayoutResult]:
        """Compute and apply a layout.

        Unknown modes and ``custom`` without a complete saved arrangement are
        applied as circular, and the effective mode is what gets stored.

        Args:
            mode: Requested layout mode
            persist: Store the effective mode

        Returns:
            LayoutResult, or None if the session was closed mid-computation
        """
        requested = LayoutMode.parse(mode)
        saved = self.persistence.load_positions() if requested is LayoutMode.CUSTOM else None
        options = self.layout_options.get(requested.value) if requested else None

        try:
            result = resolve_layout(
                mode,
                self.graph.list_nodes(),
                saved,
                options=options,
                bounds=self.bounds,
                rng=self.rng,
                cancel=lambda: self._closed,
            )
        except LayoutCancelledError as e:
            logger.info(f"Layout abandoned: {e}")
            return None

        self.mode = result.mode
        self.omitted = list(result.omitted)
        self.drag.set_positions(result.positions)
        if persist:
            self.persistence.save_mode(result.mode)
        if result.is_fallback:
            logger.info(f"Requested layout '{result.requested_mode}' applied as {result.mode.value}")
        return result

    def reset_layout(self) -> Optional[LayoutResult]:
        """Forget the saved arrangement and return to circular."""
        self.persistence.clear()
        return self.apply_layout(LayoutMode.CIRCULAR)

    def _on_commit(self, positions: Dict[str, NodePosition]) -> None:
        self.mode = LayoutMode.CUSTOM
        self.omitted = [node_id for node_id in self.graph.node_ids() if node_id not in positions]

    # -------------------------------------------------------------------------
    # Pointer events
    # -------------------------------------------------------------------------

    def pointer_down(self, node_id: str, x: float, y: float) -> PointerOutcome:
        return self.drag.pointer_down(node_id, x, y)

    def pointer_move(self, x: float, y: float) -> PointerOutcome:
        return self.drag.pointer_move(x, y)

    def pointer_up(self, x: Optional[float] = None, y: Optional[float] = None) -> PointerOutcome:
        return self.drag.pointer_up(x, y)

    def pointer_leave(self) -> PointerOutcome:
        return self.drag.pointer_leave()

    def double_click(self, node_id: str) -> PointerOutcome:
        return self.drag.double_click(node_id)

    def _navigate(self, route: str) -> None:
        self.last_route = route
        logger.info(f"Navigating to {route}")
        if self.navigator is not None:
            self.navigator(route)

    # -------------------------------------------------------------------------
    # Selection and activity
    # -------------------------------------------------------------------------

    def select_node(self, node_id: str) -> AgentDetails:
        """Select an agent for the details panel.

        Raises:
            UnknownNodeError: If the agent is not in the catalog
        """
        details = self._details(node_id)
        self.selected_id = node_id
        return details

    def clear_selection(self) -> None:
        self.selected_id = None

    def refresh_activity(self) -> List[ActivityEntry]:
        """Reload recent activity; a failing feed keeps the previous list."""
        try:
            entries = self.activity_feed.recent(self.activity_limit)
        except Exception as e:
            logger.warning(f"Activity feed unavailable: {e}")
            return list(self._activity)
        self._activity = sorted(entries, key=lambda entry: entry.timestamp, reverse=True)[
            :self.activity_limit
        ]
        return list(self._activity)

    # -------------------------------------------------------------------------
    # Snapshot
    # -------------------------------------------------------------------------

    def statuses(self) -> Dict[str, NodeStatus]:
        return self.animator.statuses

    def snapshot(self) -> NetworkSnapshot:
        positions = self.drag.positions
        statuses = self.animator.statuses
        dragging = self.drag.dragging_node_id

        def status_of(node_id: str) -> NodeStatus:
            return statuses.get(node_id, self.graph.get_node(node_id).status)

        nodes = [
            NodeView(
                id=node.id,
                name=node.name,
                color=node.color,
                icon=node.icon,
                route=node.route,
                status=status_of(node.id),
                position=positions.get(node.id),
                selected=node.id == self.selected_id,
                dragging=node.id == dragging,
            )
            for node in self.graph.list_nodes()
        ]

        edges = [
            EdgeView(
                from_id=from_id,
                to_id=to_id,
                is_active=NodeStatus.ACTIVE in (status_of(from_id), status_of(to_id)),
            )
            for from_id, to_id in self.graph.edges()
            if from_id in positions and to_id in positions
        ]

        flows = []
        for event in self.animator.flows:
            start = positions.get(event.from_id)
            end = positions.get(event.to_id)
            if start is None or end is None:
                continue
            flows.append(FlowView(
                id=event.id,
                from_id=event.from_id,
                to_id=event.to_id,
                label=event.label,
                progress=event.progress,
                position=event.interpolate(start, end),
            ))

        counts = {status.value: 0 for status in NodeStatus}
        for node in nodes:
            counts[node.status.value] += 1

        selected = None
        if self.selected_id is not None and self.graph.has_node(self.selected_id):
            selected = self._details(self.selected_id, status_of(self.selected_id))

        return NetworkSnapshot(
            mode=self.mode,
            nodes=nodes,
            edges=edges,
            flows=flows,
            selected=selected,
            dragging_node_id=dragging,
            status_counts=counts,
            activity=list(self._activity),
        )

    def _details(self, node_id: str, status: Optional[NodeStatus] = None) -> AgentDetails:
        node = self.graph.get_node(node_id)
        if status is None:
            status = self.animator.statuses.get(node_id, node.status)
        return AgentDetails(
            id=node.id,
            name=node.name,
            status=status,
            color=node.color,
            description=node.description,
            route=node.route,
            connection_count=len(node.connections),
            connected_agents=[
                ConnectedAgent(id=agent.id, name=agent.name, color=agent.color)
                for agent in self.graph.connected_agents(node_id)
            ],
        )


# Factory function
def create_session(
    scheduler: Optional[Scheduler] = None,
    seed: Optional[int] = None,
    **kwargs: Any,
) -> AgentNetworkSession:
    """Create a session configured from settings.

    Args:
        scheduler: Timer source (asyncio timers on the running loop if omitted)
        seed: RNG seed (the ``seed`` setting if omitted)
        **kwargs: Extra ``AgentNetworkSession`` keyword arguments

    Returns:
        AgentNetworkSession instance (not yet initialized)
    """
    if seed is None:
        seed = get_setting("seed")
    return AgentNetworkSession(
        persistence=create_layout_persistence(get_setting("store_path")),
        scheduler=scheduler or AsyncioScheduler(),
        rng=random.Random(seed),
        animator_options={
            "coarse_ms": get_setting("coarse_tick_ms"),
            "fine_ms": get_setting("fine_tick_ms"),
            "lifetime_ms": get_setting("flow_lifetime_ms"),
        },
        activity_limit=get_setting("activity_limit"),
        **kwargs,
    )


__all__ = [
    "NodeView",
    "EdgeView",
    "FlowView",
    "ConnectedAgent",
    "AgentDetails",
    "NetworkSnapshot",
    "AgentNetworkSession",
    "create_session",
]
