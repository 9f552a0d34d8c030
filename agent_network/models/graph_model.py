"""Agent catalog and adjacency.

The catalog is compiled in: nine cooperating health agents with display
metadata and a directed ``connections`` list. ``GraphModel`` wraps the
catalog in a NetworkX DiGraph for adjacency queries.

Connections are not required to be symmetric, and a connection may name an
agent that is not in the catalog. Such dangling references are kept in the
declared ``connections`` list but never produce an edge.
"""

import logging
from enum import Enum
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

import networkx as nx
from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)


class UnknownNodeError(KeyError):
    """Raised when a node ID is not present in the catalog."""

    def __init__(self, node_id: str):
        self.node_id = node_id
        super().__init__(f"Agent {node_id} not found in catalog")


class NodeStatus(str, Enum):
    """Cosmetic agent status shown as a badge."""

    ACTIVE = "active"
    IDLE = "idle"
    PROCESSING = "processing"

    @classmethod
    def coerce(cls, value: object) -> "NodeStatus":
        """Map any value to a status; unknown values render as idle."""
        if isinstance(value, NodeStatus):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            return cls.IDLE


class AgentNode(BaseModel):
    """A single agent in the network.

    Attributes:
        id: Unique agent identifier
        name: Display name
        color: Category colour (gradient classes or CSS colour)
        icon: Icon name for the renderer
        route: Optional navigation target dispatched on double-click
        description: Optional description for the details panel
        connections: Ordered, directed neighbour IDs
        status: Current cosmetic status
    """

    id: str = Field(..., min_length=1, description="Unique agent identifier")
    name: str = Field(..., description="Display name")
    color: str = Field(default="", description="Category colour")
    icon: str = Field(default="", description="Icon name")
    route: Optional[str] = Field(default=None, description="Navigation target")
    description: Optional[str] = Field(default=None, description="Agent description")
    connections: List[str] = Field(default_factory=list, description="Neighbour IDs")
    status: NodeStatus = Field(default=NodeStatus.IDLE, description="Current status")

    @field_validator("status", mode="before")
    @classmethod
    def coerce_status(cls, v: object) -> NodeStatus:
        return NodeStatus.coerce(v)


# =============================================================================
# Default catalog
# =============================================================================

DEFAULT_AGENTS: List[Dict[str, object]] = [
    {
        "id": "rapidcare",
        "name": "RapidCare",
        "icon": "activity",
        "color": "from-red-500 to-orange-500",
        "connections": ["facility", "imaging", "carepilot"],
        "status": "active",
        "route": "/triage",
        "description": "AI-powered triage system that assesses patient symptoms and urgency levels",
    },
    {
        "id": "facility",
        "name": "Facility Finder",
        "icon": "map-pin",
        "color": "from-blue-500 to-cyan-500",
        "connections": ["rapidcare", "carepilot"],
        "status": "active",
        "route": "/facility-finder",
        "description": "Locates nearby healthcare facilities based on services, availability, and distance",
    },
    {
        "id": "carepilot",
        "name": "CarePilot Booking",
        "icon": "calendar-check",
        "color": "from-indigo-500 to-blue-500",
        "connections": ["rapidcare", "facility", "followup"],
        "status": "active",
        "route": "/carepilot-booking",
        "description": "Automated appointment scheduling and healthcare facility booking management system",
    },
    {
        "id": "followup",
        "name": "Follow-Up Agent",
        "icon": "message-square",
        "color": "from-purple-500 to-pink-500",
        "connections": ["carepilot", "doctor", "surveillance", "other"],
        "status": "processing",
        "route": "/followup-agent",
        "description": "Manages medication reminders and post-treatment follow-up care coordination",
    },
    {
        "id": "imaging",
        "name": "Imaging Agent",
        "icon": "brain",
        "color": "from-violet-500 to-purple-500",
        "connections": ["rapidcare", "doctor", "medicine"],
        "status": "active",
        "route": "/imaging",
        "description": "AI-powered medical image analysis for X-rays, CT scans, and diagnostic imaging",
    },
    {
        "id": "medicine",
        "name": "Medicine Knowledge",
        "icon": "pill",
        "color": "from-amber-500 to-orange-500",
        "connections": ["imaging", "doctor", "surveillance"],
        "status": "idle",
        "route": "/knowledge-agent",
        "description": "Comprehensive drug database with pricing, interactions, and treatment protocols",
    },
    {
        "id": "surveillance",
        "name": "Surveillance Agent",
        "icon": "shield",
        "color": "from-rose-500 to-red-500",
        "connections": ["followup", "medicine"],
        "status": "active",
        "route": "/surveillance",
        "description": "Disease outbreak monitoring and public health surveillance analytics platform",
    },
    {
        "id": "doctor",
        "name": "Doctor Companion",
        "icon": "heart",
        "color": "from-pink-500 to-rose-500",
        "connections": ["imaging", "followup", "medicine", "other"],
        "status": "processing",
        "route": "/doctor-companion",
        "description": "Medical reference assistant providing clinical guidelines and diagnostic support",
    },
    {
        "id": "other",
        "name": "Other Agents",
        "icon": "brain",
        "color": "from-indigo-500 to-purple-500",
        "connections": ["doctor", "followup"],
        "status": "idle",
        "route": "/other-agents",
        "description": "Collection of health calculators including BMI, calorie tracker, and vitals monitor",
    },
]


class GraphModel:
    """Immutable agent catalog with adjacency queries.

    Node order is the catalog order; layout algorithms rely on it.

    Example:
        graph = GraphModel.default()
        graph.neighbors_of("rapidcare")   # ["facility", "imaging", "carepilot"]
        list(graph.edges())               # resolvable (from, to) pairs only
    """

    def __init__(self, nodes: Iterable[AgentNode]):
        """Build the catalog.

        Args:
            nodes: Agents in display order

        Raises:
            ValueError: If two agents share an ID
        """
        self._nodes: Dict[str, AgentNode] = {}
        for node in nodes:
            if node.id in self._nodes:
                raise ValueError(f"Duplicate agent id: {node.id}")
            self._nodes[node.id] = node

        self._graph = nx.DiGraph()
        for node in self._nodes.values():
            self._graph.add_node(node.id, name=node.name)
        for node in self._nodes.values():
            for target in node.connections:
                if target in self._nodes:
                    self._graph.add_edge(node.id, target)
                else:
                    logger.debug(f"Skipping dangling connection {node.id} -> {target}")

    @classmethod
    def from_dicts(cls, records: Iterable[Mapping[str, object]]) -> "GraphModel":
        """Build a catalog from plain dictionaries."""
        return cls(AgentNode(**record) for record in records)

    @classmethod
    def default(cls) -> "GraphModel":
        """The compiled-in catalog of health agents."""
        return cls.from_dicts(DEFAULT_AGENTS)

    def list_nodes(self) -> List[AgentNode]:
        """All agents in catalog order."""
        return list(self._nodes.values())

    def node_ids(self) -> List[str]:
        """All agent IDs in catalog order."""
        return list(self._nodes.keys())

    def has_node(self, node_id: str) -> bool:
        return node_id in self._nodes

    def get_node(self, node_id: str) -> AgentNode:
        """Look up an agent.

        Raises:
            UnknownNodeError: If the agent is not in the catalog
        """
        try:
            return self._nodes[node_id]
        except KeyError:
            raise UnknownNodeError(node_id) from None

    def neighbors_of(self, node_id: str) -> List[str]:
        """Declared connections of an agent, in declared order.

        Unknown agents have no neighbours.
        """
        node = self._nodes.get(node_id)
        if node is None:
            return []
        return list(node.connections)

    def resolved_neighbors_of(self, node_id: str) -> List[str]:
        """Declared connections that reference agents in the catalog."""
        return [target for target in self.neighbors_of(node_id) if target in self._nodes]

    def connected_agents(self, node_id: str) -> List[AgentNode]:
        """Neighbour agents for the details panel (dangling IDs skipped)."""
        return [self._nodes[target] for target in self.resolved_neighbors_of(node_id)]

    def edges(self) -> List[Tuple[str, str]]:
        """Drawable edges in declaration order.

        Connections to agents outside the catalog are omitted.
        """
        return [
            (node.id, target)
            for node in self._nodes.values()
            for target in node.connections
            if target in self._nodes
        ]

    def dangling_edges(self) -> List[Tuple[str, str]]:
        """Declared connections whose target is not in the catalog."""
        return [
            (node.id, target)
            for node in self._nodes.values()
            for target in node.connections
            if target not in self._nodes
        ]

    def to_networkx(self) -> nx.DiGraph:
        """Copy of the underlying adjacency graph."""
        return self._graph.copy()

    def statuses(self) -> Dict[str, NodeStatus]:
        """Catalog status of each agent."""
        return {node.id: node.status for node in self._nodes.values()}

    def with_statuses(self, statuses: Mapping[str, object]) -> "GraphModel":
        """New catalog with statuses replaced (unknown IDs ignored)."""
        return GraphModel(
            node.model_copy(update={"status": NodeStatus.coerce(statuses[node.id])})
            if node.id in statuses else node
            for node in self._nodes.values()
        )

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self):
        return iter(self._nodes.values())


__all__ = [
    "UnknownNodeError",
    "NodeStatus",
    "AgentNode",
    "DEFAULT_AGENTS",
    "GraphModel",
]
