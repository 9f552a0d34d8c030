"""Layout metadata for agent network node positions.

This module provides schemas for:
- Node positions (x, y canvas coordinates)
- Canvas bounds used for clamping after drags and layout computation
- Layout modes (the algorithm governing node placement)
- The persisted layout (mode + custom per-node coordinates)
- Layout results (positions plus the effective mode after fallback)

Coordinates are canvas pixels with a top-left origin.
"""

import logging
import math
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple

from pydantic import BaseModel, Field, field_validator, model_validator

logger = logging.getLogger(__name__)


class LayoutMode(str, Enum):
    """Named algorithm currently governing node placement."""

    CUSTOM = "custom"
    CIRCULAR = "circular"
    HIERARCHICAL = "hierarchical"
    FORCE_DIRECTED = "force-directed"
    STAR = "star"

    @classmethod
    def parse(cls, value: object) -> Optional["LayoutMode"]:
        """Parse a stored or user-supplied mode string.

        Args:
            value: Raw mode value (usually a string)

        Returns:
            LayoutMode, or None if the value is not a known mode
        """
        if isinstance(value, LayoutMode):
            return value
        if not isinstance(value, str):
            return None
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None


class NodePosition(BaseModel):
    """Position of a single node on the visualization canvas.

    Attributes:
        x: Horizontal coordinate
        y: Vertical coordinate
    """

    x: float = Field(..., description="Horizontal coordinate")
    y: float = Field(..., description="Vertical coordinate")

    @field_validator("x", "y")
    @classmethod
    def validate_finite(cls, v: float) -> float:
        """Reject NaN and infinite coordinates."""
        if not math.isfinite(v):
            raise ValueError("Coordinates must be finite numbers")
        return v

    @classmethod
    def from_list(cls, pos: List[float]) -> "NodePosition":
        """Create NodePosition from [x, y] list.

        Args:
            pos: Position as [x, y]

        Returns:
            NodePosition instance

        Raises:
            ValueError: If pos doesn't have exactly 2 elements
        """
        if len(pos) != 2:
            raise ValueError(f"Position must be [x, y], got {len(pos)} elements")
        return cls(x=pos[0], y=pos[1])

    def to_list(self) -> List[float]:
        """Convert to list format [x, y]."""
        return [self.x, self.y]

    def distance_to(self, other: "NodePosition") -> float:
        """Euclidean distance to another position."""
        return math.hypot(self.x - other.x, self.y - other.y)

    def offset_from(self, other: "NodePosition") -> Tuple[float, float]:
        """Vector from ``other`` to this position."""
        return (self.x - other.x, self.y - other.y)

    def clamped(self, bounds: "CanvasBounds") -> "NodePosition":
        """This position clamped into ``bounds``."""
        return bounds.clamp(self.x, self.y)


class CanvasBounds(BaseModel):
    """Visualization canvas with a glyph margin.

    Every position handed to the renderer lies inside
    ``[margin, width - margin] x [margin, height - margin]``.

    Attributes:
        width: Canvas width
        height: Canvas height
        margin: Distance kept from each edge so node glyphs stay visible
    """

    width: float = Field(default=1000.0, gt=0, description="Canvas width")
    height: float = Field(default=600.0, gt=0, description="Canvas height")
    margin: float = Field(default=60.0, ge=0, description="Glyph margin")

    @model_validator(mode="after")
    def validate_margin_fits(self) -> "CanvasBounds":
        """Margin must leave a non-empty drawable area."""
        if self.margin * 2 > self.width or self.margin * 2 > self.height:
            raise ValueError(
                f"Margin {self.margin} does not fit a {self.width}x{self.height} canvas"
            )
        return self

    @property
    def min_x(self) -> float:
        return self.margin

    @property
    def max_x(self) -> float:
        return self.width - self.margin

    @property
    def min_y(self) -> float:
        return self.margin

    @property
    def max_y(self) -> float:
        return self.height - self.margin

    @property
    def center(self) -> NodePosition:
        """Canvas center point."""
        return NodePosition(x=self.width / 2, y=self.height / 2)

    def contains(self, position: NodePosition) -> bool:
        """Whether a position lies inside the drawable area."""
        return (
            self.min_x <= position.x <= self.max_x
            and self.min_y <= position.y <= self.max_y
        )

    def clamp(self, x: float, y: float) -> NodePosition:
        """Clamp raw coordinates into the drawable area."""
        return NodePosition(
            x=max(self.min_x, min(self.max_x, x)),
            y=max(self.min_y, min(self.max_y, y)),
        )

    def clamp_position(self, position: NodePosition) -> NodePosition:
        return self.clamp(position.x, position.y)


class PersistedLayout(BaseModel):
    """The single most-recent layout arrangement written to durable storage.

    Attributes:
        mode: Active layout mode
        positions: Custom per-node coordinates (may be empty)
    """

    mode: LayoutMode = Field(..., description="Active layout mode")
    positions: Dict[str, NodePosition] = Field(
        default_factory=dict, description="Custom node positions keyed by node ID"
    )

    def is_complete_for(self, node_ids: Iterable[str]) -> bool:
        """Check that every known node has a saved position.

        Args:
            node_ids: Node IDs from the catalog

        Returns:
            True if no node is missing from ``positions``
        """
        return all(node_id in self.positions for node_id in node_ids)

    def missing_for(self, node_ids: Iterable[str]) -> List[str]:
        """Node IDs from the catalog that have no saved position."""
        return [node_id for node_id in node_ids if node_id not in self.positions]


class LayoutResult(BaseModel):
    """Output of a layout computation.

    ``mode`` is the effective mode: it differs from ``requested_mode`` when
    the request fell back to circular (unknown mode, or custom without a
    complete saved arrangement).

    Attributes:
        requested_mode: Mode string as requested by the caller
        mode: Effective layout mode
        positions: Node positions keyed by node ID
        omitted: Node IDs the algorithm did not place
    """

    requested_mode: str = Field(..., description="Mode as requested")
    mode: LayoutMode = Field(..., description="Effective layout mode")
    positions: Dict[str, NodePosition] = Field(
        default_factory=dict, description="Node positions keyed by node ID"
    )
    omitted: List[str] = Field(
        default_factory=list, description="Node IDs left without a position"
    )

    @property
    def is_fallback(self) -> bool:
        """Whether the effective mode differs from the requested one."""
        return LayoutMode.parse(self.requested_mode) is not self.mode


def positions_to_dict(positions: Dict[str, NodePosition]) -> Dict[str, Dict[str, float]]:
    """Serialize positions to ``{node_id: {"x": .., "y": ..}}`` with sorted keys."""
    return {
        node_id: {"x": pos.x, "y": pos.y}
        for node_id, pos in sorted(positions.items())
    }


__all__ = [
    "LayoutMode",
    "NodePosition",
    "CanvasBounds",
    "PersistedLayout",
    "LayoutResult",
    "positions_to_dict",
]
