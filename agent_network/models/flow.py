"""Flow events and activity feed entries.

A flow event is a transient marker simulating a unit of data travelling
from one agent to a connected agent. Activity entries come from an external
log feed and are only displayed.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from .layout_metadata import NodePosition

# Message kinds carried by simulated flows
FLOW_LABELS = (
    "Patient data",
    "Diagnosis",
    "Lab results",
    "Prescription",
    "Alert",
)


class FlowEvent(BaseModel):
    """A data-flow marker travelling along an edge.

    Attributes:
        id: Event identifier, unique within an animator
        from_id: Source agent
        to_id: Target agent
        label: Message kind
        progress: Percentage travelled (0..100)
        created_at_ms: Scheduler time when the event was spawned
    """

    id: int = Field(..., description="Event identifier")
    from_id: str = Field(..., description="Source agent ID")
    to_id: str = Field(..., description="Target agent ID")
    label: str = Field(..., description="Message kind")
    progress: int = Field(default=0, ge=0, le=100, description="Percent travelled")
    created_at_ms: float = Field(default=0.0, description="Spawn time (ms)")

    @property
    def is_complete(self) -> bool:
        return self.progress >= 100

    def advanced(self, step: int) -> "FlowEvent":
        """Copy with progress advanced by ``step``, capped at 100."""
        return self.model_copy(update={"progress": min(self.progress + step, 100)})

    def interpolate(self, start: NodePosition, end: NodePosition) -> NodePosition:
        """On-screen marker position: ``start + (end - start) * progress / 100``."""
        fraction = self.progress / 100
        return NodePosition(
            x=start.x + (end.x - start.x) * fraction,
            y=start.y + (end.y - start.y) * fraction,
        )


class ActivityEntry(BaseModel):
    """A recent agent activity log entry.

    Attributes:
        agent_name: Agent that performed the action
        action: Human-readable action description
        confidence_score: Optional confidence in [0, 1]
        timestamp: When the action happened
    """

    agent_name: str = Field(..., description="Agent display name")
    action: str = Field(..., description="Action description")
    confidence_score: Optional[float] = Field(
        default=None, ge=0.0, le=1.0, description="Confidence in [0, 1]"
    )
    timestamp: datetime = Field(..., description="Entry timestamp")

    @field_validator("confidence_score", mode="before")
    @classmethod
    def blank_score_is_none(cls, v):
        if v == "":
            return None
        return v

    @property
    def confidence_percent(self) -> Optional[int]:
        """Confidence as a rounded percentage, or None."""
        if self.confidence_score is None:
            return None
        return int(round(self.confidence_score * 100))


__all__ = [
    "FLOW_LABELS",
    "FlowEvent",
    "ActivityEntry",
]
