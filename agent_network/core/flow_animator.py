"""Simulated inter-agent traffic.

Two repeating timers drive the animation:

- coarse tick (default 2000 ms): re-randomizes every agent's status and
  spawns one flow event along a random resolvable connection
- fine tick (default 50 ms): advances every flow's progress by a fixed step

An event is removed on the first fine tick at which its progress is 100 and
it is at least ``lifetime_ms`` old, so a completed marker stays visible at
its destination for a moment.

Each tick builds a full replacement of the flow tuple and status map; the
previous objects are never mutated. Nothing here touches node positions.
"""

import itertools
import logging
import random
from typing import Callable, Dict, Optional, Sequence, Tuple

from agent_network.core.scheduler import Scheduler, TimerHandle
from agent_network.models.flow import FLOW_LABELS, FlowEvent
from agent_network.models.graph_model import GraphModel, NodeStatus

logger = logging.getLogger(__name__)


class FlowAnimator:
    """Spawns and advances flow markers on a scheduler.

    Example:
        scheduler = ManualScheduler()
        animator = FlowAnimator(GraphModel.default(), scheduler, random.Random(7))
        animator.start()
        scheduler.advance(2000)
        animator.flows      # one event, progress 0
        animator.stop()     # no timers left, flows cleared
    """

    def __init__(
        self,
        graph: GraphModel,
        scheduler: Scheduler,
        rng: Optional[random.Random] = None,
        *,
        coarse_ms: float = 2000,
        fine_ms: float = 50,
        progress_step: int = 10,
        lifetime_ms: float = 1500,
        labels: Sequence[str] = FLOW_LABELS,
        on_change: Optional[Callable[[], None]] = None,
    ):
        if progress_step <= 0:
            raise ValueError(f"progress_step must be positive, got {progress_step}")
        if not labels:
            raise ValueError("At least one flow label is required")

        self.graph = graph
        self.scheduler = scheduler
        self.rng = rng or random.Random()
        self.coarse_ms = coarse_ms
        self.fine_ms = fine_ms
        self.progress_step = progress_step
        self.lifetime_ms = lifetime_ms
        self.labels = tuple(labels)
        self.on_change = on_change

        self._flows: Tuple[FlowEvent, ...] = ()
        self._statuses: Dict[str, NodeStatus] = graph.statuses()
        self._ids = itertools.count(1)
        self._coarse: Optional[TimerHandle] = None
        self._fine: Optional[TimerHandle] = None

    @property
    def running(self) -> bool:
        return self._coarse is not None

    @property
    def flows(self) -> Tuple[FlowEvent, ...]:
        return self._flows

    @property
    def statuses(self) -> Dict[str, NodeStatus]:
        return dict(self._statuses)

    def start(self) -> None:
        """Start both timers (no-op if already running)."""
        if self.running:
            return
        self._coarse = self.scheduler.call_every(self.coarse_ms, self.coarse_tick)
        self._fine = self.scheduler.call_every(self.fine_ms, self.fine_tick)
        logger.debug(f"Flow animator started ({self.coarse_ms}ms / {self.fine_ms}ms)")

    def stop(self) -> None:
        """Cancel both timers and drop in-flight flows. Safe to call twice."""
        for handle in (self._coarse, self._fine):
            if handle is not None:
                handle.cancel()
        was_running = self.running
        self._coarse = None
        self._fine = None
        self._flows = ()
        if was_running:
            logger.debug("Flow animator stopped")

    def coarse_tick(self) -> Optional[FlowEvent]:
        """Re-randomize statuses and spawn one flow.

        Returns:
            The spawned event, or None if no agent has a resolvable connection
        """
        choices = list(NodeStatus)
        self._statuses = {
            node_id: self.rng.choice(choices) for node_id in self.graph.node_ids()
        }

        event = self._spawn()
        if event is not None:
            self._flows = self._flows + (event,)
        self._notify()
        return event

    def fine_tick(self) -> None:
        """Advance every flow, dropping completed ones past their lifetime."""
        now = self.scheduler.now_ms()
        kept = []
        for event in self._flows:
            if event.is_complete and now - event.created_at_ms >= self.lifetime_ms:
                continue
            kept.append(event.advanced(self.progress_step))
        self._flows = tuple(kept)
        self._notify()

    def _spawn(self) -> Optional[FlowEvent]:
        sources = [
            node_id for node_id in self.graph.node_ids()
            if self.graph.resolved_neighbors_of(node_id)
        ]
        if not sources:
            logger.debug("No agent has a resolvable connection, skipping flow spawn")
            return None

        from_id = self.rng.choice(sources)
        to_id = self.rng.choice(self.graph.resolved_neighbors_of(from_id))
        return FlowEvent(
            id=next(self._ids),
            from_id=from_id,
            to_id=to_id,
            label=self.rng.choice(self.labels),
            progress=0,
            created_at_ms=self.scheduler.now_ms(),
        )

    def _notify(self) -> None:
        if self.on_change is not None:
            self.on_change()


__all__ = ["FlowAnimator"]
