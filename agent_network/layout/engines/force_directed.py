"""Force-directed layout by bounded physics relaxation.

Each iteration balances a repulsive force between every node pair against an
attractive force along every declared edge:

    repulsion  = k / d^2          (d floored at 1)
    attraction = d * c

Forces are summed per node from the previous iteration's positions, scaled by
the damping factor and applied together, then each node is clamped into the
padded canvas. The loop always runs a fixed number of iterations and never
iterates until convergence. The result is "reasonably separated, connected
nodes pulled closer", not a crossing-free drawing.
"""

import logging
import math
import random
from typing import Any, Dict, List, Optional, Sequence, Tuple

from agent_network.layout.engines.base import (
    CancelCheck,
    LayoutCancelledError,
    LayoutEngine,
)
from agent_network.models.graph_model import AgentNode
from agent_network.models.layout_metadata import CanvasBounds, NodePosition

logger = logging.getLogger(__name__)

FORCE_DIRECTED_LAYOUT_OPTIONS = {
    "center": None,
    "iterations": 50,
    # Repulsion constant
    "k": 1000.0,
    # Attraction constant
    "c": 0.01,
    "damping": 0.1,
    "min_distance": 1.0,
    # Random initial placement box around the center (width, height)
    "init_spread": (400.0, 300.0),
    # Nodes stay this far from the canvas edges
    "padding": 100.0,
}


class ForceDirectedLayoutEngine(LayoutEngine):
    """Spring-electric relaxation over the declared connections."""

    default_options = FORCE_DIRECTED_LAYOUT_OPTIONS

    @property
    def name(self) -> str:
        return "force-directed"

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
        rng = rng or random.Random()
        box = self._clamp_box(bounds, float(opts["padding"]))
        center = self.resolve_center(opts, bounds)

        ids = [node.id for node in nodes]
        index = {node_id: i for i, node_id in enumerate(ids)}
        edges = [
            (index[node.id], index[target])
            for node in nodes
            for target in node.connections
            if target in index and target != node.id
        ]

        spread_w, spread_h = opts["init_spread"]
        coords: List[Tuple[float, float]] = [
            self._clamp(
                center.x - spread_w / 2 + rng.random() * spread_w,
                center.y - spread_h / 2 + rng.random() * spread_h,
                box,
            )
            for _ in ids
        ]

        iterations = int(opts["iterations"])
        for iteration in range(iterations):
            if cancel is not None and cancel():
                logger.debug(f"Force-directed layout cancelled at iteration {iteration}")
                raise LayoutCancelledError(self.name, iteration)
            coords = self._step(coords, edges, opts, box, rng)

        coords = self._separate_coincident(coords, box)
        return {
            node_id: NodePosition(x=x, y=y)
            for node_id, (x, y) in zip(ids, coords)
        }

    def _step(
        self,
        coords: List[Tuple[float, float]],
        edges: List[Tuple[int, int]],
        opts: Dict[str, Any],
        box: Tuple[float, float, float, float],
        rng: random.Random,
    ) -> List[Tuple[float, float]]:
        """One relaxation iteration; returns a full replacement of ``coords``."""
        k = float(opts["k"])
        c = float(opts["c"])
        damping = float(opts["damping"])
        floor = float(opts["min_distance"])
        count = len(coords)
        forces = [[0.0, 0.0] for _ in range(count)]

        for i in range(count):
            xi, yi = coords[i]
            for j in range(count):
                if i == j:
                    continue
                dx = xi - coords[j][0]
                dy = yi - coords[j][1]
                raw = math.hypot(dx, dy)
                if raw == 0.0:
                    # Coincident nodes: push apart in a random direction
                    angle = rng.random() * 2 * math.pi
                    dx, dy = math.cos(angle), math.sin(angle)
                    raw = 1.0
                dist = max(raw, floor)
                force = k / (dist * dist)
                forces[i][0] += (dx / raw) * force
                forces[i][1] += (dy / raw) * force

        for source, target in edges:
            dx = coords[target][0] - coords[source][0]
            dy = coords[target][1] - coords[source][1]
            forces[source][0] += dx * c
            forces[source][1] += dy * c

        return [
            self._clamp(x + fx * damping, y + fy * damping, box)
            for (x, y), (fx, fy) in zip(coords, forces)
        ]

    @staticmethod
    def _clamp_box(bounds: CanvasBounds, padding: float) -> Tuple[float, float, float, float]:
        """Clamp rectangle: padded canvas, never wider than the drawable area."""
        min_x = max(bounds.min_x, padding)
        max_x = min(bounds.max_x, bounds.width - padding)
        min_y = max(bounds.min_y, padding)
        max_y = min(bounds.max_y, bounds.height - padding)
        if min_x > max_x or min_y > max_y:
            return (bounds.min_x, bounds.max_x, bounds.min_y, bounds.max_y)
        return (min_x, max_x, min_y, max_y)

    @staticmethod
    def _clamp(x: float, y: float, box: Tuple[float, float, float, float]) -> Tuple[float, float]:
        min_x, max_x, min_y, max_y = box
        return (max(min_x, min(max_x, x)), max(min_y, min(max_y, y)))

    def _separate_coincident(
        self,
        coords: List[Tuple[float, float]],
        box: Tuple[float, float, float, float],
    ) -> List[Tuple[float, float]]:
        """Nudge nodes that ended on exactly the same coordinate.

        Clamping can pile nodes into a corner; each duplicate is moved by
        whole pixels toward the inside of the box until it is unique.
        """
        min_x, max_x, min_y, max_y = box
        limit = int((max_x - min_x) + (max_y - min_y)) + 1
        seen = set()
        result = []
        for x, y in coords:
            step = 0
            candidate = (x, y)
            while candidate in seen and step < limit:
                step += 1
                new_x = x + step if x + step <= max_x else x - step
                new_y = y + step if y + step <= max_y else y - step
                candidate = self._clamp(new_x, new_y, box)
            if step:
                logger.debug(f"Separated coincident node at ({x:.1f}, {y:.1f})")
            seen.add(candidate)
            result.append(candidate)
        return result
