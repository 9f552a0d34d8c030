"""Tests for the layout engines and layout resolution.

Tests cover:
- Circular: every node at the configured radius, first node at the top
- Hierarchical: y depends only on the level, unknown nodes omitted
- Force-directed: bounded, no coincident nodes, reproducible with a seed,
  cancellable
- Star: hub at the center, others equidistant
- Custom: verbatim positions, circular fallback when incomplete
- Unknown modes fall back to circular
"""

import math
import random

import pytest

from agent_network.layout import compute_layout, get_engine, resolve_layout
from agent_network.layout.engines import (
    DEFAULT_LAYOUT_OPTIONS,
    ENGINES,
    CircularLayoutEngine,
    ForceDirectedLayoutEngine,
    HierarchicalLayoutEngine,
    StarLayoutEngine,
)
from agent_network.layout.engines.base import LayoutCancelledError
from agent_network.models.graph_model import GraphModel
from agent_network.models.layout_metadata import CanvasBounds, LayoutMode, NodePosition


@pytest.fixture
def nodes():
    return GraphModel.default().list_nodes()


@pytest.fixture
def bounds():
    return CanvasBounds()


class TestRegistry:
    """Test engine lookup."""

    def test_all_modes_registered(self):
        assert set(ENGINES) == {mode.value for mode in LayoutMode}
        assert set(DEFAULT_LAYOUT_OPTIONS) == set(ENGINES)

    def test_get_engine(self):
        assert isinstance(get_engine("star"), StarLayoutEngine)
        assert get_engine("force-directed").name == "force-directed"

    def test_unknown_engine_is_circular(self):
        assert isinstance(get_engine("spiral"), CircularLayoutEngine)


class TestCircularLayout:

    def test_every_node_on_radius(self, nodes, bounds):
        positions = CircularLayoutEngine().compute(nodes, bounds=bounds)
        center = bounds.center
        assert len(positions) == len(nodes)
        for pos in positions.values():
            assert pos.distance_to(center) == pytest.approx(200.0)

    def test_first_node_at_top(self, nodes, bounds):
        positions = CircularLayoutEngine().compute(nodes, bounds=bounds)
        first = positions[nodes[0].id]
        assert first.x == pytest.approx(500.0)
        assert first.y == pytest.approx(100.0)

    def test_even_angular_spacing(self, nodes, bounds):
        positions = CircularLayoutEngine().compute(nodes, bounds=bounds)
        center = bounds.center
        angles = [
            math.atan2(positions[node.id].y - center.y, positions[node.id].x - center.x)
            for node in nodes
        ]
        step = 2 * math.pi / len(nodes)
        for a, b in zip(angles, angles[1:]):
            assert (b - a) % (2 * math.pi) == pytest.approx(step)

    def test_custom_radius(self, nodes, bounds):
        positions = CircularLayoutEngine().compute(nodes, {"radius": 150}, bounds=bounds)
        for pos in positions.values():
            assert pos.distance_to(bounds.center) == pytest.approx(150.0)

    def test_empty(self, bounds):
        assert CircularLayoutEngine().compute([], bounds=bounds) == {}


class TestHierarchicalLayout:

    def test_y_depends_only_on_level(self, nodes, bounds):
        positions = HierarchicalLayoutEngine().compute(nodes, bounds=bounds)
        for level_index, level in enumerate(DEFAULT_LAYOUT_OPTIONS["hierarchical"]["levels"]):
            ys = {positions[node_id].y for node_id in level}
            assert ys == {100.0 + 150.0 * level_index}

    def test_level_spacing_across_width(self, nodes, bounds):
        positions = HierarchicalLayoutEngine().compute(nodes, bounds=bounds)
        assert positions["rapidcare"].x == pytest.approx(450.0)
        assert positions["facility"].x == pytest.approx(300.0)
        assert positions["imaging"].x == pytest.approx(600.0)
        assert [positions[n].x for n in ("carepilot", "medicine", "doctor", "other")] == \
            pytest.approx([180.0, 360.0, 540.0, 720.0])

    def test_nodes_without_level_are_omitted(self, nodes, bounds):
        levels = [["rapidcare"], ["doctor", "ghost"]]
        positions = HierarchicalLayoutEngine().compute(nodes, {"levels": levels}, bounds=bounds)
        assert set(positions) == {"rapidcare", "doctor"}

    def test_resolve_reports_omitted(self, nodes):
        result = resolve_layout(
            "hierarchical", nodes, options={"levels": [["rapidcare", "doctor"]]}
        )
        assert result.mode is LayoutMode.HIERARCHICAL
        assert "followup" in result.omitted
        assert "rapidcare" not in result.omitted

    def test_bottom_level_clamped_into_canvas(self, nodes):
        result = resolve_layout("hierarchical", nodes)
        assert result.positions["followup"].y == pytest.approx(540.0)
        assert result.positions["surveillance"].y == pytest.approx(540.0)


class TestForceDirectedLayout:

    def test_within_bounds_and_unique(self, nodes, bounds):
        for seed in range(5):
            positions = ForceDirectedLayoutEngine().compute(
                nodes, bounds=bounds, rng=random.Random(seed)
            )
            assert len(positions) == len(nodes)
            coords = {(pos.x, pos.y) for pos in positions.values()}
            assert len(coords) == len(nodes)
            for pos in positions.values():
                assert 100 <= pos.x <= 900
                assert 100 <= pos.y <= 500

    def test_reproducible_with_seed(self, nodes, bounds):
        a = ForceDirectedLayoutEngine().compute(nodes, bounds=bounds, rng=random.Random(42))
        b = ForceDirectedLayoutEngine().compute(nodes, bounds=bounds, rng=random.Random(42))
        assert a == b

    def test_coincident_start_is_separated(self, nodes, bounds):
        """Zero-size initial spread puts every node on the same point."""
        positions = ForceDirectedLayoutEngine().compute(
            nodes, {"init_spread": (0.0, 0.0)}, bounds=bounds, rng=random.Random(1)
        )
        coords = {(pos.x, pos.y) for pos in positions.values()}
        assert len(coords) == len(nodes)

    def test_cancel_aborts(self, nodes, bounds):
        calls = []

        def cancel():
            calls.append(1)
            return len(calls) > 3

        with pytest.raises(LayoutCancelledError) as exc_info:
            ForceDirectedLayoutEngine().compute(
                nodes, bounds=bounds, rng=random.Random(0), cancel=cancel
            )
        assert exc_info.value.iteration == 3

    def test_connected_nodes_pulled_closer(self, bounds):
        """Averaged over seeds, connected pairs end closer than unconnected ones."""
        graph = GraphModel.from_dicts([
            {"id": "a", "name": "a", "connections": ["b"]},
            {"id": "b", "name": "b", "connections": ["a"]},
            {"id": "c", "name": "c"},
            {"id": "d", "name": "d"},
        ])
        linked = unlinked = 0.0
        for seed in range(20):
            positions = ForceDirectedLayoutEngine().compute(
                graph.list_nodes(), {"iterations": 1000}, bounds=bounds, rng=random.Random(seed)
            )
            linked += positions["a"].distance_to(positions["b"])
            unlinked += positions["c"].distance_to(positions["d"])
        assert linked < unlinked


class TestStarLayout:

    def test_hub_at_center_others_equidistant(self, nodes, bounds):
        positions = StarLayoutEngine().compute(nodes, bounds=bounds)
        center = bounds.center
        assert positions["doctor"] == center
        at_center = [nid for nid, pos in positions.items() if pos == center]
        assert at_center == ["doctor"]
        for node_id, pos in positions.items():
            if node_id != "doctor":
                assert pos.distance_to(center) == pytest.approx(220.0)

    def test_configurable_hub(self, nodes, bounds):
        positions = StarLayoutEngine().compute(nodes, {"hub": "rapidcare"}, bounds=bounds)
        assert positions["rapidcare"] == bounds.center

    def test_unknown_hub_uses_first_node(self, nodes, bounds):
        positions = StarLayoutEngine().compute(nodes, {"hub": "ghost"}, bounds=bounds)
        assert positions[nodes[0].id] == bounds.center


class TestResolveLayout:
    """Test mode resolution and fallbacks."""

    def test_unknown_mode_falls_back_to_circular(self, nodes):
        result = resolve_layout("spiral", nodes)
        assert result.mode is LayoutMode.CIRCULAR
        assert result.requested_mode == "spiral"
        assert result.is_fallback
        assert result.positions == compute_layout("circular", nodes)

    def test_custom_uses_saved_positions_verbatim(self, nodes):
        saved = {node.id: NodePosition(x=10 + i, y=20 + i) for i, node in enumerate(nodes)}
        result = resolve_layout(LayoutMode.CUSTOM, nodes, saved)
        assert result.mode is LayoutMode.CUSTOM
        assert result.positions == saved
        assert not result.is_fallback

    def test_custom_incomplete_relabels_to_circular(self, nodes):
        saved = {"rapidcare": NodePosition(x=300, y=300)}
        result = resolve_layout("custom", nodes, saved)
        assert result.mode is LayoutMode.CIRCULAR
        assert result.is_fallback
        assert result.positions == compute_layout("circular", nodes)

    def test_custom_without_positions(self, nodes):
        assert resolve_layout("custom", nodes, None).mode is LayoutMode.CIRCULAR
        assert resolve_layout("custom", nodes, {}).mode is LayoutMode.CIRCULAR

    def test_custom_ignores_extra_saved_nodes(self, nodes):
        saved = {node.id: NodePosition(x=100, y=100 + i) for i, node in enumerate(nodes)}
        saved["retired-agent"] = NodePosition(x=1, y=1)
        result = resolve_layout("custom", nodes, saved)
        assert "retired-agent" not in result.positions

    @pytest.mark.parametrize("mode", ["circular", "hierarchical", "force-directed", "star"])
    def test_results_inside_canvas(self, nodes, bounds, mode):
        result = resolve_layout(mode, nodes, bounds=bounds, rng=random.Random(3))
        for pos in result.positions.values():
            assert bounds.contains(pos)
