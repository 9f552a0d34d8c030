"""Tests for the pointer drag state machine.

Tests cover:
- Drag sequence: grab offset preserved, final position P + delta, commit
- Click vs drag threshold (clicks select, never save)
- Clamping to the container margin
- One drag at a time, pointer leave, double-click navigation
- Commit is a no-op when the dragged node has vanished
"""

import pytest

from agent_network.core.drag_controller import (
    CLICK_THRESHOLD_PX,
    DragController,
    DragState,
    PointerOutcome,
)
from agent_network.core.layout_store import InMemoryKeyValueStore, LayoutPersistence
from agent_network.models.graph_model import GraphModel
from agent_network.models.layout_metadata import CanvasBounds, LayoutMode, NodePosition


@pytest.fixture
def graph():
    return GraphModel.from_dicts([
        {"id": "A", "name": "A", "route": "/a", "connections": ["B"]},
        {"id": "B", "name": "B", "connections": ["A"]},
    ])


@pytest.fixture
def persistence():
    return LayoutPersistence(InMemoryKeyValueStore())


@pytest.fixture
def events():
    return {"selected": [], "navigated": [], "committed": []}


@pytest.fixture
def controller(graph, persistence, events):
    controller = DragController(
        graph,
        persistence,
        CanvasBounds(),
        on_select=events["selected"].append,
        navigator=events["navigated"].append,
        on_commit=events["committed"].append,
    )
    controller.set_positions({
        "A": NodePosition(x=300, y=200),
        "B": NodePosition(x=600, y=400),
    })
    return controller


class TestDragSequence:
    """Test a full grab, move, release cycle."""

    def test_drag_moves_node_by_pointer_delta(self, controller, persistence, events):
        # Grab A 10px right and 5px below its center
        assert controller.pointer_down("A", 310, 205) is PointerOutcome.GRABBED
        assert controller.state is DragState.DRAGGING
        assert controller.session.offset == NodePosition(x=10, y=5)

        assert controller.pointer_move(410, 255) is PointerOutcome.MOVED
        assert controller.position_of("A") == NodePosition(x=400, y=250)

        assert controller.pointer_up() is PointerOutcome.COMMITTED
        assert controller.state is DragState.IDLE
        assert controller.position_of("A") == NodePosition(x=400, y=250)

        assert persistence.load_mode() is LayoutMode.CUSTOM
        saved = persistence.load_positions()
        assert saved["A"] == NodePosition(x=400, y=250)
        assert saved["B"] == NodePosition(x=600, y=400)
        assert events["committed"] == [saved]
        assert events["selected"] == []

    def test_pointer_up_with_coordinates_applies_final_move(self, controller, persistence):
        controller.pointer_down("B", 600, 400)
        controller.pointer_move(650, 400)
        assert controller.pointer_up(700, 450) is PointerOutcome.COMMITTED
        assert persistence.load_positions()["B"] == NodePosition(x=700, y=450)

    def test_other_nodes_untouched(self, controller):
        controller.pointer_down("A", 300, 200)
        controller.pointer_move(500, 500)
        assert controller.position_of("B") == NodePosition(x=600, y=400)

    def test_move_clamped_to_margin(self, controller, persistence):
        controller.pointer_down("A", 300, 200)
        controller.pointer_move(-500, 5000)
        assert controller.position_of("A") == NodePosition(x=60, y=540)
        controller.pointer_up()
        assert persistence.load_positions()["A"] == NodePosition(x=60, y=540)

    def test_positions_replaced_not_mutated(self, controller):
        before = controller.positions
        controller.pointer_down("A", 300, 200)
        controller.pointer_move(400, 300)
        assert before["A"] == NodePosition(x=300, y=200)


class TestClickVersusDrag:
    """A click must never be saved as a zero-distance drag."""

    def test_click_selects_without_saving(self, controller, persistence, events):
        controller.pointer_down("A", 300, 200)
        assert controller.pointer_up() is PointerOutcome.SELECTED
        assert events["selected"] == ["A"]
        assert persistence.load_mode() is None
        assert persistence.load_positions() is None

    def test_jitter_within_threshold_is_still_a_click(self, controller, persistence, events):
        controller.pointer_down("A", 300, 200)
        assert controller.pointer_move(303, 203) is PointerOutcome.IGNORED
        assert controller.position_of("A") == NodePosition(x=300, y=200)
        assert controller.pointer_up() is PointerOutcome.SELECTED
        assert persistence.load_mode() is None

    def test_movement_beyond_threshold_is_a_drag(self, controller):
        controller.pointer_down("A", 300, 200)
        outcome = controller.pointer_move(300 + CLICK_THRESHOLD_PX + 1, 200)
        assert outcome is PointerOutcome.MOVED
        assert controller.session.moved
        assert controller.pointer_up() is PointerOutcome.COMMITTED

    def test_returning_to_origin_after_drag_still_commits(self, controller, persistence):
        controller.pointer_down("A", 300, 200)
        controller.pointer_move(350, 200)
        controller.pointer_move(300, 200)
        assert controller.pointer_up() is PointerOutcome.COMMITTED
        assert persistence.load_positions()["A"] == NodePosition(x=300, y=200)


class TestPointerEdgeCases:

    def test_second_grab_ignored_while_dragging(self, controller):
        controller.pointer_down("A", 300, 200)
        assert controller.pointer_down("B", 600, 400) is PointerOutcome.IGNORED
        assert controller.dragging_node_id == "A"

    def test_grab_unknown_node_ignored(self, controller):
        assert controller.pointer_down("Z", 0, 0) is PointerOutcome.IGNORED
        assert controller.state is DragState.IDLE

    def test_grab_unplaced_node_ignored(self, graph, persistence):
        controller = DragController(graph, persistence)
        controller.set_positions({"A": NodePosition(x=100, y=100)})
        assert controller.pointer_down("B", 100, 100) is PointerOutcome.IGNORED

    def test_events_while_idle_ignored(self, controller):
        assert controller.pointer_move(1, 1) is PointerOutcome.IGNORED
        assert controller.pointer_up() is PointerOutcome.IGNORED
        assert controller.pointer_leave() is PointerOutcome.IGNORED

    def test_leave_after_move_commits(self, controller, persistence):
        controller.pointer_down("A", 300, 200)
        controller.pointer_move(320, 240)
        assert controller.pointer_leave() is PointerOutcome.COMMITTED
        assert persistence.load_mode() is LayoutMode.CUSTOM

    def test_leave_without_move_cancels(self, controller, persistence, events):
        controller.pointer_down("A", 300, 200)
        assert controller.pointer_leave() is PointerOutcome.CANCELLED
        assert events["selected"] == []
        assert persistence.load_mode() is None

    def test_commit_noop_when_node_vanished(self, controller, persistence, events):
        controller.pointer_down("A", 300, 200)
        controller.pointer_move(400, 300)
        controller.graph = GraphModel.from_dicts([{"id": "B", "name": "B"}])

        assert controller.pointer_up() is PointerOutcome.CANCELLED
        assert controller.state is DragState.IDLE
        assert persistence.load_mode() is None
        assert persistence.load_positions() is None
        assert events["committed"] == []


class TestCommitCompleteness:
    """A committed custom layout places every catalog node."""

    def test_unplaced_nodes_saved_on_circle(self, graph, persistence):
        controller = DragController(graph, persistence)
        controller.set_positions({"A": NodePosition(x=300, y=200)})

        controller.pointer_down("A", 300, 200)
        controller.pointer_move(350, 250)
        assert controller.pointer_up() is PointerOutcome.COMMITTED

        saved = persistence.load_positions()
        assert set(saved) == {"A", "B"}
        assert saved["A"] == NodePosition(x=350, y=250)
        # Second of two ring slots: straight below the canvas center
        assert saved["B"].x == pytest.approx(500)
        assert saved["B"].y == pytest.approx(500)
        assert controller.position_of("B") == saved["B"]


class TestLayoutDuringDrag:

    def test_set_positions_keeps_dragged_node(self, controller):
        controller.pointer_down("A", 300, 200)
        controller.pointer_move(450, 350)
        controller.set_positions({
            "A": NodePosition(x=100, y=100),
            "B": NodePosition(x=200, y=200),
        })
        assert controller.position_of("A") == NodePosition(x=450, y=350)
        assert controller.position_of("B") == NodePosition(x=200, y=200)


class TestDoubleClick:

    def test_navigates_to_route(self, controller, events):
        assert controller.double_click("A") is PointerOutcome.NAVIGATED
        assert events["navigated"] == ["/a"]

    def test_no_route_ignored(self, controller, events):
        assert controller.double_click("B") is PointerOutcome.IGNORED
        assert events["navigated"] == []

    def test_unknown_node_ignored(self, controller):
        assert controller.double_click("Z") is PointerOutcome.IGNORED

    def test_no_navigator_ignored(self, graph, persistence):
        assert DragController(graph, persistence).double_click("A") is PointerOutcome.IGNORED
