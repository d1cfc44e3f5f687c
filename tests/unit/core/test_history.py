# tests/unit/core/test_history.py
"""Tests for the bounded undo/redo history."""

from __future__ import annotations

import pytest

from pipecanvas.contracts.enums import NodeKind
from pipecanvas.core.graph import Node
from pipecanvas.core.history import BASELINE_ACTION, HistoryManager, HistorySnapshot
from tests.helpers.graphs import make_edge, raw_node


def _nodes(*ids: str) -> list[Node]:
    return [raw_node(node_id, NodeKind.TRANSFORMATION) for node_id in ids]


def _ids(snapshot: HistorySnapshot | None) -> list[str]:
    assert snapshot is not None
    return [node.id for node in snapshot.nodes]


class TestSaveUndoRedo:
    """Pointer movement over the stack."""

    def test_starts_with_empty_baseline(self) -> None:
        history = HistoryManager()

        assert len(history) == 1
        assert history.can_undo() is False
        assert history.can_redo() is False
        current = history.current()
        assert current is not None
        assert current.nodes == ()
        assert current.action == BASELINE_ACTION

    def test_k_saves_undo_k_times_to_empty(self) -> None:
        history = HistoryManager()
        for index in range(4):
            history.save(_nodes(*[f"n{i}" for i in range(index + 1)]), [], f"step {index}")

        for _ in range(4):
            assert history.undo() is not None

        assert _ids(history.current()) == []
        assert history.undo() is None

    def test_redo_restores_equal_but_distinct_snapshot(self) -> None:
        history = HistoryManager()
        saved = history.save(_nodes("a"), [make_edge("a", "a")], "Add a")
        history.undo()

        redone = history.redo()

        assert redone is not None
        assert redone.nodes == saved.nodes
        assert redone.edges == saved.edges
        assert redone.nodes[0] is not saved.nodes[0]

    def test_save_after_undo_discards_redo_future(self) -> None:
        history = HistoryManager()
        history.save(_nodes("a"), [], "Add a")
        history.save(_nodes("a", "b"), [], "Add b")
        history.undo()

        history.save(_nodes("a", "c"), [], "Add c")

        assert history.can_redo() is False
        assert history.redo() is None
        assert [entry.action for entry in history.entries()] == [BASELINE_ACTION, "Add a", "Add c"]

    def test_redo_at_newest_is_noop(self) -> None:
        history = HistoryManager()
        history.save(_nodes("a"), [], "Add a")
        assert history.redo() is None


class TestIsolation:
    """Snapshots never alias live or stored state."""

    def test_mutating_live_nodes_after_save_is_invisible(self) -> None:
        history = HistoryManager()
        live = _nodes("a")
        history.save(live, [], "Add a")

        live[0].properties["changed"] = True
        live[0].name = "renamed"

        current = history.current()
        assert current is not None
        assert current.nodes[0].properties == {}
        assert current.nodes[0].name == "a"

    def test_mutating_returned_snapshot_is_invisible(self) -> None:
        history = HistoryManager()
        history.save(_nodes("a"), [], "Add a")

        returned = history.current()
        assert returned is not None
        returned.nodes[0].properties["x"] = 1

        again = history.current()
        assert again is not None
        assert again.nodes[0].properties == {}


class TestCapacity:
    """Oldest entries are evicted past capacity."""

    def test_eviction_keeps_capacity_entries(self) -> None:
        history = HistoryManager(capacity=3)
        for index in range(5):
            history.save(_nodes(f"n{index}"), [], f"step {index}")

        assert len(history) == 3
        assert [entry.action for entry in history.entries()] == ["step 2", "step 3", "step 4"]
        assert history.entries()[-1].is_current is True

        assert history.undo() is not None
        assert history.undo() is not None
        assert history.undo() is None

    def test_capacity_must_be_positive(self) -> None:
        with pytest.raises(ValueError):
            HistoryManager(capacity=0)


class TestLabels:
    """undo_label / redo_label / clear."""

    def test_labels(self) -> None:
        history = HistoryManager()
        assert history.undo_label() is None

        history.save(_nodes("a"), [], "Add a")
        assert history.undo_label() == "Add a"
        assert history.redo_label() is None

        history.undo()
        assert history.undo_label() is None
        assert history.redo_label() == "Add a"

    def test_clear_with_initial_baseline(self) -> None:
        history = HistoryManager()
        history.save(_nodes("a"), [], "Add a")

        history.clear(HistorySnapshot.capture(_nodes("x"), [], "Loaded"))

        assert len(history) == 1
        assert _ids(history.current()) == ["x"]
        assert history.can_undo() is False
