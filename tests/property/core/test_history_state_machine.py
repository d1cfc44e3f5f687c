# tests/property/core/test_history_state_machine.py
"""Stateful property tests for the undo/redo history.

The history is a bounded linear stack with a movable pointer:
- save: drops the redo future, pushes, evicts the oldest past capacity
- undo/redo: move the pointer, never past either end
- clear: back to a single baseline entry

A plain list of graph states plus an index serves as the model.

Key Invariants:
- The current snapshot always equals the model state at the pointer
- The stack never exceeds its capacity and never empties
- can_undo/can_redo agree with the model pointer
"""

from __future__ import annotations

from hypothesis import strategies as st
from hypothesis.stateful import RuleBasedStateMachine, invariant, precondition, rule

from pipecanvas.contracts.enums import NodeKind
from pipecanvas.core.graph import Node
from pipecanvas.core.history import HistoryManager
from tests.property.settings import STATE_MACHINE_SETTINGS

CAPACITY = 5


class HistoryStateMachine(RuleBasedStateMachine):
    """Explores save/undo/redo/clear sequences against a list model."""

    def __init__(self) -> None:
        super().__init__()
        self.history = HistoryManager(capacity=CAPACITY)
        self.live: list[Node] = []
        self.counter = 0

        # Model: node-id tuples per entry, and the current index
        self.model: list[tuple[str, ...]] = [()]
        self.pointer = 0

    def _ids(self) -> tuple[str, ...]:
        return tuple(node.id for node in self.live)

    @rule(kind=st.sampled_from([NodeKind.SOURCE, NodeKind.TRANSFORMATION, NodeKind.DESTINATION]))
    def save_new_node(self, kind: NodeKind) -> None:
        """Add a node to the live graph and record it."""
        self.live.append(Node(id=f"n{self.counter}", kind=kind, category="Generic"))
        self.counter += 1
        self.history.save(self.live, [], f"Add n{self.counter}")

        del self.model[self.pointer + 1 :]
        self.model.append(self._ids())
        if len(self.model) > CAPACITY:
            self.model.pop(0)
        self.pointer = len(self.model) - 1

    @rule()
    def undo(self) -> None:
        snapshot = self.history.undo()
        if self.pointer == 0:
            assert snapshot is None
            return
        self.pointer -= 1
        assert snapshot is not None
        self.live = list(snapshot.nodes)

    @rule()
    def redo(self) -> None:
        snapshot = self.history.redo()
        if self.pointer == len(self.model) - 1:
            assert snapshot is None
            return
        self.pointer += 1
        assert snapshot is not None
        self.live = list(snapshot.nodes)

    @precondition(lambda self: len(self.live) > 0)
    @rule()
    def mutate_live_graph(self) -> None:
        """Editing the live graph must never leak into stored snapshots."""
        before = self.history.current()
        self.live[0].properties["touched"] = True
        self.live[0].name = "changed"
        assert self.history.current() == before

    @rule()
    def clear(self) -> None:
        self.history.clear()
        self.live = []
        self.model = [()]
        self.pointer = 0

    @invariant()
    def current_matches_model(self) -> None:
        current = self.history.current()
        assert current is not None
        assert tuple(node.id for node in current.nodes) == self.model[self.pointer]

    @invariant()
    def bounded_and_never_empty(self) -> None:
        assert 1 <= len(self.history) <= CAPACITY
        assert len(self.history) == len(self.model)

    @invariant()
    def pointer_flags_agree(self) -> None:
        assert self.history.can_undo() == (self.pointer > 0)
        assert self.history.can_redo() == (self.pointer < len(self.model) - 1)
        entries = self.history.entries()
        assert [entry.is_current for entry in entries].index(True) == self.pointer


TestHistoryStateMachine = HistoryStateMachine.TestCase
TestHistoryStateMachine.settings = STATE_MACHINE_SETTINGS
