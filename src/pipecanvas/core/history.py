# src/pipecanvas/core/history.py
"""Bounded linear undo/redo stack of graph snapshots.

The stack always holds at least one entry: a baseline snapshot (the empty
graph, or the state the manager was created with). ``save`` pushes the
state AFTER a mutation, so undoing k saves lands back on the baseline.

Ownership rule: every snapshot that enters or leaves the manager is a
deep copy. Mutating the live graph, or a snapshot handed out earlier, is
never observable through the stack.
"""

from __future__ import annotations

import copy
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, datetime

from pipecanvas.core.graph.models import Edge, Node

DEFAULT_CAPACITY = 50
BASELINE_ACTION = "Initial state"


@dataclass(frozen=True, slots=True)
class HistorySnapshot:
    """Independent copy of a full (nodes, edges) pair plus its label."""

    nodes: tuple[Node, ...]
    edges: tuple[Edge, ...]
    action: str
    timestamp: datetime

    @classmethod
    def capture(cls, nodes: Iterable[Node], edges: Iterable[Edge], action: str) -> HistorySnapshot:
        return cls(
            nodes=tuple(copy.deepcopy(node) for node in nodes),
            edges=tuple(copy.deepcopy(edge) for edge in edges),
            action=action,
            timestamp=datetime.now(UTC),
        )

    def clone(self) -> HistorySnapshot:
        """Deep copy sharing no Node/Edge objects with this snapshot."""
        return HistorySnapshot(
            nodes=tuple(copy.deepcopy(node) for node in self.nodes),
            edges=tuple(copy.deepcopy(edge) for edge in self.edges),
            action=self.action,
            timestamp=self.timestamp,
        )


@dataclass(frozen=True, slots=True)
class HistoryEntry:
    """Row of the history list shown to a user."""

    action: str
    timestamp: datetime
    is_current: bool


class HistoryManager:
    """Linear snapshot stack with a movable current pointer.

    Example:
        history = HistoryManager()
        history.save(graph.nodes, graph.edges, "Add Sort")
        previous = history.undo()   # baseline snapshot
        history.redo()              # "Add Sort" again
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY, initial: HistorySnapshot | None = None) -> None:
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        self._capacity = capacity
        self._stack: list[HistorySnapshot] = []
        self._current = -1
        self._reset(initial)

    @property
    def capacity(self) -> int:
        return self._capacity

    def __len__(self) -> int:
        return len(self._stack)

    def save(self, nodes: Iterable[Node], edges: Iterable[Edge], action: str) -> HistorySnapshot:
        """Record a new state, discarding any redo future.

        Returns:
            A copy of the stored snapshot.
        """
        del self._stack[self._current + 1 :]
        self._stack.append(HistorySnapshot.capture(nodes, edges, action))
        if len(self._stack) > self._capacity:
            # Pointer already names the (shifted) newest entry
            self._stack.pop(0)
        else:
            self._current += 1
        return self._stack[self._current].clone()

    def undo(self) -> HistorySnapshot | None:
        """Step back one entry, or None when already at the oldest."""
        if not self.can_undo():
            return None
        self._current -= 1
        return self._stack[self._current].clone()

    def redo(self) -> HistorySnapshot | None:
        """Step forward one entry, or None when already at the newest."""
        if not self.can_redo():
            return None
        self._current += 1
        return self._stack[self._current].clone()

    def can_undo(self) -> bool:
        return self._current > 0

    def can_redo(self) -> bool:
        return self._current < len(self._stack) - 1

    def current(self) -> HistorySnapshot | None:
        if 0 <= self._current < len(self._stack):
            return self._stack[self._current].clone()
        return None

    def entries(self) -> list[HistoryEntry]:
        return [
            HistoryEntry(action=snapshot.action, timestamp=snapshot.timestamp, is_current=index == self._current)
            for index, snapshot in enumerate(self._stack)
        ]

    def undo_label(self) -> str | None:
        """Action that undo would step back over."""
        if not self.can_undo():
            return None
        return self._stack[self._current].action

    def redo_label(self) -> str | None:
        """Action that redo would re-apply."""
        if not self.can_redo():
            return None
        return self._stack[self._current + 1].action

    def clear(self, initial: HistorySnapshot | None = None) -> None:
        """Drop every entry and start over from a fresh baseline."""
        self._reset(initial)

    def _reset(self, initial: HistorySnapshot | None) -> None:
        baseline = initial.clone() if initial is not None else HistorySnapshot.capture((), (), BASELINE_ACTION)
        self._stack = [baseline]
        self._current = 0
