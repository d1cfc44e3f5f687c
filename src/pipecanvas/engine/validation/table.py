# src/pipecanvas/engine/validation/table.py
"""RuleTable: everything that distinguishes one platform's validator.

Behavior is dispatched through lookup tables keyed by category (or kind,
or (source category, target category) pair) rather than by branching, so
supporting a new category is a table insertion.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TypeAlias

from pipecanvas.contracts.enums import NodeKind, Platform, Severity
from pipecanvas.contracts.results import ValidationResult
from pipecanvas.core.graph.models import Node
from pipecanvas.engine.validation.context import RuleContext

NodeRule: TypeAlias = Callable[[Node, RuleContext], Iterable[ValidationResult]]
GraphRule: TypeAlias = Callable[[RuleContext], Iterable[ValidationResult]]


@dataclass(frozen=True, slots=True)
class Compatibility:
    """Verdict for one (source category, target category) connection."""

    severity: Severity
    message: str
    suggestion: str | None = None


def _empty_mapping() -> MappingProxyType:
    return MappingProxyType({})


@dataclass(frozen=True, slots=True)
class RuleTable:
    """Structural settings plus rule functions for one platform.

    Structural settings drive the shared rules in ``structural``:

    - source_kinds: must have no incoming edge.
    - sink_kinds: must have no outgoing edge; reachability targets.
    - flow_kinds: must have a directed path to some sink kind.
    - requires_io_kinds: need at least one input (error) and one output
      (warning).
    - single_input_kinds / single_output_kinds: limited to one edge in
      that direction unless the category is a named exception.
    - skip_kinds: excluded from the table's node, kind and category rules
      (the shared structural checks still run).
    """

    platform: Platform
    source_kinds: frozenset[NodeKind] = frozenset()
    sink_kinds: frozenset[NodeKind] = frozenset()
    flow_kinds: frozenset[NodeKind] = frozenset()
    requires_io_kinds: frozenset[NodeKind] = frozenset()
    single_input_kinds: frozenset[NodeKind] = frozenset()
    single_output_kinds: frozenset[NodeKind] = frozenset()
    multi_input_categories: frozenset[str] = frozenset()
    multi_output_categories: frozenset[str] = frozenset()
    skip_kinds: frozenset[NodeKind] = frozenset()
    compatibility: Mapping[tuple[str, str], Compatibility] = field(default_factory=_empty_mapping)
    node_rules: tuple[NodeRule, ...] = ()
    kind_rules: Mapping[NodeKind, tuple[NodeRule, ...]] = field(default_factory=_empty_mapping)
    category_rules: Mapping[str, tuple[NodeRule, ...]] = field(default_factory=_empty_mapping)
    graph_rules: tuple[GraphRule, ...] = ()

    def rules_for(self, node: Node) -> list[NodeRule]:
        """Node rules that apply to one node, in evaluation order."""
        if node.kind in self.skip_kinds:
            return []
        return [
            *self.node_rules,
            *self.kind_rules.get(node.kind, ()),
            *self.category_rules.get(node.category, ()),
        ]
