# src/pipecanvas/core/graph/models.py
"""Node and edge records of the pipeline graph.

Leaf module: no intra-package imports outside contracts.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from pipecanvas.contracts.enums import BranchTag, DataShape, NodeKind
from pipecanvas.contracts.results import ValidationResult
from pipecanvas.contracts.types import NodeProperties


@dataclass(slots=True)
class Node:
    """A pipeline step.

    has_error and error_message are derived: they are recomputed by the
    editor after every validation pass and never set by editing code.
    is_sorted is the one flag the validator itself writes (sort categories
    mark their output as sorted for downstream merge joins).

    Properties are an open bag; the graph layer never inspects them.
    Category rules validate them by name presence and shape only.
    """

    id: str
    kind: NodeKind
    category: str
    name: str = ""
    properties: NodeProperties = field(default_factory=dict)
    data_shape: DataShape = DataShape.STRUCTURED
    has_error: bool = False
    error_message: str = ""
    is_sorted: bool = False

    def __post_init__(self) -> None:
        # Coerce raw tags coming from persisted snapshots and tests
        self.kind = NodeKind(self.kind)
        self.data_shape = DataShape(self.data_shape)

    def prop(self, key: str) -> object:
        """Return a property value, or None when unset."""
        return self.properties.get(key)

    def has_prop(self, key: str) -> bool:
        """True when a property is present and not blank.

        None, empty strings, whitespace-only strings and empty collections
        all count as missing.
        """
        value = self.properties.get(key)
        if value is None:
            return False
        if isinstance(value, str):
            return value.strip() != ""
        if isinstance(value, list | tuple | dict | set):
            return len(value) > 0
        return True


@dataclass(slots=True)
class Edge:
    """A directed connection between two node ids.

    source and target are plain ids and may dangle; the validator reports a
    dangling reference, the graph never rejects one.
    """

    id: str
    source: str
    target: str
    branch: BranchTag | None = None
    is_valid: bool = True
    validation_result: ValidationResult | None = None

    def __post_init__(self) -> None:
        if self.branch is not None:
            self.branch = BranchTag(self.branch)

    @property
    def is_self_loop(self) -> bool:
        return self.source == self.target
