"""Semantic type aliases for compile-time type safety."""

from typing import Any, NewType, TypeAlias

NodeID = NewType("NodeID", str)
"""Caller-supplied unique node identifier (e.g., 'sort_1')"""

EdgeID = NewType("EdgeID", str)
"""Unique edge identifier (e.g., 'e-src-sort')"""

SampleRow: TypeAlias = dict[str, Any]
"""One preview row: column name -> JSON-safe scalar."""

NodeProperties: TypeAlias = dict[str, Any]
"""Open, category-specific configuration bag of a node."""
