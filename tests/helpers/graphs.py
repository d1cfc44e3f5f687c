# tests/helpers/graphs.py
"""Graph builders and Hypothesis strategies shared by unit and property tests."""

from __future__ import annotations

from typing import Any

from hypothesis import strategies as st

from pipecanvas.contracts.enums import NodeKind, Platform
from pipecanvas.core.catalog import categories, get_entry
from pipecanvas.core.graph import Edge, Node


def make_node(node_id: str, category: str, platform: Platform = Platform.SSIS, **properties: Any) -> Node:
    """Node built from the catalog entry for category, with property overrides."""
    entry = get_entry(platform, category)
    assert entry is not None, f"unknown {platform} category {category}"
    return Node(
        id=node_id,
        kind=entry.kind,
        category=entry.category,
        name=entry.display_name,
        properties={**entry.fresh_properties(), **properties},
        data_shape=entry.data_shape,
    )


def raw_node(node_id: str, kind: NodeKind, category: str = "Generic", name: str = "", **properties: Any) -> Node:
    return Node(id=node_id, kind=kind, category=category, name=name or node_id, properties=dict(properties))


def make_edge(source: str, target: str, edge_id: str | None = None) -> Edge:
    return Edge(id=edge_id or f"{source}->{target}", source=source, target=target)


def chain(*node_ids: str) -> list[Edge]:
    """Edges linking node_ids in order."""
    return [make_edge(source, target) for source, target in zip(node_ids, node_ids[1:], strict=False)]


@st.composite
def graphs(
    draw: st.DrawFn,
    platform: Platform = Platform.SSIS,
    max_nodes: int = 8,
    allow_dangling: bool = True,
) -> tuple[list[Node], list[Edge]]:
    """Arbitrary catalog-built graphs, cycles and self-loops included."""
    count = draw(st.integers(min_value=0, max_value=max_nodes))
    category_names = categories(platform)
    nodes = [make_node(f"n{index}", draw(st.sampled_from(category_names)), platform) for index in range(count)]

    endpoint_ids = [node.id for node in nodes]
    if allow_dangling:
        endpoint_ids.append("ghost")
    edges: list[Edge] = []
    if endpoint_ids:
        pairs = draw(
            st.lists(
                st.tuples(st.sampled_from(endpoint_ids), st.sampled_from(endpoint_ids)),
                max_size=max_nodes * 2,
                unique=True,
            )
        )
        edges = [make_edge(source, target, f"e{index}") for index, (source, target) in enumerate(pairs)]
    return nodes, edges
