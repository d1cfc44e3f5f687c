# src/pipecanvas/core/persistence.py
"""Persisted snapshot format and share links.

Wire shape: ``{"nodes": [...], "edges": [...], "formatVersion": "1.0.0"}``.
Keys inside node/edge records are camelCase, matching the editor's
storage format.

Loading is all-or-nothing. Any problem (bad JSON, wrong shape, another
format version, node kinds the active platform does not have) raises
SnapshotLoadError; there is no migration and no partial load. File loads
additionally discard the corrupted file so the next session starts clean.
"""

from __future__ import annotations

import base64
import binascii
import json
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from pipecanvas.contracts.enums import BranchTag, DataShape, NodeKind, Platform, parse_platform
from pipecanvas.contracts.errors import DuplicateNodeError, SnapshotLoadError
from pipecanvas.core.catalog import allowed_kinds
from pipecanvas.core.graph.graph import PipelineGraph
from pipecanvas.core.graph.models import Edge, Node
from pipecanvas.core.logging import get_logger

FORMAT_VERSION = "1.0.0"

logger = get_logger(__name__)


class PersistedNode(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str = Field(min_length=1)
    kind: NodeKind
    category: str
    name: str = ""
    properties: dict[str, Any] = Field(default_factory=dict)
    data_shape: DataShape = Field(default=DataShape.STRUCTURED, alias="dataShape")
    is_sorted: bool = Field(default=False, alias="isSorted")


class PersistedEdge(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str = Field(min_length=1)
    source: str
    target: str
    branch: BranchTag | None = None


class PersistedSnapshot(BaseModel):
    """Top-level persisted document."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    nodes: list[PersistedNode]
    edges: list[PersistedEdge]
    format_version: str = Field(alias="formatVersion")


def dumps_snapshot(graph: PipelineGraph, *, indent: int | None = None) -> str:
    """Serialize a graph to the persisted JSON format.

    Derived validation flags (has_error, is_valid, ...) are not persisted;
    they are recomputed on load.
    """
    document = PersistedSnapshot(
        nodes=[
            PersistedNode(
                id=node.id,
                kind=node.kind,
                category=node.category,
                name=node.name,
                properties=node.properties,
                data_shape=node.data_shape,
                is_sorted=node.is_sorted,
            )
            for node in graph.nodes
        ],
        edges=[
            PersistedEdge(id=edge.id, source=edge.source, target=edge.target, branch=edge.branch) for edge in graph.edges
        ],
        format_version=FORMAT_VERSION,
    )
    return document.model_dump_json(by_alias=True, indent=indent)


def loads_snapshot(text: str | bytes, platform: Platform | str) -> PipelineGraph:
    """Parse persisted JSON into a new graph.

    Raises:
        SnapshotLoadError: With reason malformed, schema, version or corrupt.
        UnknownPlatformError: If platform is not a known tag.
    """
    platform = parse_platform(platform)
    try:
        raw = json.loads(text)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise SnapshotLoadError(f"Snapshot is not valid JSON: {exc}", reason="malformed") from exc

    if isinstance(raw, dict) and "formatVersion" in raw and raw["formatVersion"] != FORMAT_VERSION:
        raise SnapshotLoadError(
            f"Unsupported snapshot format version {raw['formatVersion']!r} (expected {FORMAT_VERSION!r})",
            reason="version",
        )

    try:
        document = PersistedSnapshot.model_validate(raw)
    except ValidationError as exc:
        raise SnapshotLoadError(f"Snapshot does not match the persisted format: {exc}", reason="schema") from exc

    permitted = allowed_kinds(platform)
    foreign = sorted({record.kind.value for record in document.nodes if record.kind not in permitted})
    if foreign:
        raise SnapshotLoadError(
            f"Snapshot contains node kinds not available on {platform.value}: {', '.join(foreign)}",
            reason="corrupt",
        )

    graph = PipelineGraph()
    try:
        graph.replace(
            (
                Node(
                    id=record.id,
                    kind=record.kind,
                    category=record.category,
                    name=record.name,
                    properties=record.properties,
                    data_shape=record.data_shape,
                    is_sorted=record.is_sorted,
                )
                for record in document.nodes
            ),
            (Edge(id=record.id, source=record.source, target=record.target, branch=record.branch) for record in document.edges),
        )
    except DuplicateNodeError as exc:
        raise SnapshotLoadError(f"Snapshot is corrupt: {exc}", reason="corrupt") from exc
    return graph


def save_snapshot_file(path: Path, graph: PipelineGraph) -> None:
    """Write a graph as pretty-printed JSON, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(dumps_snapshot(graph, indent=2), encoding="utf-8")


def load_snapshot_file(path: Path, platform: Platform | str) -> PipelineGraph:
    """Load a snapshot file, discarding it if it is corrupt.

    Raises:
        FileNotFoundError: If path does not exist.
        SnapshotLoadError: If the contents cannot be loaded. The file has
            already been deleted when this is raised.
    """
    text = path.read_bytes()
    try:
        return loads_snapshot(text, platform)
    except SnapshotLoadError as exc:
        logger.warning("Discarding unloadable snapshot", path=str(path), reason=exc.reason, error=str(exc))
        path.unlink(missing_ok=True)
        raise


def encode_share_link(graph: PipelineGraph) -> str:
    """URL-safe token carrying the whole persisted snapshot."""
    payload = dumps_snapshot(graph).encode("utf-8")
    return base64.urlsafe_b64encode(payload).decode("ascii").rstrip("=")


def decode_share_link(token: str, platform: Platform | str) -> PipelineGraph:
    """Inverse of encode_share_link.

    Raises:
        SnapshotLoadError: If the token is not valid base64 or the payload
            fails to load.
    """
    padded = token.strip() + "=" * (-len(token.strip()) % 4)
    try:
        payload = base64.urlsafe_b64decode(padded.encode("ascii"))
    except (binascii.Error, UnicodeEncodeError) as exc:
        raise SnapshotLoadError(f"Share link is not valid base64: {exc}", reason="malformed") from exc
    return loads_snapshot(payload, platform)
