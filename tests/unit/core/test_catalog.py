# tests/unit/core/test_catalog.py
"""Tests for the static node catalog."""

from __future__ import annotations

import pytest

from pipecanvas.contracts.enums import DataShape, NodeKind, Platform
from pipecanvas.contracts.errors import UnknownPlatformError
from pipecanvas.core.catalog import allowed_kinds, categories, get_entry


class TestCatalogLookup:
    """get_entry / categories / allowed_kinds."""

    def test_ssis_entry(self) -> None:
        entry = get_entry(Platform.SSIS, "FlatFileSource")

        assert entry is not None
        assert entry.kind is NodeKind.SOURCE
        assert entry.data_shape is DataShape.TEXT
        assert entry.display_name == "Flat File Source"

    def test_unknown_category(self) -> None:
        assert get_entry("ssis", "NoSuchThing") is None

    def test_platforms_are_disjoint_namespaces(self) -> None:
        assert get_entry(Platform.ADF, "Sort") is None
        assert "CopyData" in categories(Platform.ADF)
        assert "DeltaTableSink" in categories("databricks")

    def test_fresh_properties_are_independent(self) -> None:
        entry = get_entry(Platform.DATABRICKS, "DataFrameTransform")
        assert entry is not None

        first = entry.fresh_properties()
        first["operations"].append("groupBy")

        assert entry.fresh_properties()["operations"] == ["select", "filter"]

    def test_default_properties_are_read_only(self) -> None:
        entry = get_entry(Platform.ADF, "Wait")
        assert entry is not None
        with pytest.raises(TypeError):
            entry.default_properties["waitTimeInSeconds"] = 5  # type: ignore[index]

    def test_allowed_kinds(self) -> None:
        assert allowed_kinds(Platform.SSIS) == frozenset(
            {NodeKind.SOURCE, NodeKind.TRANSFORMATION, NodeKind.DESTINATION, NodeKind.CONTROL_FLOW_TASK}
        )
        assert NodeKind.CLUSTER in allowed_kinds(Platform.DATABRICKS)
        assert NodeKind.SOURCE not in allowed_kinds(Platform.ADF)

    def test_unknown_platform(self) -> None:
        with pytest.raises(UnknownPlatformError):
            categories("nifi")
