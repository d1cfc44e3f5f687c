# tests/unit/engine/test_validation_adf.py
"""Tests for the ADF activity rules."""

from __future__ import annotations

import pytest

from pipecanvas.contracts.enums import Platform, Severity
from pipecanvas.contracts.results import ValidationResult
from pipecanvas.core.graph import Node
from pipecanvas.engine.validation import blocking_results, validate
from tests.helpers.graphs import chain, make_node


def _adf(*nodes: Node) -> list[ValidationResult]:
    return validate(list(nodes), [], Platform.ADF)


class TestActivityRules:
    """Required-property checks."""

    def test_blank_name_blocks(self) -> None:
        node = make_node("w", "Wait")
        node.name = "   "

        assert [result.message for result in blocking_results(_adf(node))] == ["Activity name is required."]

    def test_web_activity_needs_url(self) -> None:
        results = _adf(make_node("web", "WebActivity"))

        assert [result.message for result in blocking_results(results)] == ["URL is required for Web Activity."]

    def test_configured_web_activity(self) -> None:
        assert _adf(make_node("web", "WebActivity", url="https://example.test/api")) == []

    def test_negative_wait_time(self) -> None:
        results = _adf(make_node("w", "Wait", waitTimeInSeconds=-3))

        (blocking,) = blocking_results(results)
        assert "cannot be negative" in blocking.message

    def test_set_variable_requires_name(self) -> None:
        (blocking,) = blocking_results(_adf(make_node("v", "SetVariable")))

        assert blocking.message == "Variable Name is required."

    @pytest.mark.parametrize(
        ("category", "message"),
        [
            ("CopyData", "Linked Service should be defined."),
            ("ExecutePipeline", "Pipeline Reference is required for Execute Pipeline activity."),
        ],
    )
    def test_advisory_requirements(self, category: str, message: str) -> None:
        results = _adf(make_node("a", category))

        assert [(result.severity, result.message) for result in results] == [(Severity.WARNING, message)]

    def test_switch_requires_on(self) -> None:
        (blocking,) = blocking_results(_adf(make_node("sw", "Switch")))

        assert "On property" in blocking.message

    def test_catalog_defaults_satisfy_for_each_and_if(self) -> None:
        results = _adf(make_node("loop", "ForEach"), make_node("if", "IfCondition"))

        assert results
        assert all("isolated" in result.message for result in results)


class TestStructure:
    """ADF has no source or sink roles."""

    def test_no_destination_reachability_checks(self) -> None:
        nodes = [make_node("copy", "CopyData", linkedService="ls_sql"), make_node("wait", "Wait")]

        results = validate(nodes, chain("copy", "wait"), Platform.ADF)

        assert results == []

    def test_cycles_still_blocking(self) -> None:
        nodes = [make_node("a", "Wait"), make_node("b", "Wait")]
        edges = [*chain("a", "b"), *chain("b", "a")]

        blocking = blocking_results(validate(nodes, edges, Platform.ADF))

        assert [result.edge_or_node_id for result in blocking] == ["cycle:a,b"]
