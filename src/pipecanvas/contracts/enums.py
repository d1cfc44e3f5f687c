"""Kinds, severities and platform tags shared across subsystem boundaries."""

from enum import StrEnum


class NodeKind(StrEnum):
    """Role tag of a pipeline node.

    Determines structural rules (degree limits, reachability). The set is
    the union of the three platforms' node roles:

    - SSIS: SOURCE, TRANSFORMATION, DESTINATION, CONTROL_FLOW_TASK
    - ADF: DATA_MOVEMENT, TRANSFORMATION, CONTROL_FLOW, OTHER
    - Databricks: NOTEBOOK, DATA_SOURCE, TRANSFORMATION, OUTPUT,
      ORCHESTRATION, CLUSTER
    """

    SOURCE = "source"
    TRANSFORMATION = "transformation"
    DESTINATION = "destination"
    CONTROL_FLOW_TASK = "control-flow-task"
    DATA_MOVEMENT = "data-movement"
    CONTROL_FLOW = "control-flow"
    OTHER = "other"
    NOTEBOOK = "notebook"
    DATA_SOURCE = "dataSource"
    OUTPUT = "output"
    ORCHESTRATION = "orchestration"
    CLUSTER = "cluster"


class Severity(StrEnum):
    """Severity of a validation result.

    Only ERROR blocks. WARNING and INFO are advisory.
    """

    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class Platform(StrEnum):
    """Target platform; selects the rule table and the cost model."""

    SSIS = "ssis"
    ADF = "adf"
    DATABRICKS = "databricks"


class BranchTag(StrEnum):
    """Logical output of a control-flow node an edge is attached to."""

    SUCCESS = "success"
    FAILURE = "failure"
    COMPLETION = "completion"


class DataShape(StrEnum):
    """Coarse column-structure class of the rows a node produces."""

    STRUCTURED = "structured"
    TEXT = "text"
    MIXED = "mixed"
    NESTED = "nested"


class MemoryImpact(StrEnum):
    """Memory-impact class of a node in the cost model."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class IssueSeverity(StrEnum):
    """Severity of a performance-analysis issue."""

    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"


def parse_platform(platform: Platform | str) -> Platform:
    """Coerce a platform tag to the enum.

    Raises:
        UnknownPlatformError: If the tag names no platform
    """
    from pipecanvas.contracts.errors import UnknownPlatformError

    if isinstance(platform, Platform):
        return platform
    try:
        return Platform(platform.lower())
    except ValueError:
        raise UnknownPlatformError(platform) from None
