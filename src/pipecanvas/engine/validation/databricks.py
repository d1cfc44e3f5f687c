# src/pipecanvas/engine/validation/databricks.py
"""Databricks workspace rule table.

Covers configuration (cluster assignment, runtime, Delta naming),
performance (shuffle tuning, Photon, joins, caching, storage layout),
data quality (schema enforcement, DLT expectations, null handling) and
governance (credentials, PII, Unity Catalog) checks.
"""

from __future__ import annotations

import json
import re
from types import MappingProxyType

from pipecanvas.contracts.enums import NodeKind, Platform
from pipecanvas.contracts.results import ValidationResult
from pipecanvas.core.graph.models import Node
from pipecanvas.engine.validation.context import RuleContext, error, info, warning
from pipecanvas.engine.validation.table import RuleTable

NOTEBOOK_LANGUAGES = frozenset({"python", "scala", "sql", "r", "markdown"})

_CLUSTER_BOUND_KINDS = frozenset({NodeKind.NOTEBOOK, NodeKind.DATA_SOURCE, NodeKind.TRANSFORMATION, NodeKind.OUTPUT})
_STREAMING_CATEGORIES = frozenset({"KafkaStream", "AutoLoader"})
_CREDENTIAL_KEYS = ("password", "connectionString", "apiKey")
_PII_MARKERS = ("email", "ssn", "phone", "credit")
# 13.3 and 14.3 are the long-term support lines even without the "LTS" suffix
_LTS_PATTERN = re.compile(r"\bLTS\b|13\.3|14\.3")
_SHUFFLE_OPERATIONS = re.compile(r"groupBy|join|orderBy|distinct", re.IGNORECASE)
_NULL_HANDLING_MARKERS = ("isNull", "isnull", "coalesce")
SHUFFLE_LIMIT = 3
CACHING_TRANSFORM_THRESHOLD = 3


def _spark_config(node: Node) -> dict[str, object]:
    config = node.prop("sparkConfig")
    return config if isinstance(config, dict) else {}


def _text(node: Node, key: str) -> str:
    value = node.prop(key)
    return value if isinstance(value, str) else ""


def aqe_enabled(node: Node) -> bool:
    """True when sparkConfig turns on Adaptive Query Execution (``"true"``, ``True`` or any casing)."""
    return str(_spark_config(node).get("spark.sql.adaptive.enabled")).lower() == "true"


# ===== NODE RULES =====


def streaming_checkpoint(node: Node, ctx: RuleContext) -> list[ValidationResult]:
    streaming = node.category in _STREAMING_CATEGORIES or node.prop("streaming") is True
    if not streaming or node.has_prop("checkpointLocation"):
        return []
    return [
        error(
            node.id,
            "Streaming components must specify checkpoint location for fault tolerance.",
            suggestion="Set checkpointLocation to a durable path (e.g. /checkpoints/<stream>)",
            nodes=[node.id],
        )
    ]


def hardcoded_credentials(node: Node, ctx: RuleContext) -> list[ValidationResult]:
    leaked = [key for key in _CREDENTIAL_KEYS if node.has_prop(key)]
    if not leaked:
        return []
    return [
        error(
            node.id,
            f"Never hardcode credentials ({', '.join(leaked)}). Use Databricks Secrets for sensitive information.",
            suggestion="Reference the value through dbutils.secrets.get(scope, key)",
            nodes=[node.id],
        )
    ]


def notebook_language(node: Node, ctx: RuleContext) -> list[ValidationResult]:
    language = _text(node, "notebookLanguage") or _text(node, "language")
    if language in NOTEBOOK_LANGUAGES:
        return []
    return [
        error(
            node.id,
            "Notebook must specify a valid language (python, scala, sql, r, or markdown).",
            nodes=[node.id],
        )
    ]


def runtime_lts(node: Node, ctx: RuleContext) -> list[ValidationResult]:
    runtime = _text(node, "runtimeVersion")
    if not runtime or _LTS_PATTERN.search(runtime):
        return []
    return [
        warning(
            node.id,
            "Production workloads should use LTS runtime versions (e.g., 13.3 LTS, 14.3 LTS).",
            nodes=[node.id],
        )
    ]


def shuffle_partitions(node: Node, ctx: RuleContext) -> list[ValidationResult]:
    if _spark_config(node).get("spark.sql.shuffle.partitions"):
        return []
    return [
        warning(
            node.id,
            "Consider tuning spark.sql.shuffle.partitions based on data size (default 200 may be suboptimal).",
            suggestion="Set spark.sql.shuffle.partitions to 2-3x the cluster core count",
            nodes=[node.id],
        )
    ]


def adaptive_query_execution(node: Node, ctx: RuleContext) -> list[ValidationResult]:
    runtime = _text(node, "runtimeVersion")
    if "13." not in runtime or aqe_enabled(node):
        return []
    return [
        warning(
            node.id,
            "Enable Adaptive Query Execution (AQE) to improve query performance. Set spark.sql.adaptive.enabled=true.",
            nodes=[node.id],
        )
    ]


def all_purpose_cluster(node: Node, ctx: RuleContext) -> list[ValidationResult]:
    return [
        warning(
            node.id,
            "Use Job Clusters for production workloads instead of All-Purpose clusters for better cost control.",
            nodes=[node.id],
        )
    ]


def warehouse_photon(node: Node, ctx: RuleContext) -> list[ValidationResult]:
    if node.prop("enablePhoton"):
        return []
    return [
        warning(
            node.id,
            "Enable Photon for better SQL query performance (2-3x improvement).",
            nodes=[node.id],
        )
    ]


def delta_table_naming(node: Node, ctx: RuleContext) -> list[ValidationResult]:
    missing = [key for key in ("catalog", "schema", "table") if not node.has_prop(key)]
    if not missing:
        return []
    return [
        error(
            node.id,
            f"Delta table components must specify catalog, schema, and table name (missing: {', '.join(missing)}).",
            nodes=[node.id],
        )
    ]


def delta_z_ordering(node: Node, ctx: RuleContext) -> list[ValidationResult]:
    if node.has_prop("zOrderColumns"):
        return []
    return [
        info(
            node.id,
            "Consider Z-ordering Delta tables on frequently filtered columns for better query performance.",
            nodes=[node.id],
        )
    ]


def dataframe_joins(node: Node, ctx: RuleContext) -> list[ValidationResult]:
    join_type = _text(node, "joinType")
    if not join_type:
        return []
    if join_type == "cross":
        return [
            error(
                node.id,
                "Cartesian join detected. These can cause performance issues. Use explicit join conditions.",
                nodes=[node.id],
            )
        ]
    if join_type == "broadcast":
        return []
    return [
        info(
            node.id,
            "For small lookup tables (< 2GB), consider using broadcast joins for better performance.",
            nodes=[node.id],
        )
    ]


def csv_sink(node: Node, ctx: RuleContext) -> list[ValidationResult]:
    if _text(node, "format").lower() != "csv":
        return []
    return [
        warning(
            node.id,
            "CSV is row-based. Consider using Parquet or Delta for better performance and compression.",
            nodes=[node.id],
        )
    ]


def job_retries(node: Node, ctx: RuleContext) -> list[ValidationResult]:
    retries = node.prop("retries")
    if isinstance(retries, int | float) and not isinstance(retries, bool) and retries > 0:
        return []
    return [warning(node.id, "Configure retry logic for job tasks to handle transient failures.", nodes=[node.id])]


def delta_schema_enforcement(node: Node, ctx: RuleContext) -> list[ValidationResult]:
    if node.prop("schemaEnforcement"):
        return []
    return [
        warning(
            node.id,
            "Enable schema enforcement on Delta tables to prevent data quality issues.",
            suggestion="Set schemaEnforcement=true so mismatched writes fail instead of corrupting the table",
            nodes=[node.id],
        )
    ]


def delta_vacuum(node: Node, ctx: RuleContext) -> list[ValidationResult]:
    if node.has_prop("vacuumSchedule"):
        return []
    return [
        info(
            node.id,
            "Schedule VACUUM operations for Delta tables to remove old versions (default 7-day retention). Reduces storage costs.",
            nodes=[node.id],
        )
    ]


def delta_bloom_filters(node: Node, ctx: RuleContext) -> list[ValidationResult]:
    if node.has_prop("bloomFilters"):
        return []
    return [
        info(
            node.id,
            "Consider adding bloom filters for high-cardinality lookup columns. Improves point lookup queries on large tables.",
            nodes=[node.id],
        )
    ]


def dlt_expectations(node: Node, ctx: RuleContext) -> list[ValidationResult]:
    expectations = node.prop("expectations")
    if isinstance(expectations, list | tuple) and expectations:
        return []
    return [
        warning(
            node.id,
            "Delta Live Tables pipelines should include data quality expectations.",
            suggestion="Add @dlt.expect rules for the columns downstream consumers rely on",
            nodes=[node.id],
        )
    ]


def jdbc_partitions(node: Node, ctx: RuleContext) -> list[ValidationResult]:
    if node.prop("numPartitions"):
        return []
    return [
        info(
            node.id,
            "Configure numPartitions for JDBC sources to enable parallel reads. "
            "Select appropriate partition column for even distribution.",
            nodes=[node.id],
        )
    ]


def null_handling(node: Node, ctx: RuleContext) -> list[ValidationResult]:
    code = _text(node, "code")
    if not code or any(marker in code for marker in _NULL_HANDLING_MARKERS):
        return []
    return [info(node.id, "Consider handling NULL values in critical columns to ensure data quality.", nodes=[node.id])]


# ===== GRAPH RULES =====


def cluster_assignment(ctx: RuleContext) -> list[ValidationResult]:
    unassigned = [
        node.id for node in ctx.nodes.values() if node.kind in _CLUSTER_BOUND_KINDS and not node.has_prop("clusterId")
    ]
    if not unassigned:
        return []
    return [
        error(
            "config:cluster",
            f"{len(unassigned)} component(s) need cluster configuration. Configure a cluster for execution.",
            suggestion="Set clusterId on each notebook, source, transformation and output",
            nodes=unassigned,
        )
    ]


def delta_partitioning(ctx: RuleContext) -> list[ValidationResult]:
    unpartitioned = [node.id for node in ctx.of_category("DeltaTableSink") if not node.has_prop("partitionBy")]
    if not unpartitioned:
        return []
    return [
        info(
            "perf:partitioning",
            "Consider partitioning Delta tables on columns used in WHERE clauses for better query performance.",
            nodes=unpartitioned,
        )
    ]


def udf_usage(ctx: RuleContext) -> list[ValidationResult]:
    with_udfs = [node.id for node in ctx.of_kind(NodeKind.NOTEBOOK) if "udf" in _text(node, "code")]
    if not with_udfs:
        return []
    return [
        warning(
            "perf:udf",
            "UDFs can be inefficient. Consider using built-in Spark functions or pandas UDFs for better performance.",
            nodes=with_udfs,
        )
    ]


def pii_columns(ctx: RuleContext) -> list[ValidationResult]:
    flagged = [
        node.id
        for node in ctx.nodes.values()
        if any(marker in json.dumps(node.properties, default=str).lower() for marker in _PII_MARKERS)
    ]
    if not flagged:
        return []
    return [
        warning(
            "dq:pii",
            "PII data detected. Consider using dynamic data masking in Unity Catalog and ensure GDPR/CCPA compliance.",
            nodes=flagged,
        )
    ]


def unity_catalog(ctx: RuleContext) -> list[ValidationResult]:
    results: list[ValidationResult] = []
    custom = [node.id for node in ctx.nodes.values() if node.has_prop("catalog") and node.prop("catalog") != "main"]
    if custom:
        results.append(
            info(
                "config:unity-catalog",
                "Ensure proper Unity Catalog permissions are configured for non-main catalogs.",
                nodes=custom,
            )
        )
    on_main = [
        node.id for node in ctx.of_category("DeltaTableSource", "DeltaTableSink") if node.prop("catalog") == "main"
    ]
    if on_main:
        results.append(
            info(
                "bp:unity-catalog",
                "Consider using Unity Catalog (non-main catalog) for better governance and access control.",
                nodes=on_main,
            )
        )
    return results


def caching_opportunity(ctx: RuleContext) -> list[ValidationResult]:
    transforms = [node.id for node in ctx.of_kind(NodeKind.TRANSFORMATION)]
    if len(transforms) <= CACHING_TRANSFORM_THRESHOLD:
        return []
    return [
        info(
            "perf:caching",
            "Consider caching DataFrames that are reused multiple times in your pipeline.",
            nodes=transforms,
        )
    ]


def predicate_pushdown(ctx: RuleContext) -> list[ValidationResult]:
    unfiltered = [node.id for node in ctx.of_kind(NodeKind.DATA_SOURCE) if not node.has_prop("filterCondition")]
    if not unfiltered:
        return []
    return [
        info(
            "perf:predicate",
            "Consider pushing filters to the source for better performance (predicate pushdown).",
            nodes=unfiltered,
        )
    ]


def cluster_autoscaling(ctx: RuleContext) -> list[ValidationResult]:
    # Job clusters are sized per run
    fixed = [
        node.id
        for node in ctx.of_kind(NodeKind.CLUSTER)
        if node.category != "JobCluster" and node.prop("autoscaling") is not True
    ]
    if not fixed:
        return []
    return [
        info(
            "perf:autoscaling",
            "Enable autoscaling for variable workloads to optimize costs and performance.",
            nodes=fixed,
        )
    ]


def excessive_shuffles(ctx: RuleContext) -> list[ValidationResult]:
    heavy = [
        node.id
        for node in ctx.nodes.values()
        if len(_SHUFFLE_OPERATIONS.findall(_text(node, "code"))) > SHUFFLE_LIMIT
    ]
    if not heavy:
        return []
    return [
        warning(
            "perf:shuffle",
            "Multiple shuffle operations detected. Consider reducing joins and groupBy operations. "
            "Use bucketing for frequently joined tables.",
            nodes=heavy,
        )
    ]


DATABRICKS_TABLE = RuleTable(
    platform=Platform.DATABRICKS,
    source_kinds=frozenset({NodeKind.DATA_SOURCE}),
    sink_kinds=frozenset({NodeKind.OUTPUT}),
    flow_kinds=frozenset({NodeKind.DATA_SOURCE, NodeKind.TRANSFORMATION}),
    single_input_kinds=frozenset({NodeKind.TRANSFORMATION}),
    multi_input_categories=frozenset({"DeltaLakeMerge", "DataFrameTransform", "SparkSQLQuery"}),
    node_rules=(streaming_checkpoint, hardcoded_credentials),
    kind_rules=MappingProxyType(
        {
            NodeKind.NOTEBOOK: (notebook_language,),
            NodeKind.TRANSFORMATION: (null_handling,),
            NodeKind.OUTPUT: (csv_sink,),
            NodeKind.ORCHESTRATION: (job_retries,),
        }
    ),
    category_rules=MappingProxyType(
        {
            "AllPurposeCluster": (runtime_lts, shuffle_partitions, adaptive_query_execution, all_purpose_cluster),
            "JobCluster": (runtime_lts, shuffle_partitions, adaptive_query_execution),
            "SQLWarehouse": (warehouse_photon,),
            "DeltaTableSource": (delta_table_naming,),
            "DeltaTableSink": (
                delta_table_naming,
                delta_schema_enforcement,
                delta_z_ordering,
                delta_vacuum,
                delta_bloom_filters,
            ),
            "DataFrameTransform": (dataframe_joins,),
            "DeltaLiveTables": (dlt_expectations,),
            "AzureSQLDatabase": (jdbc_partitions,),
            "SnowflakeConnector": (jdbc_partitions,),
        }
    ),
    graph_rules=(
        cluster_assignment,
        delta_partitioning,
        udf_usage,
        pii_columns,
        unity_catalog,
        caching_opportunity,
        predicate_pushdown,
        cluster_autoscaling,
        excessive_shuffles,
    ),
)
