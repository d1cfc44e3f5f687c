# src/pipecanvas/core/catalog.py
"""Static per-platform node catalog.

Read-only lookup tables consumed when the editor creates a node: each
entry pre-fills kind, data shape, display name and default properties.
The engine depends on nothing here beyond the category key and the set
of kinds a platform allows (persistence uses the latter to reject
snapshots built for another platform).
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from pipecanvas.contracts.enums import DataShape, NodeKind, Platform, parse_platform


@dataclass(frozen=True, slots=True)
class CatalogEntry:
    """One catalog row: {kind, category, default properties, data shape}."""

    kind: NodeKind
    category: str
    display_name: str
    data_shape: DataShape = DataShape.STRUCTURED
    default_properties: MappingProxyType[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    def fresh_properties(self) -> dict[str, Any]:
        """Independent deep copy of the defaults for a new node."""
        return copy.deepcopy(dict(self.default_properties))


def _entry(
    kind: NodeKind,
    category: str,
    display_name: str,
    data_shape: DataShape = DataShape.STRUCTURED,
    **defaults: Any,
) -> CatalogEntry:
    return CatalogEntry(
        kind=kind,
        category=category,
        display_name=display_name,
        data_shape=data_shape,
        default_properties=MappingProxyType(defaults),
    )


_SSIS: tuple[CatalogEntry, ...] = (
    # Sources
    _entry(NodeKind.SOURCE, "OLEDBSource", "OLE DB Source"),
    _entry(NodeKind.SOURCE, "FlatFileSource", "Flat File Source", DataShape.TEXT),
    _entry(NodeKind.SOURCE, "ExcelSource", "Excel Source", DataShape.MIXED),
    _entry(NodeKind.SOURCE, "JSONSource", "JSON Source", DataShape.NESTED),
    _entry(NodeKind.SOURCE, "XMLSource", "XML Source", DataShape.NESTED),
    # Transformations
    _entry(NodeKind.TRANSFORMATION, "DataConversion", "Data Conversion"),
    _entry(NodeKind.TRANSFORMATION, "DerivedColumn", "Derived Column"),
    _entry(NodeKind.TRANSFORMATION, "Lookup", "Lookup"),
    _entry(NodeKind.TRANSFORMATION, "ConditionalSplit", "Conditional Split"),
    _entry(NodeKind.TRANSFORMATION, "Sort", "Sort"),
    _entry(NodeKind.TRANSFORMATION, "Aggregate", "Aggregate"),
    _entry(NodeKind.TRANSFORMATION, "MergeJoin", "Merge Join"),
    _entry(NodeKind.TRANSFORMATION, "UnionAll", "Union All"),
    _entry(NodeKind.TRANSFORMATION, "Multicast", "Multicast"),
    _entry(NodeKind.TRANSFORMATION, "RowCount", "Row Count"),
    # Destinations
    _entry(NodeKind.DESTINATION, "OLEDBDestination", "OLE DB Destination"),
    _entry(NodeKind.DESTINATION, "FlatFileDestination", "Flat File Destination", DataShape.TEXT),
    _entry(NodeKind.DESTINATION, "ExcelDestination", "Excel Destination", DataShape.MIXED),
    _entry(NodeKind.DESTINATION, "SQLServerDestination", "SQL Server Dest"),
    # Control flow
    _entry(NodeKind.CONTROL_FLOW_TASK, "DataFlowTask", "Data Flow Task"),
    _entry(NodeKind.CONTROL_FLOW_TASK, "ExecuteSQLTask", "Execute SQL Task"),
    _entry(NodeKind.CONTROL_FLOW_TASK, "FileSystemTask", "File System Task"),
    _entry(NodeKind.CONTROL_FLOW_TASK, "ScriptTask", "Script Task"),
    _entry(NodeKind.CONTROL_FLOW_TASK, "ForLoopContainer", "For Loop Container"),
    _entry(NodeKind.CONTROL_FLOW_TASK, "ForeachLoopContainer", "Foreach Loop Container"),
    _entry(NodeKind.CONTROL_FLOW_TASK, "SequenceContainer", "Sequence Container"),
)

_ADF: tuple[CatalogEntry, ...] = (
    _entry(NodeKind.DATA_MOVEMENT, "CopyData", "Copy Data", source={}, sink={}, mapping=[]),
    _entry(
        NodeKind.TRANSFORMATION,
        "MappingDataFlow",
        "Data Flow",
        dataFlowReference="",
        integrationRuntime="AutoResolveIntegrationRuntime",
    ),
    _entry(NodeKind.TRANSFORMATION, "DatabricksNotebook", "Databricks Notebook", DataShape.MIXED),
    _entry(
        NodeKind.CONTROL_FLOW,
        "ForEach",
        "ForEach",
        items="@pipeline().parameters.items",
        isSequential=False,
        batchCount=20,
    ),
    _entry(NodeKind.CONTROL_FLOW, "IfCondition", "If Condition", expression="@equals(1, 1)"),
    _entry(NodeKind.CONTROL_FLOW, "Switch", "Switch"),
    _entry(NodeKind.CONTROL_FLOW, "ExecutePipeline", "Execute Pipeline"),
    _entry(NodeKind.CONTROL_FLOW, "WebActivity", "Web", DataShape.MIXED, method="GET", url="", headers={}),
    _entry(NodeKind.CONTROL_FLOW, "Wait", "Wait", waitTimeInSeconds=1),
    _entry(NodeKind.CONTROL_FLOW, "SetVariable", "Set Variable"),
    _entry(NodeKind.CONTROL_FLOW, "Validation", "Validation"),
    _entry(NodeKind.CONTROL_FLOW, "GetMetadata", "Get Metadata"),
    _entry(NodeKind.CONTROL_FLOW, "Filter", "Filter"),
)

_DATABRICKS: tuple[CatalogEntry, ...] = (
    # Notebooks
    _entry(NodeKind.NOTEBOOK, "PythonNotebook", "Python Notebook", language="python", code="", parameters={}, clusterId=""),
    _entry(NodeKind.NOTEBOOK, "ScalaNotebook", "Scala Notebook", language="scala", code="", parameters={}, clusterId=""),
    _entry(NodeKind.NOTEBOOK, "SQLNotebook", "SQL Notebook", language="sql", code="", parameters={}, clusterId=""),
    _entry(NodeKind.NOTEBOOK, "RNotebook", "R Notebook", language="r", code="", parameters={}, clusterId=""),
    _entry(NodeKind.NOTEBOOK, "MarkdownNotebook", "Markdown Notebook", DataShape.TEXT, language="markdown", content=""),
    # Data sources
    _entry(
        NodeKind.DATA_SOURCE,
        "DeltaTableSource",
        "Delta Table Source",
        catalog="main",
        schema="default",
        table="",
        operation="read",
        version=None,
        timestamp=None,
    ),
    _entry(
        NodeKind.DATA_SOURCE,
        "AzureBlobStorage",
        "Azure Blob Storage",
        storageAccount="",
        container="",
        path="",
        format="parquet",
        autoLoader=True,
    ),
    _entry(
        NodeKind.DATA_SOURCE,
        "ADLSGen2",
        "ADLS Gen2",
        storageAccount="",
        container="",
        path="",
        format="delta",
        authentication="managedIdentity",
    ),
    _entry(
        NodeKind.DATA_SOURCE,
        "AzureSQLDatabase",
        "Azure SQL Database",
        server="",
        database="",
        table="",
        query="",
        authentication="sql",
    ),
    _entry(
        NodeKind.DATA_SOURCE,
        "SnowflakeConnector",
        "Snowflake Connector",
        account="",
        warehouse="",
        database="",
        schema="",
        table="",
    ),
    _entry(
        NodeKind.DATA_SOURCE,
        "KafkaStream",
        "Kafka Stream",
        bootstrapServers="",
        topic="",
        startingOffsets="latest",
        maxOffsetsPerTrigger=None,
    ),
    # Transformations
    _entry(
        NodeKind.TRANSFORMATION,
        "DataFrameTransform",
        "DataFrame Transform",
        operations=["select", "filter"],
        selectColumns=[],
        filterCondition="",
        groupByColumns=[],
        aggregations=[],
        joinType="inner",
        joinColumns=[],
    ),
    _entry(
        NodeKind.TRANSFORMATION,
        "DeltaLakeMerge",
        "Delta Lake Merge (UPSERT)",
        targetTable="",
        sourceTable="",
        mergeCondition="",
        whenMatched="update",
        whenNotMatched="insert",
    ),
    _entry(
        NodeKind.TRANSFORMATION,
        "DeltaLakeTimeTravel",
        "Delta Lake Time Travel",
        table="",
        version=None,
        timestamp=None,
        operation="read",
    ),
    _entry(NodeKind.TRANSFORMATION, "SparkSQLQuery", "Spark SQL Query", query="SELECT * FROM delta.`/path/to/table`", tempView=""),
    _entry(
        NodeKind.TRANSFORMATION,
        "MLflowModelTraining",
        "MLflow Model Training",
        experimentName="",
        algorithm="xgboost",
        hyperparameters={},
        metrics=[],
    ),
    _entry(NodeKind.TRANSFORMATION, "MLflowModelServing", "MLflow Model Serving", modelUri="", modelVersion="", inferenceMode="batch"),
    _entry(
        NodeKind.TRANSFORMATION,
        "FeatureStoreIntegration",
        "Feature Store Integration",
        featureStore="",
        featureTable="",
        operation="read",
        keys=[],
    ),
    _entry(
        NodeKind.TRANSFORMATION,
        "AutoLoader",
        "Auto Loader",
        sourcePath="",
        format="cloudFiles",
        schemaLocation="",
        checkpointLocation="",
        maxFilesPerTrigger=None,
    ),
    # Outputs
    _entry(
        NodeKind.OUTPUT,
        "DeltaTableSink",
        "Delta Table Sink",
        catalog="main",
        schema="default",
        table="",
        mode="append",
        partitionBy=[],
        optimize=True,
    ),
    _entry(
        NodeKind.OUTPUT,
        "AzureBlobStorageSink",
        "Azure Blob Storage Sink",
        storageAccount="",
        container="",
        path="",
        format="parquet",
        mode="overwrite",
    ),
    _entry(
        NodeKind.OUTPUT,
        "ADLSGen2Sink",
        "ADLS Gen2 Sink",
        storageAccount="",
        container="",
        path="",
        format="delta",
        mode="overwrite",
        partitionBy=[],
    ),
    _entry(
        NodeKind.OUTPUT,
        "AzureSQLDatabaseSink",
        "Azure SQL Database Sink",
        server="",
        database="",
        table="",
        mode="append",
        batchSize=10000,
    ),
    _entry(NodeKind.OUTPUT, "PowerBIDataset", "Power BI Dataset", workspaceId="", datasetId="", authentication="servicePrincipal"),
    _entry(NodeKind.OUTPUT, "MLflowModelRegistry", "MLflow Model Registry", modelName="", modelVersion="", stage="None"),
    # Orchestration
    _entry(NodeKind.ORCHESTRATION, "JobTask", "Job Task", jobId="", jobName="", timeout=3600, retries=0),
    _entry(NodeKind.ORCHESTRATION, "NotebookTask", "Notebook Task", notebookPath="", parameters={}, timeout=3600),
    _entry(NodeKind.ORCHESTRATION, "JARTask", "JAR Task", jarPath="", mainClassName="", parameters=[]),
    _entry(NodeKind.ORCHESTRATION, "PythonWheelTask", "Python Wheel Task", packagePath="", entryPoint="", parameters={}),
    _entry(
        NodeKind.ORCHESTRATION,
        "DeltaLiveTables",
        "Delta Live Tables Pipeline",
        pipelineName="",
        target="",
        storageLocation="",
        expectations=[],
    ),
    # Clusters
    _entry(
        NodeKind.CLUSTER,
        "AllPurposeCluster",
        "All-Purpose Cluster",
        clusterName="",
        nodeType="Standard_DS3_v2",
        numWorkers=2,
        minWorkers=1,
        maxWorkers=8,
        runtimeVersion="13.3.x-scala2.12",
        autoterminationMinutes=30,
        libraries=[],
    ),
    _entry(
        NodeKind.CLUSTER,
        "JobCluster",
        "Job Cluster",
        nodeType="Standard_DS3_v2",
        numWorkers=2,
        minWorkers=1,
        maxWorkers=8,
        runtimeVersion="13.3.x-scala2.12",
        libraries=[],
    ),
    _entry(
        NodeKind.CLUSTER,
        "SQLWarehouse",
        "SQL Warehouse",
        warehouseName="",
        clusterSize="Small",
        minClusters=1,
        maxClusters=1,
        autoStopMinutes=10,
        enablePhoton=True,
    ),
)

_CATALOGS: dict[Platform, dict[str, CatalogEntry]] = {
    Platform.SSIS: {entry.category: entry for entry in _SSIS},
    Platform.ADF: {entry.category: entry for entry in _ADF},
    Platform.DATABRICKS: {entry.category: entry for entry in _DATABRICKS},
}


def get_entry(platform: Platform | str, category: str) -> CatalogEntry | None:
    """Catalog entry for a category, or None when the platform lacks it."""
    return _CATALOGS[parse_platform(platform)].get(category)


def categories(platform: Platform | str) -> list[str]:
    """All category keys of a platform, in catalog order."""
    return list(_CATALOGS[parse_platform(platform)])


def allowed_kinds(platform: Platform | str) -> frozenset[NodeKind]:
    """Node kinds that may appear in a graph for this platform."""
    return frozenset(entry.kind for entry in _CATALOGS[parse_platform(platform)].values())
