# src/pipecanvas/engine/preview.py
"""Sample-data preview.

Propagates a few synthetic rows from every node without inputs through the
graph, reshaping them per category on the way (filters keep a subset,
joins add a joined column, aggregations collapse to summary rows).

Traversal: a FIFO queue seeded with every node that has no resolved
incoming edge. A dequeued node reads the cached output of its FIRST
upstream node only, so multi-input categories preview one input's shape.
A downstream node is enqueued once all of its upstream nodes are cached.
Nodes are processed at most once; nodes on or behind a cycle are never
reached and are left out of the result.

Rows are synthetic and deterministic: the same graph always previews the
same data.
"""

from __future__ import annotations

import re
from collections import deque
from collections.abc import Callable, Iterable
from typing import TypeAlias

from pipecanvas.contracts.enums import NodeKind
from pipecanvas.contracts.types import SampleRow
from pipecanvas.core.graph.analysis import GraphAnalyzer
from pipecanvas.core.graph.models import Edge, Node
from pipecanvas.core.logging import get_logger

logger = get_logger(__name__)

DEFAULT_SAMPLE_SIZE = 5

SourceSampler: TypeAlias = Callable[[Node, int], list[SampleRow]]
RowTransform: TypeAlias = Callable[[Node, list[SampleRow]], list[SampleRow]]

_NUMERIC = re.compile(r"^-?\d+(\.\d+)?$")
_DEPARTMENTS = ("Sales", "IT", "HR", "Finance", "Marketing")
_PRODUCT_GROUPS = ("Electronics", "Clothing", "Food", "Books", "Toys")


def _as_number(value: object) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        return float(value)
    if isinstance(value, str) and _NUMERIC.match(value.strip()):
        return float(value)
    return None


def _first_numeric_key(rows: list[SampleRow]) -> str:
    first = rows[0]
    for key, value in first.items():
        if isinstance(value, int | float) and not isinstance(value, bool):
            return key
    return next(iter(first))


# ===== SOURCE SAMPLES =====


def _customers(node: Node, count: int) -> list[SampleRow]:
    return [
        {
            "CustomerID": 1000 + i,
            "FirstName": f"John{i}",
            "LastName": f"Doe{i}",
            "Email": f"john{i}.doe@example.com",
            "Phone": f"555-000{i}",
            "CreatedDate": f"2024-01-{i:02d}",
            "IsActive": i % 2 == 0,
            "Balance": f"{100.50 + i * 10:.2f}",
        }
        for i in range(1, count + 1)
    ]


def _orders(node: Node, count: int) -> list[SampleRow]:
    return [
        {
            "OrderID": f"ORD-{i:04d}",
            "ProductName": f"Product {i}",
            "Quantity": i * 2,
            "UnitPrice": f"{9.99 + i:.2f}",
            "OrderDate": f"2024-01-{i:02d}",
        }
        for i in range(1, count + 1)
    ]


def _employees(node: Node, count: int) -> list[SampleRow]:
    return [
        {
            "EmployeeID": f"EMP{i}",
            "Name": f"Employee {i}",
            "Department": _DEPARTMENTS[i % 5],
            "Salary": 50_000 + i * 1000,
            "HireDate": f"2023-{(i % 12) + 1:02d}-15",
        }
        for i in range(1, count + 1)
    ]


def _items(node: Node, count: int) -> list[SampleRow]:
    return [
        {
            "id": i,
            "name": f"Item {i}",
            "category": _PRODUCT_GROUPS[i % 5],
            "price": round(19.99 + i * 5, 2),
            "inStock": i % 3 != 0,
        }
        for i in range(1, count + 1)
    ]


def _transactions(node: Node, count: int) -> list[SampleRow]:
    return [
        {
            "TransactionID": f"TXN-{i}",
            "Amount": f"{100 + i * 25:.2f}",
            "Currency": "USD",
            "Timestamp": f"2024-01-{i:02d}T10:00:00Z",
        }
        for i in range(1, count + 1)
    ]


def _generic(node: Node, count: int) -> list[SampleRow]:
    return [
        {"ID": i, "Name": f"Record {i}", "Value": i * 10, "Status": "Active" if i % 2 == 0 else "Inactive"}
        for i in range(1, count + 1)
    ]


# Databricks sources are described by a column schema: (name, type)
_TABLE_SCHEMAS: dict[str, tuple[tuple[str, str], ...]] = {
    "DeltaTableSource": (("id", "int"), ("name", "string"), ("amount", "decimal"), ("created_date", "datetime")),
    "AzureSQLDatabase": (
        ("customer_id", "int"),
        ("order_id", "int"),
        ("order_date", "datetime"),
        ("total_amount", "decimal"),
    ),
    "KafkaStream": (("key", "string"), ("value", "string"), ("timestamp", "datetime")),
}
_DEFAULT_TABLE_SCHEMA = (("col1", "string"), ("col2", "int"), ("col3", "decimal"))


def _schema_value(column: str, data_type: str, index: int) -> object:
    match data_type:
        case "int":
            return 100 + index
        case "decimal":
            return f"{(index + 1) * 12.5:.2f}"
        case "datetime":
            return f"2024-01-{index + 1:02d}T00:00:00Z"
        case "boolean":
            return index % 2 == 0
        case _:
            return f"Sample {column} {index + 1}"


def _table_rows(node: Node, count: int) -> list[SampleRow]:
    schema = _TABLE_SCHEMAS.get(node.category, _DEFAULT_TABLE_SCHEMA)
    return [{column: _schema_value(column, data_type, i) for column, data_type in schema} for i in range(count)]


SOURCE_SAMPLERS: dict[str, SourceSampler] = {
    "OLEDBSource": _customers,
    "FlatFileSource": _orders,
    "ExcelSource": _employees,
    "JSONSource": _items,
    "XMLSource": _transactions,
}


def source_rows(node: Node, count: int) -> list[SampleRow]:
    """Fresh sample for a node that has no upstream data."""
    sampler = SOURCE_SAMPLERS.get(node.category)
    if sampler is not None:
        return sampler(node, count)
    if node.kind in (NodeKind.DATA_SOURCE, NodeKind.NOTEBOOK):
        return _table_rows(node, count)
    return _generic(node, count)


# ===== ACTIVITY SAMPLES =====

# Orchestration activities report what they did rather than reshaping rows
_ACTIVITY_ROWS: dict[str, tuple[SampleRow, ...]] = {
    "CopyData": (
        {"Source": "Blob Storage", "Destination": "SQL Database", "RowsCopied": 1000, "Status": "Succeeded"},
        {"Source": "Blob Storage", "Destination": "SQL Database", "RowsCopied": 2500, "Status": "Succeeded"},
        {"Source": "Blob Storage", "Destination": "SQL Database", "RowsCopied": 500, "Status": "Succeeded"},
    ),
    "WebActivity": ({"Response": "200 OK", "Body": '{ "status": "success" }', "Duration": "120ms"},),
    "GetMetadata": (
        {"ItemName": "file1.csv", "ItemType": "File", "Size": 1024, "LastModified": "2024-01-01"},
        {"ItemName": "file2.csv", "ItemType": "File", "Size": 2048, "LastModified": "2024-01-02"},
    ),
    "ForEach": ({"Item": "file1.csv", "Index": 0}, {"Item": "file2.csv", "Index": 1}),
}
_ACTIVITY_KINDS = frozenset({NodeKind.DATA_MOVEMENT, NodeKind.CONTROL_FLOW})
_ACTIVITY_CATEGORIES = frozenset({"MappingDataFlow", "DatabricksNotebook"})


def activity_rows(node: Node, upstream: list[SampleRow] | None) -> list[SampleRow]:
    if node.category == "MappingDataFlow":
        if upstream is not None:
            return [{**row, "Transformed": True} for row in upstream]
        return [{"ID": 1, "Value": "Transformed Data 1"}, {"ID": 2, "Value": "Transformed Data 2"}]
    if node.category in _ACTIVITY_ROWS:
        return [dict(row) for row in _ACTIVITY_ROWS[node.category]]
    if node.category == "Wait":
        return [{"Status": "Waiting...", "Duration": f"{node.prop('waitTimeInSeconds') or 5}s"}]
    return [{"Status": "Executed", "Activity": node.name or node.category}]


# ===== TRANSFORMS =====


def _data_conversion(node: Node, rows: list[SampleRow]) -> list[SampleRow]:
    converted: list[SampleRow] = []
    for row in rows:
        out = dict(row)
        for key, value in row.items():
            if isinstance(value, str) and _NUMERIC.match(value.strip()):
                number = float(value)
                out[key] = int(number) if number.is_integer() else number
        converted.append(out)
    return converted


def _derived_column(node: Node, rows: list[SampleRow]) -> list[SampleRow]:
    keys = list(rows[0])
    derived: list[SampleRow] = []
    for row in rows:
        out = dict(row)
        if "FirstName" in keys and "LastName" in keys:
            out["FullName"] = f"{row.get('FirstName')} {row.get('LastName')}"
        elif "Quantity" in keys and "UnitPrice" in keys:
            out["Total"] = round((_as_number(row.get("Quantity")) or 0.0) * (_as_number(row.get("UnitPrice")) or 0.0), 2)
        else:
            out["CalculatedValue"] = round((_as_number(row.get(keys[0])) or 0.0) * 1.1, 2)
        derived.append(out)
    return derived


def _conditional_split(node: Node, rows: list[SampleRow]) -> list[SampleRow]:
    # The preview follows the first output: even-indexed rows
    return [dict(row) for index, row in enumerate(rows) if index % 2 == 0]


def _sort(node: Node, rows: list[SampleRow]) -> list[SampleRow]:
    key = _first_numeric_key(rows)

    def order(row: SampleRow) -> tuple[int, float, str]:
        number = _as_number(row.get(key))
        if number is None:
            return (1, 0.0, str(row.get(key)))
        return (0, number, "")

    return [dict(row) for row in sorted(rows, key=order)]


def _aggregate(node: Node, rows: list[SampleRow]) -> list[SampleRow]:
    if "Department" in rows[0]:
        groups: dict[str, SampleRow] = {}
        for row in rows:
            department = str(row.get("Department") or "Unknown")
            group = groups.setdefault(department, {"Department": department, "Count": 0, "TotalSalary": 0.0})
            group["Count"] += 1
            group["TotalSalary"] += _as_number(row.get("Salary")) or 0.0
        return list(groups.values())

    key = _first_numeric_key(rows)
    total = sum(_as_number(row.get(key)) or 0.0 for row in rows)
    return [{"TotalRecords": len(rows), "Sum": total, "Average": total / len(rows)}]


def _lookup(node: Node, rows: list[SampleRow]) -> list[SampleRow]:
    first = next(iter(rows[0]))
    return [{**row, "LookupValue": f"Lookup-{row.get(first)}", "LookupStatus": "Found"} for row in rows]


def _merge_join(node: Node, rows: list[SampleRow]) -> list[SampleRow]:
    first = next(iter(rows[0]))
    return [{**row, "JoinedValue": f"Joined-{row.get(first)}"} for row in rows]


def _list_prop(node: Node, key: str) -> list[object]:
    """List-valued property, or an empty list when unset or not a list."""
    value = node.prop(key)
    return list(value) if isinstance(value, list | tuple) else []


def _dataframe_transform(node: Node, rows: list[SampleRow]) -> list[SampleRow]:
    operations = _list_prop(node, "operations")
    result = [dict(row) for row in rows]

    if "select" in operations:
        columns = _list_prop(node, "selectColumns")
        if columns and "*" not in columns:
            result = [{key: value for key, value in row.items() if key in columns} for row in result]

    if "filter" in operations and node.has_prop("filterCondition"):
        result = [row for index, row in enumerate(result) if index % 3 != 0]

    if "groupBy" in operations:
        group_columns = [column for column in _list_prop(node, "groupByColumns") if isinstance(column, str)]
        if group_columns:
            seen: set[tuple[str, ...]] = set()
            unique: list[SampleRow] = []
            for row in result:
                group = tuple(str(row.get(column)) for column in group_columns)
                if group not in seen:
                    seen.add(group)
                    unique.append(row)
            result = unique
    return result


def _pass_through(node: Node, rows: list[SampleRow]) -> list[SampleRow]:
    return [dict(row) for row in rows]


TRANSFORMS: dict[str, RowTransform] = {
    "DataConversion": _data_conversion,
    "DerivedColumn": _derived_column,
    "ConditionalSplit": _conditional_split,
    "Sort": _sort,
    "Aggregate": _aggregate,
    "Lookup": _lookup,
    "MergeJoin": _merge_join,
    "UnionAll": _pass_through,
    "Multicast": _pass_through,
    "RowCount": _pass_through,
    "DataFrameTransform": _dataframe_transform,
}


def sample_for(node: Node, upstream: list[SampleRow] | None, sample_size: int = DEFAULT_SAMPLE_SIZE) -> list[SampleRow]:
    """Output sample of one node given its first upstream node's sample.

    Args:
        node: Node to evaluate.
        upstream: Cached sample of the first upstream node, or None when
            the node has no input.
        sample_size: Rows generated by sources and kept by transforms.
    """
    if node.kind in _ACTIVITY_KINDS or node.category in _ACTIVITY_CATEGORIES:
        return activity_rows(node, upstream)[:sample_size]
    if upstream is None:
        return source_rows(node, sample_size)
    rows = upstream[:sample_size]
    if not rows:
        return []
    return TRANSFORMS.get(node.category, _pass_through)(node, rows)


def preview(
    nodes: Iterable[Node],
    edges: Iterable[Edge],
    sample_size: int = DEFAULT_SAMPLE_SIZE,
) -> dict[str, list[SampleRow]]:
    """Sample rows for every node reachable without crossing a cycle.

    Returns:
        node id -> rows, in processing order. Every node appears after all
        of its upstream nodes.

    Raises:
        ValueError: If sample_size is not positive.
    """
    if sample_size < 1:
        raise ValueError(f"sample_size must be >= 1, got {sample_size}")

    node_map: dict[str, Node] = {}
    for node in nodes:
        node_map.setdefault(node.id, node)
    analyzer = GraphAnalyzer(node_map, edges)

    cache: dict[str, list[SampleRow]] = {}
    queued: set[str] = set()
    queue: deque[str] = deque()
    for node_id in node_map:
        if not analyzer.predecessors(node_id):
            queue.append(node_id)
            queued.add(node_id)

    while queue:
        node_id = queue.popleft()
        inputs = analyzer.predecessors(node_id)
        upstream = cache[inputs[0]] if inputs else None
        cache[node_id] = sample_for(node_map[node_id], upstream, sample_size)

        for target in analyzer.successors(node_id):
            if target in queued:
                continue
            if all(source in cache for source in analyzer.predecessors(target)):
                queue.append(target)
                queued.add(target)

    skipped = len(node_map) - len(cache)
    logger.debug("Preview complete", nodes=len(cache), skipped=skipped)
    return cache
