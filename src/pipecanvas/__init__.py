"""
pipecanvas: the graph engine behind a visual data-pipeline designer.

Validates, simulates and previews pipelines of typed nodes for SSIS,
Azure Data Factory and Databricks, with snapshot-based undo/redo.
"""

__version__ = "0.1.0"
