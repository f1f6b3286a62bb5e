# kvprofiler/exporters/tab_data.py - Diagnostics table shaping
"""
Shapes aggregated metadata into the row/column tables shown by the
diagnostics display and the console exporter.
"""

from typing import Any, Dict, List, Optional

from kvprofiler.collector.metadata import AggregateMetadata, OperationMetadata
from kvprofiler.utils.helpers import describe_fault, join_lines


STATISTICS_SECTION = "Statistics"
OPERATIONS_SECTION = "Operations"

OPERATION_HEADER = ["Ordinal", "Type", "Keys", "Found", "Duration", "Offset", "Async", "Errors"]
ERROR_HEADER = ["Error", "Stack"]


def build_error_rows(operation: OperationMetadata) -> Optional[List[list]]:
    """
    Build the nested error table for an operation.

    Args:
        operation: Operation metadata

    Returns:
        Header plus one row per message and per fault, or None if the
        operation reported no errors
    """
    if not operation.has_errors:
        return None

    rows: List[list] = [list(ERROR_HEADER)]
    rows.extend([message] for message in operation.messages)
    rows.extend(list(describe_fault(fault)) for fault in operation.faults)
    return rows


def row_status(operation: OperationMetadata, errors: Optional[List[list]]) -> str:
    if errors is not None:
        return "error"
    if operation.is_duplicate:
        return "warn"
    return ""


def build_operation_rows(operations: List[OperationMetadata]) -> List[list]:
    """
    Build the operations table of one connection.

    Args:
        operations: Operations of the connection

    Returns:
        Header row followed by one row per operation
    """
    rows: List[list] = [list(OPERATION_HEADER)]

    for ordinal, operation in enumerate(operations, 1):
        errors = build_error_rows(operation)
        rows.append([
            ordinal,
            operation.type,
            join_lines(operation.keys),
            join_lines(operation.keys_found),
            operation.duration_ms,
            operation.offset_ms,
            operation.is_async,
            errors,
            row_status(operation, errors),
        ])

    return rows


def build_tab_data(metadata: AggregateMetadata) -> Optional[Dict[str, Any]]:
    """
    Build the diagnostics tables for an aggregation result.

    Args:
        metadata: Aggregated metadata

    Returns:
        Dictionary with statistics and per-connection operation tables,
        or None when no connection has any operation
    """
    operations: List[Any] = [["Operations per Connection"]]

    for connection in metadata.connections.values():
        if not connection.operations:
            continue
        operations.append([build_operation_rows(list(connection.operations.values()))])

    if len(operations) == 1:
        return None

    return {
        STATISTICS_SECTION: [{
            'connection_count': metadata.connection_count,
            'operation_count': metadata.operation_count,
            'execution_time': metadata.total_duration * 1000.0,
        }],
        OPERATIONS_SECTION: operations,
    }
