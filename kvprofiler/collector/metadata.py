# kvprofiler/collector/metadata.py - Aggregated operation metadata
"""
Accumulation structures built by the aggregator.

AggregateMetadata owns one ConnectionMetadata per connection, which in
turn owns the OperationMetadata records of that connection. The flat
``AggregateMetadata.operations`` index points at the same records.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List

from kvprofiler.errors import DuplicateOperationError


@dataclass
class OperationMetadata:
    """
    Everything known about one logical operation.

    Fields not supplied by any observed event keep their zero value and
    mean "unknown", not a reported outcome.
    """
    id: str
    connection_id: str
    type: str = ""
    keys: List[str] = field(default_factory=list)
    keys_found: List[bool] = field(default_factory=list)
    messages: List[str] = field(default_factory=list)
    faults: List[Any] = field(default_factory=list)
    start_time: float = 0.0
    end_time: float = 0.0
    duration: float = 0.0
    offset: float = 0.0
    is_duplicate: bool = False
    is_async: bool = False

    @property
    def duration_ms(self) -> float:
        """Duration in milliseconds"""
        return self.duration * 1000.0

    @property
    def offset_ms(self) -> float:
        """Offset from the start of the capture window in milliseconds"""
        return self.offset * 1000.0

    @property
    def has_errors(self) -> bool:
        return bool(self.messages or self.faults)


@dataclass
class ConnectionMetadata:
    """
    Operations observed against one connection (bucket).
    """
    connection_id: str
    operations: Dict[str, OperationMetadata] = field(default_factory=dict)

    def register_operation(self, operation: OperationMetadata):
        """
        Register a new operation against the connection.

        Args:
            operation: Operation to register

        Raises:
            DuplicateOperationError: If the operation id is already registered
        """
        if operation.id in self.operations:
            raise DuplicateOperationError(
                f"Operation {operation.id} already registered on {self.connection_id}"
            )
        self.operations[operation.id] = operation


@dataclass
class AggregateMetadata:
    """
    Result of one aggregation run.

    ``connections`` owns the operations; ``operations`` is a flat lookup
    over the same objects keyed by operation id.
    """
    connections: Dict[str, ConnectionMetadata] = field(default_factory=dict)
    operations: Dict[str, OperationMetadata] = field(default_factory=dict)

    @property
    def connection_count(self) -> int:
        return len(self.connections)

    @property
    def operation_count(self) -> int:
        return len(self.operations)

    @property
    def total_duration(self) -> float:
        """Sum of all operation durations in seconds"""
        return sum(op.duration for op in self.operations.values())

    @property
    def is_empty(self) -> bool:
        return not self.operations
