# kvprofiler/collector/aggregator.py - Event correlation and aggregation
"""
Folds the lifecycle events of one capture window into per-connection,
per-operation metadata.

Events are correlated by operation id. The input does not need to be
ordered and may be incomplete: missing operations and connections are
created on first reference.
"""

from typing import Dict, Iterable, List
import logging

from kvprofiler.collector.events import (
    Event,
    EventKind,
    OperationEvent,
)
from kvprofiler.collector.metadata import (
    AggregateMetadata,
    ConnectionMetadata,
    OperationMetadata,
)


# Not escaped: keys containing it can collide with multi-key lists
DEDUP_SEPARATOR = " "


def dedup_key(operation_type: str, keys: Iterable[str]) -> str:
    """
    Build the key used to detect repeated calls.

    Args:
        operation_type: Operation type name (e.g., 'Get')
        keys: Ordered keys of the operation

    Returns:
        Operation type followed by the keys, space separated
    """
    return operation_type + DEDUP_SEPARATOR + DEDUP_SEPARATOR.join(keys)


class OperationAggregator:
    """
    Aggregates a capture window's events into an AggregateMetadata.

    Runs three passes over the input (started, completed, error) so
    later passes can derive end times from recorded start times.
    """

    def __init__(self, events: Iterable[Event]):
        """
        Initialize the aggregator.

        Args:
            events: Events captured during one window, in any order
        """
        self.events: List[Event] = list(events)
        self.logger = logging.getLogger(__name__)

        self._metadata: AggregateMetadata = AggregateMetadata()
        self._duplicate_count = 0

    def aggregate(self) -> AggregateMetadata:
        """
        Perform the aggregation and return the result.

        Each call builds a fresh result; the returned metadata is not
        touched again by this aggregator.

        Returns:
            Aggregated metadata (empty when there are no events)
        """
        self._metadata = AggregateMetadata()
        self._duplicate_count = 0

        self._aggregate_started()
        self._aggregate_completed()
        self._aggregate_errors()

        metadata = self._metadata
        self.logger.debug(
            f"Aggregated {len(self.events)} events into "
            f"{metadata.connection_count} connections, "
            f"{metadata.operation_count} operations "
            f"({self._duplicate_count} duplicates)"
        )
        return metadata

    def _events_of(self, kind: EventKind) -> List[Event]:
        return [event for event in self.events if event.kind is kind]

    def _aggregate_started(self):
        """
        Apply started events and flag duplicate calls.
        """
        dupe_tracker: Dict[str, int] = {}

        for event in self._events_of(EventKind.STARTED):
            operation = self._get_or_create_operation(event)
            operation.type = event.type
            operation.keys = list(event.keys)
            operation.start_time = event.captured_at
            operation.offset = event.offset
            operation.is_async = event.is_async

            if event.check_dupes:
                key = dedup_key(event.type, event.keys)
                count = dupe_tracker.get(key, 0)
                operation.is_duplicate = key in dupe_tracker
                dupe_tracker[key] = count + 1

                if operation.is_duplicate:
                    self._duplicate_count += 1

    def _aggregate_completed(self):
        """
        Apply completed events.
        """
        for event in self._events_of(EventKind.COMPLETED):
            operation = self._get_or_create_operation(event)
            operation.keys_found = list(event.keys_found)
            operation.duration = event.duration
            operation.end_time = operation.start_time + event.offset
            operation.offset = event.offset
            operation.is_async = event.is_async

    def _aggregate_errors(self):
        """
        Apply error events.
        """
        for event in self._events_of(EventKind.ERROR):
            operation = self._get_or_create_operation(event)
            operation.duration = event.duration
            operation.messages = list(event.messages)
            operation.faults = list(event.faults)
            operation.end_time = operation.start_time + event.offset
            operation.offset = event.offset
            operation.is_async = event.is_async

    def _get_or_create_connection(self, event: OperationEvent) -> ConnectionMetadata:
        """
        Get the connection metadata for an event, creating it if needed.

        Args:
            event: Event to inspect

        Returns:
            Connection metadata for the event's connection
        """
        connection = self._metadata.connections.get(event.connection_id)
        if connection is None:
            connection = ConnectionMetadata(event.connection_id)
            self._metadata.connections[event.connection_id] = connection
        return connection

    def _get_or_create_operation(self, event: OperationEvent) -> OperationMetadata:
        """
        Get the operation metadata for an event, creating it if needed.

        New operations are registered in both the flat index and their
        connection so the two always agree.

        Args:
            event: Event to inspect

        Returns:
            Operation metadata valid for the rest of the run
        """
        operation = self._metadata.operations.get(event.operation_id)
        if operation is None:
            operation = OperationMetadata(event.operation_id, event.connection_id)
            self._metadata.operations[event.operation_id] = operation
            self._get_or_create_connection(event).register_operation(operation)
        return operation


def aggregate_events(events: Iterable[Event]) -> AggregateMetadata:
    """
    Aggregate one capture window's events.

    Args:
        events: Events in any order

    Returns:
        Aggregated metadata
    """
    return OperationAggregator(events).aggregate()
