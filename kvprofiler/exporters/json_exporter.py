# kvprofiler/exporters/json_exporter.py - JSON format exporter
"""
Exports captured events and aggregated metadata as JSON files, and loads
capture files back into events.
"""

import json
from pathlib import Path
from datetime import datetime
from typing import Any, Dict, List, Optional
import logging

from kvprofiler.collector.events import Event, event_from_dict
from kvprofiler.collector.metadata import AggregateMetadata, OperationMetadata
from kvprofiler.errors import CaptureFileError
from kvprofiler.utils.helpers import describe_fault


def operation_to_dict(operation: OperationMetadata) -> Dict[str, Any]:
    """
    Convert operation metadata to a JSON-compatible dictionary.

    Args:
        operation: Operation metadata

    Returns:
        Dictionary with every metadata field; faults as name/stack pairs
    """
    return {
        'id': operation.id,
        'connection_id': operation.connection_id,
        'type': operation.type,
        'keys': list(operation.keys),
        'keys_found': list(operation.keys_found),
        'messages': list(operation.messages),
        'faults': [
            dict(zip(('name', 'stack'), describe_fault(fault)))
            for fault in operation.faults
        ],
        'start_time': operation.start_time,
        'end_time': operation.end_time,
        'duration_ms': operation.duration_ms,
        'offset_ms': operation.offset_ms,
        'is_duplicate': operation.is_duplicate,
        'is_async': operation.is_async,
    }


class JSONExporter:
    """
    Exports profiling results to JSON format.

    Provides structured JSON output for further processing or replay
    through the ``aggregate`` command.
    """

    def __init__(self, output_dir: Optional[str] = None):
        """
        Initialize the JSON exporter.

        Args:
            output_dir: Directory to save JSON files (default: current directory)
        """
        self.output_dir = Path(output_dir) if output_dir else Path('.')
        self.logger = logging.getLogger(__name__)

        # Create output directory if it doesn't exist
        self.output_dir.mkdir(parents=True, exist_ok=True)

    def _output_path(self, prefix: str, filename: Optional[str]) -> Path:
        if not filename:
            timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
            filename = f'{prefix}_{timestamp}.json'
        return self.output_dir / filename

    def export_events(self, events: List[Event], filename: Optional[str] = None) -> str:
        """
        Export captured events to a JSON capture file.

        Args:
            events: Lifecycle events
            filename: Output filename (auto-generated if not provided)

        Returns:
            Path to output file
        """
        output_path = self._output_path('capture', filename)
        events_data = [event.to_dict() for event in events]

        with open(output_path, 'w') as f:
            json.dump({
                'timestamp': datetime.now().isoformat(),
                'event_count': len(events_data),
                'events': events_data
            }, f, indent=2)

        self.logger.info(f"Exported {len(events_data)} events to {output_path}")
        return str(output_path)

    def export_metadata(self, metadata: AggregateMetadata, filename: Optional[str] = None) -> str:
        """
        Export aggregated metadata to a JSON file.

        Args:
            metadata: Aggregated metadata
            filename: Output filename (auto-generated if not provided)

        Returns:
            Path to output file
        """
        output_path = self._output_path('operations', filename)

        connections = {
            connection_id: [operation_to_dict(op) for op in connection.operations.values()]
            for connection_id, connection in metadata.connections.items()
        }

        with open(output_path, 'w') as f:
            json.dump({
                'timestamp': datetime.now().isoformat(),
                'statistics': {
                    'connection_count': metadata.connection_count,
                    'operation_count': metadata.operation_count,
                    'execution_time_ms': metadata.total_duration * 1000.0,
                },
                'connections': connections
            }, f, indent=2)

        self.logger.info(f"Exported {metadata.operation_count} operations to {output_path}")
        return str(output_path)


def load_events(path: str) -> List[Event]:
    """
    Load events from a JSON capture file.

    Args:
        path: Path to a file written by ``JSONExporter.export_events``

    Returns:
        Events in file order

    Raises:
        CaptureFileError: If the file cannot be read or is malformed
    """
    try:
        with open(path, 'r') as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise CaptureFileError(f"Failed to read capture file {path}", details=str(e)) from e

    if isinstance(data, dict):
        records = data.get('events')
    else:
        records = data

    if not isinstance(records, list):
        raise CaptureFileError(f"Capture file {path} has no event list")

    events = [event_from_dict(record) for record in records]
    logging.getLogger(__name__).info(f"Loaded {len(events)} events from {path}")
    return events
