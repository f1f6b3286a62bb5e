# kvprofiler/collector/events.py - Operation lifecycle events
"""
Immutable lifecycle events published by instrumented bucket operations.

Every event shares a header (connection, correlation id, timestamps).
The three variants are told apart by their ``kind`` tag.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Dict, Tuple, Union
import time
import uuid

from kvprofiler.errors import CaptureFileError
from kvprofiler.utils.helpers import describe_fault


class EventKind(Enum):
    STARTED = "started"
    COMPLETED = "completed"
    ERROR = "error"


@dataclass(frozen=True)
class FaultRecord:
    """
    Fault captured as plain data, e.g. after loading a capture file.
    """
    type_name: str
    message: str
    stack: str = ""


@dataclass(frozen=True)
class OperationEvent:
    """
    Common header carried by every lifecycle event.
    """
    kind: ClassVar[EventKind]

    connection_id: str
    operation_id: str
    offset: float = 0.0
    captured_at: float = field(default_factory=time.time)
    id: str = field(default_factory=lambda: uuid.uuid4().hex)

    @property
    def offset_ms(self) -> float:
        """Offset from the start of the capture window in milliseconds"""
        return self.offset * 1000.0

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert the event to a JSON-compatible dictionary.

        Returns:
            Dictionary tagged with the event kind
        """
        return {
            'kind': self.kind.value,
            'id': self.id,
            'connection_id': self.connection_id,
            'operation_id': self.operation_id,
            'captured_at': self.captured_at,
            'offset': self.offset,
        }


@dataclass(frozen=True)
class OperationStarted(OperationEvent):
    kind: ClassVar[EventKind] = EventKind.STARTED

    type: str = ""
    keys: Tuple[str, ...] = ()
    check_dupes: bool = False
    is_async: bool = False

    def __post_init__(self):
        object.__setattr__(self, 'keys', tuple(self.keys))

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({
            'type': self.type,
            'keys': list(self.keys),
            'check_dupes': self.check_dupes,
            'is_async': self.is_async,
        })
        return data


@dataclass(frozen=True)
class OperationCompleted(OperationEvent):
    kind: ClassVar[EventKind] = EventKind.COMPLETED

    keys_found: Tuple[bool, ...] = ()
    is_async: bool = False
    duration: float = 0.0

    def __post_init__(self):
        object.__setattr__(self, 'keys_found', tuple(self.keys_found))

    @property
    def duration_ms(self) -> float:
        """Duration in milliseconds"""
        return self.duration * 1000.0

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({
            'keys_found': list(self.keys_found),
            'is_async': self.is_async,
            'duration': self.duration,
        })
        return data


@dataclass(frozen=True)
class OperationError(OperationEvent):
    """
    Failed operation. ``messages`` and ``faults`` are independent lists
    and need not have the same length.
    """
    kind: ClassVar[EventKind] = EventKind.ERROR

    messages: Tuple[str, ...] = ()
    faults: Tuple[Any, ...] = ()
    is_async: bool = False
    duration: float = 0.0

    def __post_init__(self):
        object.__setattr__(self, 'messages', tuple(self.messages))
        object.__setattr__(self, 'faults', tuple(self.faults))

    @property
    def duration_ms(self) -> float:
        """Duration in milliseconds"""
        return self.duration * 1000.0

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        faults = []
        for fault in self.faults:
            name, stack = describe_fault(fault)
            type_name = fault.type_name if isinstance(fault, FaultRecord) else type(fault).__name__
            faults.append({'type': type_name, 'message': name, 'stack': stack})

        data.update({
            'messages': list(self.messages),
            'faults': faults,
            'is_async': self.is_async,
            'duration': self.duration,
        })
        return data


Event = Union[OperationStarted, OperationCompleted, OperationError]

EVENT_TYPES = {
    EventKind.STARTED: OperationStarted,
    EventKind.COMPLETED: OperationCompleted,
    EventKind.ERROR: OperationError,
}


def _sequence(data: Dict[str, Any], name: str) -> list:
    value = data.get(name, [])
    if not isinstance(value, (list, tuple)):
        raise TypeError(f"'{name}' must be a list, got {type(value).__name__}")
    return list(value)


def event_from_dict(data: Dict[str, Any]) -> Event:
    """
    Rebuild an event from the dictionary produced by ``to_dict``.

    Args:
        data: Event dictionary

    Returns:
        Event of the variant named by ``data['kind']``

    Raises:
        CaptureFileError: If the dictionary is not a valid event
    """
    try:
        kind = EventKind(data['kind'])
        header = {
            'id': data['id'],
            'connection_id': data['connection_id'],
            'operation_id': data['operation_id'],
            'captured_at': data.get('captured_at', 0.0),
            'offset': data.get('offset', 0.0),
        }

        if kind is EventKind.STARTED:
            return OperationStarted(
                type=data.get('type', ''),
                keys=_sequence(data, 'keys'),
                check_dupes=data.get('check_dupes', False),
                is_async=data.get('is_async', False),
                **header
            )

        if kind is EventKind.COMPLETED:
            return OperationCompleted(
                keys_found=_sequence(data, 'keys_found'),
                is_async=data.get('is_async', False),
                duration=data.get('duration', 0.0),
                **header
            )

        faults = [
            FaultRecord(
                type_name=f.get('type', 'Exception'),
                message=f.get('message', ''),
                stack=f.get('stack', '')
            )
            for f in _sequence(data, 'faults')
        ]
        return OperationError(
            messages=_sequence(data, 'messages'),
            faults=faults,
            is_async=data.get('is_async', False),
            duration=data.get('duration', 0.0),
            **header
        )

    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise CaptureFileError("Invalid event record", details=f"{e!r} in {data!r}") from e
