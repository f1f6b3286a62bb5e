# tests/test_events.py - Tests for event model
"""
Unit tests for lifecycle events and their dictionary form.
"""

import dataclasses

import pytest
from kvprofiler.collector.events import (
    EventKind,
    FaultRecord,
    OperationCompleted,
    OperationError,
    OperationStarted,
    event_from_dict,
)
from kvprofiler.errors import CaptureFileError


class TestEvents:
    """Test cases for event records"""

    def test_kind_tags(self):
        """Test every variant carries its kind"""
        assert OperationStarted("c", "o").kind is EventKind.STARTED
        assert OperationCompleted("c", "o").kind is EventKind.COMPLETED
        assert OperationError("c", "o").kind is EventKind.ERROR

    def test_events_are_immutable(self):
        """Test events cannot be modified after creation"""
        event = OperationStarted("c", "o", type="Get", keys=["k"])

        with pytest.raises(dataclasses.FrozenInstanceError):
            event.type = "Upsert"

    def test_sequences_are_stored_as_tuples(self):
        """Test list arguments are frozen into tuples"""
        keys = ["a", "b"]
        event = OperationStarted("c", "o", keys=keys)
        keys.append("c")

        assert event.keys == ("a", "b")
        assert OperationCompleted("c", "o", keys_found=[True]).keys_found == (True,)
        assert OperationError("c", "o", messages=["m"]).messages == ("m",)

    def test_each_event_gets_unique_id(self):
        """Test event ids are distinct from operation ids"""
        first = OperationStarted("c", "o")
        second = OperationCompleted("c", "o")

        assert first.id != second.id
        assert first.operation_id == second.operation_id

    def test_millisecond_properties(self):
        """Test offset and duration conversions"""
        event = OperationCompleted("c", "o", offset=0.5, duration=0.002)

        assert event.offset_ms == 500.0
        assert event.duration_ms == 2.0


class TestEventDictionaries:
    """Test cases for capture file records"""

    def test_started_round_trip(self):
        """Test a started event survives conversion"""
        event = OperationStarted("users", "op1", offset=0.1, captured_at=12.5,
                                 type="GetMulti", keys=("a", "b"), check_dupes=True, is_async=True)

        assert event_from_dict(event.to_dict()) == event

    def test_error_faults_become_records(self):
        """Test exceptions are stored as name and stack"""
        try:
            raise KeyError("missing")
        except KeyError as e:
            fault = e

        event = OperationError("users", "op1", messages=("failed",), faults=(fault,), duration=0.1)
        data = event.to_dict()

        assert data['kind'] == 'error'
        assert data['faults'][0]['type'] == 'KeyError'
        assert data['faults'][0]['message'] == "'missing'"
        assert 'raise KeyError' in data['faults'][0]['stack']

        restored = event_from_dict(data)
        assert restored.messages == ("failed",)
        assert restored.faults == (FaultRecord('KeyError', "'missing'", data['faults'][0]['stack']),)

    def test_unknown_kind_raises(self):
        """Test invalid records are reported"""
        with pytest.raises(CaptureFileError):
            event_from_dict({'kind': 'paused', 'id': 'x', 'connection_id': 'c', 'operation_id': 'o'})

    def test_missing_header_raises(self):
        """Test records need a correlation id"""
        with pytest.raises(CaptureFileError):
            event_from_dict({'kind': 'started', 'id': 'x', 'connection_id': 'c'})

    @pytest.mark.parametrize("field,value", [
        ('keys', "abc"),
        ('keys', 3),
    ])
    def test_started_keys_must_be_a_list(self, field, value):
        """Test a string is not split into single-character keys"""
        record = {'kind': 'started', 'id': 'x', 'connection_id': 'c', 'operation_id': 'o', field: value}

        with pytest.raises(CaptureFileError):
            event_from_dict(record)

    def test_completed_flags_must_be_a_list(self):
        """Test found flags are validated"""
        record = {'kind': 'completed', 'id': 'x', 'connection_id': 'c', 'operation_id': 'o',
                  'keys_found': "true"}

        with pytest.raises(CaptureFileError):
            event_from_dict(record)

    def test_error_messages_must_be_a_list(self):
        """Test error messages are validated"""
        record = {'kind': 'error', 'id': 'x', 'connection_id': 'c', 'operation_id': 'o',
                  'messages': "boom"}

        with pytest.raises(CaptureFileError):
            event_from_dict(record)
