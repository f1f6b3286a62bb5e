# tests/test_collectors.py - Tests for broker and timer
"""
Unit tests for the MessageBroker and ExecutionTimer classes.
"""

import threading

import pytest
from unittest.mock import Mock
from kvprofiler.collector.broker import MessageBroker
from kvprofiler.collector.events import (
    OperationCompleted,
    OperationError,
    OperationStarted,
)
from kvprofiler.collector.timer import ExecutionTimer


class FakeClock:
    """Clock that only moves when told to"""

    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class TestMessageBroker:
    """Test cases for MessageBroker"""

    def test_publish_and_get_messages(self):
        """Test events come back in publish order"""
        broker = MessageBroker()
        first = OperationStarted("c", "o1")
        second = OperationCompleted("c", "o1")

        broker.publish(first)
        broker.publish(second)

        assert broker.get_messages() == [first, second]

    def test_get_messages_filters_by_type(self):
        """Test filtering by event variant"""
        broker = MessageBroker()
        started = OperationStarted("c", "o1")
        error = OperationError("c", "o2")
        broker.publish(started)
        broker.publish(OperationCompleted("c", "o1"))
        broker.publish(error)

        assert broker.get_messages(OperationStarted) == [started]
        assert broker.get_messages(OperationStarted, OperationError) == [started, error]

    def test_get_messages_returns_snapshot(self):
        """Test the returned list is independent of the buffer"""
        broker = MessageBroker()
        broker.publish(OperationStarted("c", "o1"))

        snapshot = broker.get_messages()
        broker.publish(OperationStarted("c", "o2"))

        assert len(snapshot) == 1
        assert len(broker.get_messages()) == 2

    def test_begin_capture_clears_buffer(self):
        """Test a new capture window starts empty"""
        clock = FakeClock(10.0)
        broker = MessageBroker(wall_clock=clock)
        broker.publish(OperationStarted("c", "o1"))

        clock.advance(5.0)
        broker.begin_capture()

        assert broker.get_messages() == []
        assert broker.capture_started_at == 15.0

    def test_buffer_drops_oldest_when_full(self):
        """Test bounded buffering"""
        broker = MessageBroker(max_messages=2)
        events = [OperationStarted("c", f"o{i}") for i in range(3)]
        for event in events:
            broker.publish(event)

        assert broker.get_messages() == events[1:]
        assert broker.get_stats()['dropped_events'] == 1

    def test_zero_max_messages_is_unbounded(self):
        """Test max_messages=0 keeps everything"""
        broker = MessageBroker(max_messages=0)
        for i in range(10):
            broker.publish(OperationStarted("c", f"o{i}"))

        assert len(broker.get_messages()) == 10

    def test_subscribers_are_notified(self):
        """Test subscriber callbacks"""
        broker = MessageBroker()
        callback = Mock()
        broker.subscribe(callback)
        event = OperationStarted("c", "o1")

        broker.publish(event)

        callback.assert_called_once_with(event)

    def test_failing_subscriber_does_not_break_publish(self):
        """Test subscriber errors are counted, not raised"""
        broker = MessageBroker()
        broker.subscribe(Mock(side_effect=ValueError("bad subscriber")))

        broker.publish(OperationStarted("c", "o1"))

        assert len(broker.get_messages()) == 1
        assert broker.get_stats()['callback_errors'] == 1

    def test_concurrent_publish(self):
        """Test publishing from several threads"""
        broker = MessageBroker(max_messages=0)

        def produce(thread_index):
            for i in range(100):
                broker.publish(OperationStarted("c", f"t{thread_index}-{i}"))

        threads = [threading.Thread(target=produce, args=(n,)) for n in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(broker.get_messages()) == 400


class TestExecutionTimer:
    """Test cases for ExecutionTimer"""

    def test_start_returns_offset_from_origin(self):
        """Test offsets are relative to the origin"""
        clock = FakeClock(100.0)
        timer = ExecutionTimer(clock=clock, wall_clock=FakeClock(5000.0))

        clock.advance(0.25)

        assert timer.start() == pytest.approx(0.25)

    def test_stop_measures_duration(self):
        """Test stop computes duration and wall-clock start"""
        clock = FakeClock(100.0)
        timer = ExecutionTimer(clock=clock, wall_clock=FakeClock(5000.0))

        clock.advance(1.0)
        offset = timer.start()
        clock.advance(0.5)
        result = timer.stop(offset)

        assert result.offset == pytest.approx(1.0)
        assert result.duration == pytest.approx(0.5)
        assert result.duration_ms == pytest.approx(500.0)
        assert result.start_time == pytest.approx(5001.0)

    def test_reset_moves_origin(self):
        """Test reset starts a new timing origin"""
        clock = FakeClock(0.0)
        wall_clock = FakeClock(1000.0)
        timer = ExecutionTimer(clock=clock, wall_clock=wall_clock)

        clock.advance(3.0)
        wall_clock.advance(3.0)
        timer.reset()

        assert timer.start() == 0.0
        assert timer.origin_wall_time == 1003.0

    def test_duration_never_negative(self):
        """Test stop with an offset from the future"""
        timer = ExecutionTimer(clock=FakeClock(0.0), wall_clock=FakeClock(0.0))

        assert timer.stop(10.0).duration == 0.0
