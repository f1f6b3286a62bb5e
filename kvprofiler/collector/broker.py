# kvprofiler/collector/broker.py - Capture window message buffering
"""
In-process message broker that buffers lifecycle events for one capture
window and hands them to the aggregator as a snapshot.
"""

from collections import deque
from typing import Callable, Deque, List, Type
import threading
import time
import logging

from kvprofiler.collector.events import Event, OperationEvent


class MessageBroker:
    """
    Buffers published events and notifies subscribers.

    Publishing is thread-safe so instrumented calls on several threads or
    asyncio tasks can share one broker.
    """

    def __init__(self, max_messages: int = 5000,
                 wall_clock: Callable[[], float] = time.time):
        """
        Initialize the broker.

        Args:
            max_messages: Maximum buffered events per window (0 = unbounded)
            wall_clock: Wall clock used to stamp the capture start
        """
        self.max_messages = max_messages
        self.wall_clock = wall_clock

        self.subscribers: List[Callable] = []
        self.dropped_count = 0
        self.callback_error_count = 0
        self.capture_started_at = wall_clock()

        self._messages: Deque[Event] = deque(maxlen=max_messages or None)
        self._lock = threading.Lock()
        self.logger = logging.getLogger(__name__)

    def subscribe(self, callback: Callable):
        """
        Register a callback invoked with every published event.

        Args:
            callback: Function that takes an event as parameter
        """
        self.subscribers.append(callback)

    def begin_capture(self):
        """
        Start a new capture window, discarding buffered events.
        """
        with self._lock:
            self._messages.clear()
            self.dropped_count = 0
            self.capture_started_at = self.wall_clock()

        self.logger.debug("Capture window started")

    def publish(self, event: OperationEvent):
        """
        Buffer an event and notify subscribers.

        Args:
            event: Lifecycle event
        """
        with self._lock:
            if self.max_messages and len(self._messages) == self.max_messages:
                self.dropped_count += 1
                if self.dropped_count == 1:
                    self.logger.warning(
                        f"Capture buffer full ({self.max_messages} events), dropping oldest events"
                    )
            self._messages.append(event)

        for callback in self.subscribers:
            try:
                callback(event)
            except Exception as e:
                self.callback_error_count += 1
                self.logger.error(f"Error in event subscriber: {e}")

    def get_messages(self, *event_types: Type[OperationEvent]) -> List[Event]:
        """
        Get a snapshot of the buffered events.

        Args:
            event_types: Event classes to keep (all events when omitted)

        Returns:
            Events in publish order
        """
        with self._lock:
            messages = list(self._messages)

        if event_types:
            messages = [m for m in messages if isinstance(m, event_types)]
        return messages

    def get_stats(self) -> dict:
        """
        Get broker statistics.

        Returns:
            Dictionary with buffering statistics
        """
        with self._lock:
            buffered = len(self._messages)

        return {
            'buffered_events': buffered,
            'dropped_events': self.dropped_count,
            'callback_errors': self.callback_error_count,
            'subscribers': len(self.subscribers),
        }
