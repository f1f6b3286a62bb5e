# kvprofiler/collector/timer.py - Execution timing
"""
Timer used by instrumented operations to measure offsets and durations
relative to the start of a capture window.
"""

from dataclasses import dataclass
from typing import Callable
import time


@dataclass(frozen=True)
class TimerResult:
    """
    Timing of one finished operation.
    """
    offset: float
    duration: float
    start_time: float

    @property
    def duration_ms(self) -> float:
        """Duration in milliseconds"""
        return self.duration * 1000.0


class ExecutionTimer:
    """
    Measures operations against a fixed origin.

    ``start()`` returns the offset since the origin; that offset is later
    handed back to ``stop()`` to compute the duration.
    """

    def __init__(self,
                 clock: Callable[[], float] = time.perf_counter,
                 wall_clock: Callable[[], float] = time.time):
        """
        Initialize the timer.

        Args:
            clock: Monotonic clock in seconds
            wall_clock: Wall clock in seconds since the epoch
        """
        self.clock = clock
        self.wall_clock = wall_clock
        self.origin = clock()
        self.origin_wall_time = wall_clock()

    def reset(self):
        """
        Move the origin to now, e.g. when a new capture window begins.
        """
        self.origin = self.clock()
        self.origin_wall_time = self.wall_clock()

    def start(self) -> float:
        """
        Start timing an operation.

        Returns:
            Offset in seconds since the origin
        """
        return self.clock() - self.origin

    def wall_time(self, offset: float) -> float:
        """
        Convert an offset into wall-clock time.

        Args:
            offset: Offset in seconds since the origin

        Returns:
            Seconds since the epoch
        """
        return self.origin_wall_time + offset

    def stop(self, offset: float) -> TimerResult:
        """
        Stop timing an operation started at ``offset``.

        Args:
            offset: Value previously returned by ``start()``

        Returns:
            TimerResult with offset, duration and wall-clock start time
        """
        duration = max(self.start() - offset, 0.0)
        return TimerResult(
            offset=offset,
            duration=duration,
            start_time=self.wall_time(offset)
        )
