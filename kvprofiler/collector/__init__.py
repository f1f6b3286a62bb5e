# kvprofiler/collector/__init__.py - Event collection module
"""
Collector module for gathering and correlating operation events.

This module provides:
- events.py: Immutable lifecycle events (started, completed, error)
- metadata.py: Aggregated connection and operation metadata
- aggregator.py: Event correlation and duplicate-call detection
- broker.py: Capture window message buffering
- timer.py: Offset and duration measurement
"""
