# kvprofiler/__init__.py - Key-value operation profiler
"""
Instruments key-value bucket operations and correlates the lifecycle
events they emit into per-connection, per-operation statistics.
"""

__version__ = "0.1.0"
