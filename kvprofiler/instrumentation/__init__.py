# kvprofiler/instrumentation/__init__.py - Instrumentation module
"""
Call interception for key-value buckets.

This module provides:
- bucket.py: Wrapper that publishes lifecycle events per call
- results.py: Operation result and response status model
- memory_bucket.py: Dictionary-backed bucket for demos and tests
"""
