# kvprofiler/exporters/__init__.py - Exporters module
"""
Exporters for outputting aggregated operations in various formats.

This module provides:
- tab_data.py: Row/column tables for the diagnostics display
- stdout.py: Console output exporter
- json_exporter.py: JSON capture and results files
- prometheus.py: Prometheus metrics exporter
"""
