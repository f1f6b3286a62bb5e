# kvprofiler/exporters/prometheus.py - Prometheus metrics exporter
"""
Exports aggregated operation metrics in Prometheus format.
Provides HTTP endpoint for Prometheus to scrape.
"""

from prometheus_client import (
    CollectorRegistry,
    Counter,
    Histogram,
    REGISTRY,
    generate_latest,
    start_http_server,
)
from typing import Optional
import logging

from kvprofiler.collector.metadata import AggregateMetadata, OperationMetadata
from kvprofiler.errors import KvProfilerError


class PrometheusExporter:
    """
    Exports metrics to Prometheus.

    Exposes an HTTP endpoint that Prometheus can scrape for metrics.
    """

    def __init__(self, port: int = 9090, registry: Optional[CollectorRegistry] = None):
        """
        Initialize the Prometheus exporter.

        Args:
            port: Port to expose metrics on
            registry: Registry to register metrics in (default: global registry)
        """
        self.port = port
        self.registry = registry if registry is not None else REGISTRY
        self.logger = logging.getLogger(__name__)

        # Define metrics
        self.operation_duration = Histogram(
            'kv_profiler_operation_duration_milliseconds',
            'Duration of key-value operations in milliseconds',
            ['connection', 'type'],
            buckets=[0.1, 0.5, 1, 5, 10, 50, 100, 500, 1000],
            registry=self.registry
        )

        self.operation_count = Counter(
            'kv_profiler_operation_count_total',
            'Total number of key-value operations',
            ['connection', 'type'],
            registry=self.registry
        )

        self.error_count = Counter(
            'kv_profiler_operation_errors_total',
            'Total number of failed key-value operations',
            ['connection', 'type'],
            registry=self.registry
        )

        self.duplicate_count = Counter(
            'kv_profiler_duplicate_operations_total',
            'Total number of repeated calls with the same type and keys',
            ['connection', 'type'],
            registry=self.registry
        )

        self.keys_missing = Counter(
            'kv_profiler_keys_not_found_total',
            'Total number of keys reported as not found',
            ['connection', 'type'],
            registry=self.registry
        )

        self.logger.info(f"Prometheus exporter initialized on port {port}")

    def start(self):
        """
        Start the Prometheus HTTP server.

        Raises:
            KvProfilerError: If the server cannot bind its port
        """
        try:
            start_http_server(self.port, registry=self.registry)
        except OSError as e:
            self.logger.error(f"Failed to start Prometheus server: {e}")
            raise KvProfilerError("Failed to start Prometheus server", details=f"port {self.port}: {e}") from e

        self.logger.info(f"Prometheus metrics available at http://localhost:{self.port}/metrics")

    def record_operation(self, operation: OperationMetadata):
        """
        Record a single aggregated operation.

        Args:
            operation: Operation metadata
        """
        labels = {
            'connection': operation.connection_id,
            'type': operation.type or 'unknown',
        }

        self.operation_duration.labels(**labels).observe(operation.duration_ms)
        self.operation_count.labels(**labels).inc()

        if operation.has_errors:
            self.error_count.labels(**labels).inc()
        if operation.is_duplicate:
            self.duplicate_count.labels(**labels).inc()

        missing = sum(1 for found in operation.keys_found if not found)
        if missing:
            self.keys_missing.labels(**labels).inc(missing)

    def record_metadata(self, metadata: AggregateMetadata):
        """
        Record every operation of an aggregation result.

        Args:
            metadata: Aggregated metadata
        """
        for connection in metadata.connections.values():
            for operation in connection.operations.values():
                self.record_operation(operation)

        self.logger.debug(f"Recorded {metadata.operation_count} operations")

    def get_metrics_text(self) -> str:
        """
        Get current metrics in Prometheus text format.

        Returns:
            Metrics as text
        """
        return generate_latest(self.registry).decode('utf-8')
