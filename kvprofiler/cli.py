# kvprofiler/cli.py - Command-line interface
"""
Command-line interface for the key-value operation profiler.
"""

import asyncio
import random
import click
import sys
import time
import logging

from kvprofiler.utils.logger import setup_logging
from kvprofiler.utils.config import Config, OUTPUT_FORMATS
from kvprofiler.errors import KvProfilerError


logger = logging.getLogger(__name__)


@click.group()
@click.option('--log-level', default='INFO', type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR']))
@click.option('--log-file', type=click.Path(), help='Log file path')
@click.pass_context
def cli(ctx, log_level, log_file):
    """
    Key-Value Operation Profiler

    Correlates instrumented bucket operations into per-connection statistics.
    """
    ctx.ensure_object(dict)

    setup_logging(level=log_level, log_file=log_file)

    ctx.obj['log_level'] = log_level
    ctx.obj['log_file'] = log_file


def load_config(ctx, config_file, output_format=None) -> Config:
    """
    Load the effective configuration for a command.

    Console logging is set up again without colors when the
    configuration turns them off.

    Args:
        ctx: Click context holding the logging options
        config_file: Optional YAML configuration file
        output_format: Output format overriding the file's value

    Returns:
        Validated configuration
    """
    cfg = Config(config_file)
    if output_format:
        cfg.set('output.format', output_format)
        cfg.validate()

    if not cfg.get('output.use_colors', True):
        setup_logging(level=ctx.obj['log_level'], log_file=ctx.obj['log_file'], use_colors=False)
    return cfg


def render(metadata, cfg: Config, output=None):
    """
    Render an aggregation result in the configured output format.

    Args:
        metadata: Aggregated metadata
        cfg: Effective configuration
        output: Output filename for the JSON format
    """
    output_format = cfg.get('output.format', 'stdout')

    if output_format == 'json':
        from kvprofiler.exporters.json_exporter import JSONExporter

        exporter = JSONExporter(cfg.get('output.directory'))
        path = exporter.export_metadata(metadata, filename=output)
        click.echo(f"Results written to {path}")

    elif output_format == 'prometheus':
        from prometheus_client import CollectorRegistry
        from kvprofiler.exporters.prometheus import PrometheusExporter

        exporter = PrometheusExporter(registry=CollectorRegistry())
        exporter.record_metadata(metadata)
        click.echo(exporter.get_metrics_text())

    else:
        from kvprofiler.exporters.stdout import StdoutExporter

        exporter = StdoutExporter(
            use_colors=cfg.get('output.use_colors', True),
            show_stacks=cfg.get('output.show_stacks', False)
        )
        exporter.print_metadata(metadata)


def serve_metrics(metadata, cfg: Config):
    """
    Expose an aggregation result on the Prometheus HTTP endpoint until interrupted.

    Args:
        metadata: Aggregated metadata
        cfg: Effective configuration
    """
    from prometheus_client import CollectorRegistry
    from kvprofiler.exporters.prometheus import PrometheusExporter

    exporter = PrometheusExporter(cfg.get('output.prometheus_port', 9090), registry=CollectorRegistry())
    exporter.record_metadata(metadata)
    exporter.start()

    click.echo(f"Serving metrics on port {exporter.port}. Press Ctrl+C to stop.")
    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        logger.info("Metrics server stopped")


@cli.command()
@click.argument('capture_file', type=click.Path(exists=True, dir_okay=False))
@click.option('--config', type=click.Path(), help='Configuration file')
@click.option('--output-format', type=click.Choice(OUTPUT_FORMATS), help='Output format')
@click.option('--output', type=click.Path(), help='Output file (for JSON format)')
@click.option('--serve', is_flag=True, help='Serve the metrics over HTTP for Prometheus to scrape')
@click.pass_context
def aggregate(ctx, capture_file, config, output_format, output, serve):
    """
    Aggregate a saved capture file.

    Example:
        kv-profiler aggregate capture.json
        kv-profiler aggregate capture.json --output-format json --output ops.json
        kv-profiler aggregate capture.json --serve
    """
    from kvprofiler.collector.aggregator import aggregate_events
    from kvprofiler.exporters.json_exporter import load_events

    try:
        cfg = load_config(ctx, config, output_format)
        events = load_events(capture_file)
        metadata = aggregate_events(events)
        if serve:
            serve_metrics(metadata, cfg)
        else:
            render(metadata, cfg, output)
    except KvProfilerError as e:
        logger.error(f"Aggregation failed: {e}")
        sys.exit(1)


async def _run_async_operations(bucket, keys):
    await asyncio.gather(*(bucket.get_async(key) for key in keys))
    await bucket.upsert_async(keys[0], {'touched': True})


def run_workload(bucket, operations: int, rng: random.Random):
    """
    Drive a mixed workload through an instrumented bucket.

    Args:
        bucket: InstrumentedBucket to exercise
        operations: Number of single-key calls to make
        rng: Random source for key and call selection
    """
    keys = [f"user::{i}" for i in range(max(operations // 4, 2))]

    for key in keys[: len(keys) // 2]:
        bucket.upsert(key, {'id': key})

    for _ in range(operations):
        key = rng.choice(keys)
        choice = rng.random()
        if choice < 0.5:
            bucket.get(key)
        elif choice < 0.7:
            bucket.upsert(key, {'id': key, 'n': rng.randint(0, 100)})
        elif choice < 0.8:
            bucket.insert(key, {'id': key})
        elif choice < 0.9:
            bucket.replace(key, {'id': key})
        else:
            bucket.remove(key)

    bucket.get_multi(keys[:3])
    bucket.get_multi(keys[:3])
    bucket.get("missing::doc")
    bucket.get("broken::doc")

    asyncio.run(_run_async_operations(bucket, keys[:2]))


@cli.command()
@click.option('--config', type=click.Path(), help='Configuration file')
@click.option('--operations', type=int, default=20, show_default=True, help='Number of calls to simulate')
@click.option('--seed', type=int, default=0, show_default=True, help='Random seed for the workload')
@click.option('--bucket', 'bucket_names', multiple=True, default=['default'], help='Bucket names to simulate')
@click.option('--save-capture', type=click.Path(), help='Write captured events to a JSON file')
@click.option('--output-format', type=click.Choice(OUTPUT_FORMATS), help='Output format')
@click.option('--output', type=click.Path(), help='Output file (for JSON format)')
@click.pass_context
def demo(ctx, config, operations, seed, bucket_names, save_capture, output_format, output):
    """
    Run a simulated workload against in-memory buckets and show the result.

    Example:
        kv-profiler demo --operations 50 --bucket users --bucket sessions
    """
    from kvprofiler.collector.aggregator import aggregate_events
    from kvprofiler.collector.broker import MessageBroker
    from kvprofiler.collector.timer import ExecutionTimer
    from kvprofiler.instrumentation.bucket import InstrumentedBucket
    from kvprofiler.instrumentation.memory_bucket import InMemoryBucket
    from kvprofiler.instrumentation.results import ResponseStatus

    try:
        cfg = load_config(ctx, config, output_format)

        broker = MessageBroker(max_messages=cfg.get('capture.max_messages', 5000))
        timer = ExecutionTimer() if cfg.get('instrumentation.enabled', True) else None
        if timer is None:
            logger.warning("Instrumentation disabled; no events will be captured")

        broker.begin_capture()
        if timer is not None:
            timer.reset()

        rng = random.Random(seed)
        for name in bucket_names:
            inner = InMemoryBucket(name, failures={"broken::doc": ResponseStatus.TEMPORARY_FAILURE})
            run_workload(InstrumentedBucket(inner, broker, timer), operations, rng)

        events = broker.get_messages()
        logger.info(f"Captured {len(events)} events")

        if save_capture:
            from kvprofiler.exporters.json_exporter import JSONExporter

            JSONExporter(cfg.get('output.directory')).export_events(events, filename=save_capture)

        render(aggregate_events(events), cfg, output)
    except KvProfilerError as e:
        logger.error(f"Demo failed: {e}")
        sys.exit(1)


@cli.command('show-config')
@click.option('--config', type=click.Path(), help='Configuration file')
def show_config(config):
    """
    Print the effective configuration as YAML.

    Example:
        kv-profiler show-config --config configs/default.yaml
    """
    try:
        click.echo(Config(config).to_yaml())
    except KvProfilerError as e:
        logger.error(f"Invalid configuration: {e}")
        sys.exit(1)


if __name__ == '__main__':
    cli(obj={})
