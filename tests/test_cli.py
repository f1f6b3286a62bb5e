# tests/test_cli.py - Tests for the command-line interface
"""
Tests for the kv-profiler commands using click's test runner.
"""

import json
import logging

import pytest
from click.testing import CliRunner
from kvprofiler.cli import cli
from kvprofiler.collector.events import OperationCompleted, OperationStarted
from kvprofiler.exporters.json_exporter import JSONExporter
from kvprofiler.utils.logger import ColoredFormatter


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def capture_file(tmp_path):
    events = [
        OperationStarted("users", "op1", type="Get", keys=("a",), check_dupes=True),
        OperationCompleted("users", "op1", keys_found=(True,), duration=0.001),
        OperationStarted("users", "op2", type="Get", keys=("a",), check_dupes=True),
    ]
    return JSONExporter(str(tmp_path)).export_events(events, filename="capture.json")


class TestCli:
    """Test cases for the CLI"""

    def test_demo_stdout(self, runner):
        """Test the demo workload renders tables"""
        result = runner.invoke(cli, ['demo', '--operations', '12', '--bucket', 'users'])

        assert result.exit_code == 0, result.output
        assert "Key-Value Statistics" in result.output
        assert "Connection: users" in result.output

    def test_demo_save_capture_and_aggregate(self, runner, tmp_path):
        """Test a saved capture can be aggregated again"""
        capture = tmp_path / "demo.json"
        output = tmp_path / "ops.json"

        result = runner.invoke(cli, ['demo', '--operations', '8', '--save-capture', str(capture)])
        assert result.exit_code == 0, result.output
        assert capture.exists()

        result = runner.invoke(cli, ['aggregate', str(capture), '--output-format', 'json',
                                     '--output', str(output)])
        assert result.exit_code == 0, result.output

        data = json.loads(output.read_text())
        assert set(data["connections"]) == {"default"}
        assert data["statistics"]["operation_count"] > 8

    def test_demo_disabled_instrumentation(self, runner, tmp_path):
        """Test nothing is captured when instrumentation is off"""
        config_file = tmp_path / "config.yaml"
        config_file.write_text("instrumentation:\n  enabled: false\n")

        result = runner.invoke(cli, ['demo', '--config', str(config_file)])

        assert result.exit_code == 0, result.output
        assert "No operations captured" in result.output

    def test_aggregate_prometheus(self, runner, capture_file):
        """Test Prometheus text output"""
        result = runner.invoke(cli, ['aggregate', capture_file, '--output-format', 'prometheus'])

        assert result.exit_code == 0, result.output
        assert 'kv_profiler_duplicate_operations_total{connection="users",type="Get"} 1.0' in result.output

    def test_aggregate_invalid_capture(self, runner, tmp_path):
        """Test malformed capture files fail with exit code 1"""
        bad = tmp_path / "bad.json"
        bad.write_text("[{\"kind\": \"started\"}]")

        result = runner.invoke(cli, ['aggregate', str(bad)])

        assert result.exit_code == 1

    def test_aggregate_bad_config(self, runner, capture_file, tmp_path):
        """Test invalid configuration fails with exit code 1"""
        config_file = tmp_path / "config.yaml"
        config_file.write_text("output:\n  format: xml\n")

        result = runner.invoke(cli, ['aggregate', capture_file, '--config', str(config_file)])

        assert result.exit_code == 1

    def test_show_config(self, runner):
        """Test printing the effective configuration"""
        result = runner.invoke(cli, ['show-config'])

        assert result.exit_code == 0
        assert "max_messages: 5000" in result.output

    def test_aggregate_serve(self, runner, capture_file, tmp_path, monkeypatch):
        """Test metrics are served on the configured port until interrupted"""
        config_file = tmp_path / "config.yaml"
        config_file.write_text("output:\n  prometheus_port: 9123\n")
        ports = []

        def interrupt(seconds):
            raise KeyboardInterrupt

        monkeypatch.setattr('kvprofiler.exporters.prometheus.start_http_server',
                            lambda port, registry: ports.append(port))
        monkeypatch.setattr('kvprofiler.cli.time.sleep', interrupt)

        result = runner.invoke(cli, ['aggregate', capture_file, '--serve', '--config', str(config_file)])

        assert result.exit_code == 0, result.output
        assert ports == [9123]
        assert "Serving metrics on port 9123" in result.output

    def test_use_colors_off_disables_colored_logs(self, runner, capture_file, tmp_path):
        """Test the console log formatter follows output.use_colors"""
        config_file = tmp_path / "config.yaml"
        config_file.write_text("output:\n  use_colors: false\n")

        result = runner.invoke(cli, ['aggregate', capture_file, '--config', str(config_file)])

        assert result.exit_code == 0, result.output
        formatters = [h.formatter for h in logging.getLogger().handlers]
        assert formatters
        assert not any(isinstance(f, ColoredFormatter) for f in formatters)
