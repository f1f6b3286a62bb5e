# tests/test_config.py - Tests for configuration and helpers
"""
Unit tests for the Config class and helper functions.
"""

import pytest
from kvprofiler.errors import ConfigError
from kvprofiler.utils.config import Config
from kvprofiler.utils.helpers import (
    describe_fault,
    format_duration,
    join_lines,
    root_cause,
)


class TestConfig:
    """Test cases for Config"""

    def test_defaults(self):
        """Test default values"""
        cfg = Config()

        assert cfg.get('instrumentation.enabled') is True
        assert cfg.get('capture.max_messages') == 5000
        assert cfg.get('output.format') == 'stdout'
        assert cfg.get('output.missing', 'fallback') == 'fallback'

    def test_load_merges_with_defaults(self, tmp_path):
        """Test partial files keep other defaults"""
        config_file = tmp_path / "config.yaml"
        config_file.write_text("output:\n  format: json\ncapture:\n  max_messages: 10\n")

        cfg = Config(str(config_file))

        assert cfg.get('output.format') == 'json'
        assert cfg.get('output.prometheus_port') == 9090
        assert cfg.get('capture.max_messages') == 10

    def test_missing_file_keeps_defaults(self, tmp_path):
        """Test a missing file is not an error"""
        cfg = Config(str(tmp_path / "nope.yaml"))

        assert cfg.to_dict() == Config.DEFAULT_CONFIG

    def test_invalid_yaml_raises(self, tmp_path):
        """Test unparsable files"""
        config_file = tmp_path / "bad.yaml"
        config_file.write_text("output: [unclosed\n")

        with pytest.raises(ConfigError):
            Config(str(config_file))

    def test_non_mapping_raises(self, tmp_path):
        """Test files must hold a mapping"""
        config_file = tmp_path / "list.yaml"
        config_file.write_text("- a\n- b\n")

        with pytest.raises(ConfigError):
            Config(str(config_file))

    def test_unknown_output_format_raises(self, tmp_path):
        """Test validation of the output format"""
        config_file = tmp_path / "config.yaml"
        config_file.write_text("output:\n  format: xml\n")

        with pytest.raises(ConfigError):
            Config(str(config_file))

    def test_negative_buffer_raises(self, tmp_path):
        """Test validation of the capture buffer size"""
        config_file = tmp_path / "config.yaml"
        config_file.write_text("capture:\n  max_messages: -1\n")

        with pytest.raises(ConfigError):
            Config(str(config_file))

    def test_set_does_not_touch_defaults(self):
        """Test instances do not share nested dictionaries"""
        cfg = Config()
        cfg.set('output.format', 'json')
        cfg.set('new.nested.key', 1)

        assert cfg.get('output.format') == 'json'
        assert cfg.get('new.nested.key') == 1
        assert Config().get('output.format') == 'stdout'

    def test_save_and_reload(self, tmp_path):
        """Test saving configuration"""
        cfg = Config()
        cfg.set('output.use_colors', False)
        path = tmp_path / "saved.yaml"

        cfg.save_to_file(str(path))

        assert Config(str(path)).get('output.use_colors') is False


class TestHelpers:
    """Test cases for helper functions"""

    def test_format_duration(self):
        """Test duration formatting"""
        assert format_duration(0.0000005) == "500ns"
        assert format_duration(0.0005) == "500.0us"
        assert format_duration(0.0015) == "1.5ms"
        assert format_duration(2.0) == "2.0s"

    def test_join_lines(self):
        """Test newline joining"""
        assert join_lines(["a", "b"]) == "a\nb"
        assert join_lines([True, False]) == "True\nFalse"
        assert join_lines([]) == ""
        assert join_lines(None) == ""

    def test_root_cause_follows_chain(self):
        """Test explicit and implicit chaining"""
        try:
            try:
                raise KeyError("inner")
            except KeyError:
                raise ValueError("outer")
        except ValueError as e:
            assert isinstance(root_cause(e), KeyError)

    def test_root_cause_respects_suppressed_context(self):
        """Test 'raise ... from None' hides the context"""
        try:
            try:
                raise KeyError("inner")
            except KeyError:
                raise ValueError("outer") from None
        except ValueError as e:
            assert root_cause(e) is e

    def test_describe_plain_exception(self):
        """Test an exception without a cause"""
        name, stack = describe_fault(ValueError("bad value"))

        assert name == "bad value"
        assert stack == ""

    def test_describe_exception_without_message(self):
        """Test empty messages fall back to the type name"""
        name, _ = describe_fault(TimeoutError())

        assert name == "TimeoutError"

    def test_describe_other_objects(self):
        """Test non-exception faults"""
        assert describe_fault("disk full") == ("disk full", "")
