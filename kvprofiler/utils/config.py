# kvprofiler/utils/config.py - Configuration management
"""
Configuration management for the profiler.
Loads and validates configuration from YAML files.
"""

import copy
import yaml
from pathlib import Path
from typing import Dict, Any, Optional
import logging

from kvprofiler.errors import ConfigError


OUTPUT_FORMATS = ('stdout', 'json', 'prometheus')


class Config:
    """
    Configuration manager for the profiler.

    Loads configuration from YAML files and provides access to settings
    through dot-notation keys.
    """

    DEFAULT_CONFIG = {
        'instrumentation': {
            'enabled': True,
        },
        'capture': {
            'max_messages': 5000,
        },
        'output': {
            'format': 'stdout',
            'directory': '.',
            'use_colors': True,
            'show_stacks': False,
            'prometheus_port': 9090,
        },
    }

    def __init__(self, config_file: Optional[str] = None):
        """
        Initialize configuration.

        Args:
            config_file: Path to YAML configuration file
        """
        self.logger = logging.getLogger(__name__)
        self.config = copy.deepcopy(self.DEFAULT_CONFIG)

        if config_file:
            self.load_from_file(config_file)

    def load_from_file(self, config_file: str):
        """
        Load configuration from YAML file.

        Args:
            config_file: Path to YAML file

        Raises:
            ConfigError: If the file cannot be read or is not a YAML mapping
        """
        config_path = Path(config_file)

        if not config_path.exists():
            self.logger.warning(f"Config file not found: {config_file}, using defaults")
            return

        try:
            with open(config_path, 'r') as f:
                loaded_config = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            self.logger.error(f"Failed to load config: {e}")
            raise ConfigError(f"Failed to load config {config_file}", details=str(e)) from e

        if loaded_config is None:
            loaded_config = {}
        if not isinstance(loaded_config, dict):
            raise ConfigError(f"Config file {config_file} must contain a mapping")

        # Merge with defaults
        self._merge_config(self.config, loaded_config)
        self.validate()
        self.logger.info(f"Loaded configuration from {config_file}")

    def _merge_config(self, base: Dict, override: Dict):
        """
        Recursively merge configuration dictionaries.

        Args:
            base: Base configuration dictionary
            override: Override configuration dictionary
        """
        for key, value in override.items():
            if key in base and isinstance(base[key], dict) and isinstance(value, dict):
                self._merge_config(base[key], value)
            else:
                base[key] = value

    def validate(self):
        """
        Check the values the profiler depends on.

        Raises:
            ConfigError: If a value is out of range
        """
        output_format = self.get('output.format')
        if output_format not in OUTPUT_FORMATS:
            raise ConfigError(
                f"Unknown output format: {output_format}",
                details=f"expected one of {', '.join(OUTPUT_FORMATS)}"
            )

        max_messages = self.get('capture.max_messages')
        if not isinstance(max_messages, int) or max_messages < 0:
            raise ConfigError(f"capture.max_messages must be a non-negative integer, got {max_messages!r}")

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value by dot-notation key.

        Args:
            key: Configuration key (e.g., 'capture.max_messages')
            default: Default value if key not found

        Returns:
            Configuration value
        """
        keys = key.split('.')
        value = self.config

        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value

    def set(self, key: str, value: Any):
        """
        Set configuration value by dot-notation key.

        Args:
            key: Configuration key (e.g., 'output.format')
            value: Value to set
        """
        keys = key.split('.')
        config = self.config

        for k in keys[:-1]:
            if k not in config:
                config[k] = {}
            config = config[k]

        config[keys[-1]] = value

    def to_dict(self) -> Dict:
        """
        Get full configuration as dictionary.

        Returns:
            Configuration dictionary
        """
        return copy.deepcopy(self.config)

    def to_yaml(self) -> str:
        return yaml.safe_dump(self.config, default_flow_style=False, sort_keys=True)

    def save_to_file(self, config_file: str):
        """
        Save current configuration to YAML file.

        Args:
            config_file: Path to output YAML file

        Raises:
            ConfigError: If the file cannot be written
        """
        try:
            with open(Path(config_file), 'w') as f:
                f.write(self.to_yaml())
        except OSError as e:
            self.logger.error(f"Failed to save config: {e}")
            raise ConfigError(f"Failed to save config {config_file}", details=str(e)) from e

        self.logger.info(f"Saved configuration to {config_file}")
