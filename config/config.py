"""
Configuration Management Module for the Cyclone Panel Attrition Analysis

This module handles loading, validation, and management of configuration
settings for the survey panel pipeline.

Author: Survey Analytics Team
Date: 2025
"""

import logging
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from panel_bucketing import OUT_OF_RANGE_POLICIES
from scripts.logging_config import DEFAULT_FORMAT, get_logger, setup_logging

logger = get_logger('config')


@dataclass
class ProjectConfig:
    """Project information configuration"""
    name: str
    version: str
    description: str
    author: str


@dataclass
class PathConfig:
    """File path configuration"""
    data: str
    raw_data: str
    processed_data: str
    output: str
    visualizations: str
    logs: str


@dataclass
class SourceConfig:
    """Input survey files"""
    baseline_file: str
    followup_file: str
    key_column: str


@dataclass
class BucketingConfig:
    """Age bucketing parameters"""
    age_column: str
    bucket_column: str
    breakpoints: List[float]
    labels: List[str]
    right_inclusive: bool
    out_of_range: str


@dataclass
class AnalysisConfig:
    """Significance testing parameters"""
    alpha: float
    yates_correction: bool
    demographic_columns: List[str]


class ConfigManager:
    """
    Configuration manager for the cyclone panel analysis.

    Handles loading, validation, and access to configuration parameters
    across the entire pipeline.
    """

    required_sections = [
        'project', 'paths', 'sources', 'cleaning', 'flags',
        'bucketing', 'analysis', 'generation', 'logging'
    ]

    def __init__(self, config_path: Optional[Union[str, Path]] = None):
        """
        Initialize the configuration manager.

        Args:
            config_path: Path to the configuration file. If None, uses default path.
        """
        if config_path is None:
            config_path = Path(__file__).parent / "config.yaml"

        self.config_path = Path(config_path)
        self.config = self._load_config()
        self._validate_config()
        self._build_sections()

    def _build_sections(self) -> None:
        self.project = ProjectConfig(**self.config['project'])
        self.paths = PathConfig(**self.config['paths'])
        self.sources = SourceConfig(**self.config['sources'])
        bucketing = dict(self.config['bucketing'])
        bucketing['breakpoints'] = [float(b) for b in bucketing['breakpoints']]
        self.bucketing = BucketingConfig(**bucketing)
        self.analysis = AnalysisConfig(**self.config['analysis'])

    def _load_config(self) -> Dict[str, Any]:
        """
        Load configuration from YAML file.

        Returns:
            Dictionary containing configuration parameters

        Raises:
            FileNotFoundError: If config file doesn't exist
            yaml.YAMLError: If YAML parsing fails
        """
        try:
            if not self.config_path.exists():
                raise FileNotFoundError(f"Configuration file not found: {self.config_path}")

            with open(self.config_path, 'r') as file:
                config = yaml.safe_load(file)

            if not isinstance(config, dict):
                raise ValueError(f"Configuration file is empty or malformed: {self.config_path}")

            logger.info(f"Configuration loaded successfully from {self.config_path}")
            return config

        except yaml.YAMLError as e:
            logger.error(f"Error parsing YAML configuration: {e}")
            raise
        except Exception as e:
            logger.error(f"Error loading configuration: {e}")
            raise

    def _validate_config(self) -> None:
        """
        Validate configuration parameters for correctness and completeness.

        Raises:
            ValueError: If configuration validation fails
        """
        missing_sections = [section for section in self.required_sections
                            if section not in self.config]
        if missing_sections:
            raise ValueError(f"Missing required configuration sections: {missing_sections}")

        bucketing = self.config['bucketing']
        breakpoints = [float(b) for b in bucketing['breakpoints']]
        if any(lo >= hi for lo, hi in zip(breakpoints[:-1], breakpoints[1:])):
            raise ValueError("Bucket breakpoints must be strictly increasing")
        if len(bucketing['labels']) != len(breakpoints) - 1:
            raise ValueError("Number of bucket labels must be one less than number of breakpoints")
        if bucketing['out_of_range'] not in OUT_OF_RANGE_POLICIES:
            raise ValueError(f"Unsupported out_of_range policy: {bucketing['out_of_range']}")
        if math.isinf(breakpoints[0]):
            raise ValueError("Lowest bucket breakpoint must be finite")

        alpha = self.config['analysis']['alpha']
        if not (0 < alpha < 1):
            raise ValueError("analysis.alpha must be between 0 and 1")

        if not self.config['flags']['timestamp_fields']:
            raise ValueError("flags.timestamp_fields must name at least one column")

        logger.info("Configuration validation completed successfully")

    def create_directories(self) -> None:
        """Create necessary directories if they don't exist."""
        paths = self.config['paths']
        for key in ['data', 'raw_data', 'processed_data', 'output', 'visualizations', 'logs']:
            Path(paths[key]).mkdir(parents=True, exist_ok=True)

        logger.info("Directory structure created successfully")

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a configuration value using dot notation.

        Args:
            key: Configuration key using dot notation (e.g., 'analysis.alpha')
            default: Default value if key is not found

        Returns:
            Configuration value or default
        """
        keys = key.split('.')
        value = self.config

        try:
            for k in keys:
                value = value[k]
            return value
        except (KeyError, TypeError):
            return default

    def get_cleaning_config(self) -> Dict[str, Any]:
        """Get baseline cleaning configuration."""
        return self.config['cleaning']

    def get_flags_config(self) -> Dict[str, Any]:
        """Get derived flag configuration."""
        return self.config['flags']

    def get_generation_config(self) -> Dict[str, Any]:
        """Get synthetic panel generation configuration."""
        return self.config['generation']

    def setup_logging(self) -> logging.Logger:
        """Setup logging configuration based on config parameters."""
        log_config = self.config['logging']
        return setup_logging(log_file=Path(log_config['log_file']).resolve(),
                             log_level=log_config['level'],
                             log_format=log_config.get('format', DEFAULT_FORMAT))

    def update_config(self, updates: Dict[str, Any]) -> None:
        """
        Update configuration with new values.

        Args:
            updates: Dictionary of configuration updates
        """
        def _update_nested(d: Dict, u: Dict) -> Dict:
            """Recursively update nested dictionaries."""
            for key, value in u.items():
                if isinstance(value, dict):
                    d[key] = _update_nested(d.get(key, {}), value)
                else:
                    d[key] = value
            return d

        _update_nested(self.config, updates)
        self._validate_config()
        self._build_sections()
        logger.info("Configuration updated successfully")

    def save_config(self, output_path: Optional[Union[str, Path]] = None) -> None:
        """
        Save current configuration to YAML file.

        Args:
            output_path: Path to save configuration. If None, overwrites original.
        """
        if output_path is None:
            output_path = self.config_path

        with open(output_path, 'w') as file:
            yaml.safe_dump(self.config, file, default_flow_style=False, indent=2)

        logger.info(f"Configuration saved to {output_path}")


def load_config(config_path: Optional[Union[str, Path]] = None) -> ConfigManager:
    """
    Convenience function to load configuration.

    Args:
        config_path: Path to configuration file

    Returns:
        ConfigManager instance
    """
    return ConfigManager(config_path)


# Global configuration instance
config = None


def get_config() -> ConfigManager:
    """
    Get global configuration instance.

    Returns:
        ConfigManager instance
    """
    global config
    if config is None:
        config = ConfigManager()
    return config


if __name__ == "__main__":
    try:
        config_manager = ConfigManager()
        print("✓ Configuration loaded successfully")
        print(f"Project: {config_manager.project.name} v{config_manager.project.version}")
        print(f"Baseline file: {config_manager.sources.baseline_file}")
        print(f"Alpha: {config_manager.analysis.alpha}")

    except Exception as e:
        print(f"✗ Configuration loading failed: {e}")
