"""Configuration management for aptlyflow.

Handles loading and validation of YAML configuration files. A missing
configuration file is not an error: every setting has a default.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

DEFAULT_CONFIG_PATH = "/etc/aptlyflow/config.yaml"
DEFAULT_SUFFIX_FORMAT = "%Y%m%d"


@dataclass
class AptlyToolConfig:
    """How to invoke the aptly binary."""

    binary: str = "aptly"
    config_file: Optional[str] = None  # passed as -config=<file>
    timeout: Optional[int] = None  # seconds; None waits for completion


@dataclass
class LoggingConfig:
    """Logging settings."""

    level: str = "WARNING"
    dir: str = "/var/log/aptlyflow"
    file_logging: bool = False


@dataclass
class AptlyFlowConfig:
    """Top-level configuration for aptlyflow."""

    aptly: AptlyToolConfig = field(default_factory=AptlyToolConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    dry_run: bool = False
    suffix_format: str = DEFAULT_SUFFIX_FORMAT


def parse_aptly_config(aptly_dict: Dict[str, Any]) -> AptlyToolConfig:
    """Parse the aptly section.

    Args:
        aptly_dict: aptly configuration dictionary

    Returns:
        AptlyToolConfig instance
    """
    timeout = aptly_dict.get("timeout")
    return AptlyToolConfig(
        binary=aptly_dict.get("binary", "aptly"),
        config_file=aptly_dict.get("config_file") or None,
        timeout=int(timeout) if timeout else None,
    )


def parse_logging_config(logging_dict: Dict[str, Any]) -> LoggingConfig:
    """Parse the logging section.

    Args:
        logging_dict: Logging configuration dictionary

    Returns:
        LoggingConfig instance
    """
    return LoggingConfig(
        level=logging_dict.get("level", "WARNING"),
        dir=logging_dict.get("dir", "/var/log/aptlyflow"),
        file_logging=bool(logging_dict.get("file_logging", False)),
    )


def parse_config(config_dict: Dict[str, Any]) -> AptlyFlowConfig:
    """Parse the full configuration dictionary.

    Args:
        config_dict: Full configuration dictionary

    Returns:
        AptlyFlowConfig instance
    """
    aptly = AptlyToolConfig()
    if "aptly" in config_dict:
        aptly = parse_aptly_config(config_dict["aptly"] or {})

    logging_config = LoggingConfig()
    if "logging" in config_dict:
        logging_config = parse_logging_config(config_dict["logging"] or {})

    return AptlyFlowConfig(
        aptly=aptly,
        logging=logging_config,
        dry_run=bool(config_dict.get("dry_run", False)),
        suffix_format=config_dict.get("suffix_format", DEFAULT_SUFFIX_FORMAT),
    )


def load_config(config_path: str = DEFAULT_CONFIG_PATH) -> Dict[str, Any]:
    """Load configuration from YAML file.

    Args:
        config_path: Path to configuration file

    Returns:
        Configuration dictionary

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If config file is invalid YAML
        TypeError: If the document root is not a mapping
    """
    config_file = Path(config_path)

    if not config_file.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with config_file.open("r") as f:
        config = yaml.safe_load(f)

    if config is None:
        config = {}

    if not isinstance(config, dict):
        raise TypeError(
            f"Configuration root must be a mapping, got {type(config).__name__}"
        )

    return _expand_env_vars(config)


def _expand_env_vars(obj: Any) -> Any:
    """Recursively expand environment variables in configuration."""
    if isinstance(obj, dict):
        return {key: _expand_env_vars(value) for key, value in obj.items()}
    elif isinstance(obj, list):
        return [_expand_env_vars(item) for item in obj]
    elif isinstance(obj, str):
        return os.path.expandvars(obj)
    else:
        return obj


def load_typed_config(
    config_path: Optional[str] = None,
) -> AptlyFlowConfig:
    """Load and parse configuration into typed dataclasses.

    When no path is given the default location is tried and a missing
    file yields the built-in defaults. An explicitly given path must exist.

    Args:
        config_path: Path to configuration file

    Returns:
        AptlyFlowConfig instance

    Raises:
        FileNotFoundError: If an explicit config file doesn't exist
        yaml.YAMLError: If config file is invalid YAML
    """
    if config_path is None:
        try:
            config_dict = load_config(DEFAULT_CONFIG_PATH)
        except FileNotFoundError:
            config_dict = {}
    else:
        config_dict = load_config(config_path)
    return parse_config(config_dict)
