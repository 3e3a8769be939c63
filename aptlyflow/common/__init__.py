"""Common utilities for aptlyflow."""

from .logger import setup_logger, get_logger
from .config import AptlyFlowConfig, load_config, load_typed_config

__all__ = [
    "AptlyFlowConfig",
    "get_logger",
    "load_config",
    "load_typed_config",
    "setup_logger",
]
