"""Logging setup for aptlyflow.

All component loggers live under the "aptlyflow" logger. The CLI
configures that one logger: warnings go to stderr, and a rotating log
file can be enabled from the configuration.
"""

import logging
import logging.handlers
import os
import sys

ROOT_LOGGER = "aptlyflow"
LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
LOG_FORMAT = "%(asctime)s [%(levelname)s] [%(name)s] %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"


def _rotating_file_handler(log_dir: str, name: str, max_bytes: int, backup_count: int) -> logging.Handler:
    os.makedirs(log_dir, exist_ok=True)
    return logging.handlers.RotatingFileHandler(
        os.path.join(log_dir, f"{name}.log"), maxBytes=max_bytes, backupCount=backup_count
    )


def setup_logger(
    name: str = ROOT_LOGGER,
    log_dir: str = "/var/log/aptlyflow",
    level: str = "WARNING",
    file_logging: bool = False,
    console_logging: bool = True,
    max_bytes: int = 10485760,  # 10MB
    backup_count: int = 5,
) -> logging.Logger:
    """Configure the aptlyflow logger.

    Handlers are attached once; calling again only changes the level.

    Args:
        name: Logger name
        log_dir: Directory for <name>.log
        level: One of DEBUG, INFO, WARNING, ERROR, CRITICAL (any case)
        file_logging: Write to a rotating log file
        console_logging: Write to stderr
        max_bytes: Log file size before rotation
        backup_count: Rotated files to keep

    Returns:
        Configured logger

    Raises:
        ValueError: If the level is unknown
    """
    if level.upper() not in LEVELS:
        raise ValueError(f"Invalid log level: {level}. Must be one of: {', '.join(LEVELS)}")

    logger = logging.getLogger(name)
    logger.setLevel(level.upper())
    if logger.handlers:
        return logger

    handlers = []
    if file_logging:
        handlers.append(_rotating_file_handler(log_dir, name, max_bytes, backup_count))
    if console_logging:
        handlers.append(logging.StreamHandler(sys.stderr))

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a component logger, e.g. "snapshot_manager" -> "aptlyflow.snapshot_manager"."""
    if name == ROOT_LOGGER or name.startswith(ROOT_LOGGER + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")
