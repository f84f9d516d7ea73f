"""
Service Logger Setup

Configures the standard library logger for a service process.
Modules keep using ``logging.getLogger(__name__)``; this only attaches
handlers to the root of the service hierarchy once per process.
"""

import logging
from logging.handlers import RotatingFileHandler
from typing import Optional

from core.config import LoggingConfig

# Packages whose loggers share the service handlers
SERVICE_LOGGER_ROOTS = ("core", "microservices")


def setup_service_logger(service_name: str, config: Optional[LoggingConfig] = None) -> logging.Logger:
    """
    Set up logging for a service process.

    Args:
        service_name: Logger name for the service entry point
        config: Logging configuration (defaults to environment values)

    Returns:
        The named service logger
    """
    if config is None:
        config = LoggingConfig.from_env()

    level = logging.getLevelName(config.log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    formatter = logging.Formatter(config.log_format)
    handlers = []

    if config.enable_console:
        console = logging.StreamHandler()
        console.setFormatter(formatter)
        handlers.append(console)

    if config.log_file:
        # Rotating file log, ~2MB per file by default
        file_handler = RotatingFileHandler(
            config.log_file,
            maxBytes=config.log_file_max_bytes,
            backupCount=config.log_file_backups,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    for name in (service_name,) + SERVICE_LOGGER_ROOTS:
        target = logging.getLogger(name)
        target.setLevel(level)
        # Prevent duplicate handlers on repeated setup
        if target.handlers:
            continue
        for handler in handlers:
            target.addHandler(handler)
        target.propagate = False

    logger = logging.getLogger(service_name)
    logger.debug(
        f"Logger initialized for {service_name} "
        f"(level={config.log_level}, env={config.environment})"
    )
    return logger
