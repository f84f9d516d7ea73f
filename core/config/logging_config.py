#!/usr/bin/env python3
"""Logging configuration"""
import os
from dataclasses import dataclass


def _int(val: str, default: int) -> int:
    try:
        return int(val) if val else default
    except ValueError:
        return default


@dataclass
class LoggingConfig:
    """Logging configuration"""
    log_level: str = "INFO"
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    log_file: str = ""
    log_file_max_bytes: int = 2_000_000
    log_file_backups: int = 5
    enable_console: bool = True

    # Service identity for logging
    service_name: str = "keeper"
    environment: str = "development"

    @classmethod
    def from_env(cls) -> 'LoggingConfig':
        """Load logging config from environment variables"""
        env = os.getenv("ENV") or os.getenv("ENVIRONMENT", "development")
        return cls(
            log_level=os.getenv("LOG_LEVEL", "DEBUG" if env == "development" else "INFO"),
            log_format=os.getenv("LOG_FORMAT", "%(asctime)s - %(name)s - %(levelname)s - %(message)s"),
            log_file=os.getenv("LOG_FILE", ""),
            log_file_max_bytes=_int(os.getenv("LOG_FILE_MAX_BYTES", "2000000"), 2_000_000),
            log_file_backups=_int(os.getenv("LOG_FILE_BACKUPS", "5"), 5),
            enable_console=True,
            service_name=os.getenv("SERVICE_NAME", "keeper"),
            environment=env,
        )
