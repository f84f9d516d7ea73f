#!/usr/bin/env python3
"""Modular configuration system for the keeper service

Configuration hierarchy:
- infra_config: Infrastructure services (MongoDB)
- logging_config: Logging configuration
- keeper_config: gRPC server and client settings

Settings are built explicitly at process start and handed to each
component; there is no module-level settings instance.
"""
import os
from typing import Optional

from dotenv import load_dotenv

from .infra_config import InfraConfig
from .keeper_config import (
    ConfigurationError,
    KeeperClientConfig,
    KeeperServerConfig,
)
from .logging_config import LoggingConfig

ENV_FILES = {
    "development": "deployment/environments/dev.env",
    "dev": "deployment/environments/dev.env",
    "testing": "deployment/environments/test.env",
    "test": "deployment/environments/test.env",
    "staging": "deployment/environments/staging.env",
    "production": "deployment/environments/production.env",
}


def load_environment(env_file: Optional[str] = None) -> Optional[str]:
    """Load the .env file for the current ENV without overriding real variables

    Returns:
        Path of the env file that was requested
    """
    if env_file is None:
        env = os.getenv("ENV") or os.getenv("ENVIRONMENT", "development")
        env_file = ENV_FILES.get(env, ENV_FILES["development"])
    load_dotenv(env_file, override=False)
    return env_file


def load_server_config(env_file: Optional[str] = None) -> KeeperServerConfig:
    """Build and validate server settings from the environment"""
    load_environment(env_file)
    return KeeperServerConfig.from_env().validate()


def load_client_config(env_file: Optional[str] = None) -> KeeperClientConfig:
    """Build client settings from the environment (key is validated on use)"""
    load_environment(env_file)
    return KeeperClientConfig.from_env()


__all__ = [
    'ConfigurationError',
    'InfraConfig',
    'KeeperClientConfig',
    'KeeperServerConfig',
    'LoggingConfig',
    'load_client_config',
    'load_environment',
    'load_server_config',
]
