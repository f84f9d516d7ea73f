#!/usr/bin/env python3
"""
Core Module

Shared infrastructure for the keeper microservice.

COMPONENTS:
    - config/: Environment driven configuration (infra, logging, server, client)
    - logger.py: Process logging setup

USAGE:
    from core.config import load_server_config
    from core.logger import setup_service_logger

    config = load_server_config()
    logger = setup_service_logger("keeper_service", config.logging)
"""

__version__ = "1.0.0"
