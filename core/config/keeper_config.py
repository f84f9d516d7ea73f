#!/usr/bin/env python3
"""Keeper service configuration

Server and client settings. Both are built once at process start and
passed into the components that need them.
"""
import base64
import binascii
import os
from dataclasses import dataclass, field
from typing import Optional

from .infra_config import InfraConfig
from .logging_config import LoggingConfig, _int


def _float(val: str, default: float) -> float:
    try:
        return float(val) if val else default
    except ValueError:
        return default


# Salt used when KEEPER_PASSWORD_SALT is not set; rejected outside development
DEV_PASSWORD_SALT = "gokeeper-dev-salt"

AES_KEY_SIZES = (16, 24, 32)


class ConfigurationError(Exception):
    """Raised when required settings are missing or malformed"""
    pass


@dataclass
class KeeperServerConfig:
    """gRPC server settings"""

    listen_host: str = "0.0.0.0"
    listen_port: int = 50051

    # Server-wide secret mixed into every password hash
    password_salt: str = DEV_PASSWORD_SALT
    bcrypt_rounds: int = 12

    # Idle connections are closed by the server after this many seconds
    max_connection_idle_s: int = 300
    shutdown_grace_s: float = 5.0

    environment: str = "development"
    infra: InfraConfig = field(default_factory=InfraConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @property
    def listen_address(self) -> str:
        return f"{self.listen_host}:{self.listen_port}"

    def validate(self) -> 'KeeperServerConfig':
        if not self.password_salt:
            raise ConfigurationError("KEEPER_PASSWORD_SALT must not be empty")
        if self.environment not in ("development", "dev", "testing", "test") \
                and self.password_salt == DEV_PASSWORD_SALT:
            raise ConfigurationError(
                f"KEEPER_PASSWORD_SALT must be set in '{self.environment}' environment"
            )
        if not 4 <= self.bcrypt_rounds <= 31:
            raise ConfigurationError(f"KEEPER_BCRYPT_ROUNDS out of range: {self.bcrypt_rounds}")
        return self

    @classmethod
    def from_env(cls) -> 'KeeperServerConfig':
        env = os.getenv("ENV") or os.getenv("ENVIRONMENT", "development")
        return cls(
            listen_host=os.getenv("KEEPER_LISTEN_HOST", "0.0.0.0"),
            listen_port=_int(os.getenv("KEEPER_LISTEN_PORT", "50051"), 50051),
            password_salt=os.getenv("KEEPER_PASSWORD_SALT", DEV_PASSWORD_SALT),
            bcrypt_rounds=_int(os.getenv("KEEPER_BCRYPT_ROUNDS", "12"), 12),
            max_connection_idle_s=_int(os.getenv("KEEPER_MAX_CONNECTION_IDLE_S", "300"), 300),
            shutdown_grace_s=_float(os.getenv("KEEPER_SHUTDOWN_GRACE_S", "5"), 5.0),
            environment=env,
            infra=InfraConfig.from_env(),
            logging=LoggingConfig.from_env(),
        )


@dataclass
class KeeperClientConfig:
    """gRPC client settings"""

    server_host: str = "localhost"
    server_port: int = 50051

    # url-safe base64 encoded AES key (16, 24 or 32 bytes once decoded)
    encryption_key: Optional[str] = None
    rpc_timeout_s: float = 10.0

    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @property
    def server_address(self) -> str:
        return f"{self.server_host}:{self.server_port}"

    def key_bytes(self) -> bytes:
        """Decode the configured encryption key"""
        if not self.encryption_key:
            raise ConfigurationError("KEEPER_CLIENT_KEY is not set")
        try:
            key = base64.urlsafe_b64decode(self.encryption_key.encode())
        except (binascii.Error, ValueError) as e:
            raise ConfigurationError(f"KEEPER_CLIENT_KEY is not valid base64: {e}")
        if len(key) not in AES_KEY_SIZES:
            raise ConfigurationError(
                f"KEEPER_CLIENT_KEY must decode to 16, 24 or 32 bytes, got {len(key)}"
            )
        return key

    def validate(self) -> 'KeeperClientConfig':
        self.key_bytes()
        return self

    @classmethod
    def from_env(cls) -> 'KeeperClientConfig':
        return cls(
            server_host=os.getenv("KEEPER_SERVER_HOST", "localhost"),
            server_port=_int(os.getenv("KEEPER_SERVER_PORT", "50051"), 50051),
            encryption_key=os.getenv("KEEPER_CLIENT_KEY"),
            rpc_timeout_s=_float(os.getenv("KEEPER_RPC_TIMEOUT_S", "10"), 10.0),
            logging=LoggingConfig.from_env(),
        )
