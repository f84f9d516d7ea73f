"""
Keeper Service Factory

Factory functions for creating service instances with real dependencies.
This is the ONLY place that imports I/O-dependent modules.

Usage:
    from .factory import create_keeper_gateway
    gateway = create_keeper_gateway(config)
"""
from typing import Optional

from core.config import KeeperServerConfig

from .grpc_gateway import KeeperGateway
from .keeper_service import KeeperService
from .password_utils import PasswordHasher
from .protocols import KeeperRepositoryProtocol


def create_keeper_repository(config: KeeperServerConfig) -> KeeperRepositoryProtocol:
    """
    Create KeeperRepository with real dependencies.

    Args:
        config: Server configuration

    Returns:
        Repository connected to the configured MongoDB
    """
    # Import real repository here (not at module level)
    from .keeper_repository import KeeperRepository

    return KeeperRepository(config=config.infra)


def create_keeper_service(
    config: KeeperServerConfig,
    repository: Optional[KeeperRepositoryProtocol] = None,
) -> KeeperService:
    """
    Create KeeperService.

    Args:
        config: Server configuration
        repository: Repository to use; the MongoDB repository if omitted

    Returns:
        Configured KeeperService instance
    """
    if repository is None:
        repository = create_keeper_repository(config)

    hasher = PasswordHasher(config.password_salt, rounds=config.bcrypt_rounds)

    return KeeperService(repository=repository, password_hasher=hasher)


def create_keeper_gateway(
    config: KeeperServerConfig,
    repository: Optional[KeeperRepositoryProtocol] = None,
) -> KeeperGateway:
    """Create the gRPC gateway on top of a configured KeeperService"""
    return KeeperGateway(create_keeper_service(config, repository))


__all__ = [
    "create_keeper_repository",
    "create_keeper_service",
    "create_keeper_gateway",
]
