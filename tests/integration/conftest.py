#!/usr/bin/env python3
"""
Integration Test Configuration

Client and server talk over a real gRPC channel on 127.0.0.1; the server
runs against the in-memory repository so no MongoDB is needed.
"""
import os
import sys

import pytest
import pytest_asyncio

# Add project root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "../.."))

from core.config import KeeperClientConfig, KeeperServerConfig
from microservices.keeper_service.client import KeeperServiceClient
from microservices.keeper_service.factory import create_keeper_gateway
from microservices.keeper_service.main import create_server
from tests.component.golden.keeper_service.mocks import MockKeeperRepository
from tests.fixtures import TEST_BCRYPT_ROUNDS, TEST_SERVER_SALT, make_cipher


def pytest_configure(config):
    """Configure custom markers"""
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )


# ==================== Server ====================

@pytest.fixture
def server_config() -> KeeperServerConfig:
    return KeeperServerConfig(
        listen_host="127.0.0.1",
        listen_port=0,
        password_salt=TEST_SERVER_SALT,
        bcrypt_rounds=TEST_BCRYPT_ROUNDS,
        environment="testing",
    )


@pytest.fixture
def store() -> MockKeeperRepository:
    return MockKeeperRepository()


@pytest_asyncio.fixture
async def keeper_server(server_config, store):
    """Running server; yields the bound port"""
    gateway = create_keeper_gateway(server_config, store)
    server, port = await create_server(gateway, server_config)
    await server.start()
    yield port
    await server.stop(None)


# ==================== Clients ====================

@pytest.fixture
def client_key() -> bytes:
    return os.urandom(32)


@pytest_asyncio.fixture
async def keeper_client(keeper_server, client_key):
    """Client with field encryption connected to keeper_server"""
    config = KeeperClientConfig(server_host="127.0.0.1", server_port=keeper_server, rpc_timeout_s=5.0)
    async with KeeperServiceClient(config, cipher=make_cipher(client_key)) as client:
        yield client


@pytest_asyncio.fixture
async def other_key_client(keeper_server):
    """Client holding a different encryption key"""
    config = KeeperClientConfig(server_host="127.0.0.1", server_port=keeper_server, rpc_timeout_s=5.0)
    async with KeeperServiceClient(config, cipher=make_cipher()) as client:
        yield client
