"""
Component Test Layer Configuration

Structure:
    tests/component/
    └── golden/keeper_service/
        ├── mocks.py          In-memory repository
        └── test_*.py         Service, gateway, repository, client

Usage:
    pytest tests/component -v
"""
import os
import sys

import pytest

# Set testing environment BEFORE any imports
os.environ["ENV"] = "testing"
os.environ["ENVIRONMENT"] = "testing"

# Add project root
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from tests.component.golden.keeper_service.mocks import MockKeeperRepository
from tests.fixtures import make_hasher


# =============================================================================
# Pytest Configuration
# =============================================================================

def pytest_configure(config):
    """Configure custom markers"""
    config.addinivalue_line(
        "markers", "component: marks tests as component tests"
    )
    config.addinivalue_line(
        "markers", "golden: safety net tests - DO NOT MODIFY"
    )


# =============================================================================
# Keeper Service Mocks
# =============================================================================

@pytest.fixture
def mock_repo() -> MockKeeperRepository:
    """Create a fresh MockKeeperRepository"""
    return MockKeeperRepository()


@pytest.fixture
def keeper_service(mock_repo):
    """KeeperService wired to the mock repository"""
    from microservices.keeper_service.keeper_service import KeeperService

    return KeeperService(repository=mock_repo, password_hasher=make_hasher())


@pytest.fixture
def gateway(keeper_service):
    """KeeperGateway on top of the mocked KeeperService"""
    from microservices.keeper_service.grpc_gateway import KeeperGateway

    return KeeperGateway(keeper_service)
