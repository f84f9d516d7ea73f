"""
Root conftest.py - Global fixtures and configuration for all test layers.

Test Layers:
    - integration/: Client and server over a real gRPC channel (in-memory store)
    - component/  : Component tests (mocked dependencies)
    - unit/       : Unit tests (pure functions, no I/O)
"""
import os
import sys

import pytest

# Set testing environment BEFORE any imports
os.environ["ENV"] = "testing"
os.environ["ENVIRONMENT"] = "testing"

# Add project root to path
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, PROJECT_ROOT)

# Import shared fixtures from tests/fixtures
from tests.fixtures import (
    make_cipher,
    make_hasher,
    make_login,
    make_password,
)


# =============================================================================
# Shared Fixtures
# =============================================================================

@pytest.fixture
def password_hasher():
    """Fast PasswordHasher with the test server salt"""
    return make_hasher()


@pytest.fixture
def field_cipher():
    """FieldCipher with a fresh random key"""
    return make_cipher()


@pytest.fixture
def credentials():
    """Unique (login, password) pair"""
    return make_login(), make_password()
