"""
Shared Test Fixtures

Centralized factories used across all test layers.

Structure:
    - common.py: Base ID, login and password generators
    - keeper_fixtures.py: Keeper service factories
"""

# Common utilities
from .common import (
    make_login,
    make_password,
    make_user_id,
)

# Keeper fixtures
from .keeper_fixtures import (
    TEST_BCRYPT_ROUNDS,
    TEST_SERVER_SALT,
    make_binary_item,
    make_card_item,
    make_cipher,
    make_hasher,
    make_login_item,
    make_text_item,
    make_user,
)

__all__ = [
    "make_login",
    "make_password",
    "make_user_id",
    "TEST_BCRYPT_ROUNDS",
    "TEST_SERVER_SALT",
    "make_binary_item",
    "make_card_item",
    "make_cipher",
    "make_hasher",
    "make_login_item",
    "make_text_item",
    "make_user",
]
