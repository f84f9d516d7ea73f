"""
Common/Shared Fixtures

Base factories and generators used across all test layers.
"""
import uuid
from typing import Optional


def make_user_id() -> uuid.UUID:
    """Generate a unique user ID"""
    return uuid.uuid4()


def make_login(prefix: Optional[str] = None) -> str:
    """Generate a unique login"""
    prefix = prefix or "user"
    return f"{prefix}_test_{uuid.uuid4().hex[:8]}"


def make_password() -> str:
    """Generate a random password"""
    return f"pw-{uuid.uuid4().hex[:16]}"
