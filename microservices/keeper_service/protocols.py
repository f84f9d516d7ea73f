"""
Keeper Service Protocols (Interfaces)

These interfaces define contracts for dependency injection.
NO import-time I/O dependencies - safe to import anywhere.
"""
import uuid
from typing import Protocol, runtime_checkable

# Import only models (no I/O dependencies)
from .models import ItemCategory, User, VaultItem


class KeeperServiceError(Exception):
    """Base exception for keeper service"""
    pass


class ArgumentError(KeeperServiceError):
    """Raised when a required request field is missing or empty"""
    pass


class UserAlreadyExistsError(KeeperServiceError):
    """Raised on signup with a login that already belongs to a user"""
    pass


class UserNotExistsError(KeeperServiceError):
    """Raised on login with an unknown login"""
    pass


class InvalidCredentialsError(KeeperServiceError):
    """Raised on login when the credentials do not match"""
    pass


class IdentifierFormatError(KeeperServiceError):
    """Raised when a user identifier string cannot be parsed"""
    pass


class UserNotFoundError(KeeperServiceError):
    """No user document matches the lookup key - defined here to avoid importing repository"""
    pass


class DuplicateEntryError(KeeperServiceError):
    """Unique index violation - defined here to avoid importing repository"""
    pass


class StorageError(KeeperServiceError):
    """Any other fault talking to the document store"""
    pass


@runtime_checkable
class KeeperRepositoryProtocol(Protocol):
    """
    Interface for Keeper Repository.

    Implementations must provide these methods.
    Used for dependency injection to enable testing.
    """

    async def initialize(self) -> None:
        """Prepare the store (indexes)"""
        ...

    async def create_user(self, user: User) -> None:
        """Persist a new user document"""
        ...

    async def get_user_by_login(self, login: str) -> User:
        """Get user by exact login, raises UserNotFoundError"""
        ...

    async def get_user_by_id(self, user_id: uuid.UUID) -> User:
        """Get user by identifier, raises UserNotFoundError"""
        ...

    async def append_item(self, user_id: uuid.UUID, category: ItemCategory, item: VaultItem) -> None:
        """Append one item to a category sequence, raises UserNotFoundError"""
        ...

    async def close(self) -> None:
        """Release the store connection"""
        ...


@runtime_checkable
class PasswordHasherProtocol(Protocol):
    """Interface for password hashing - no I/O imports"""

    def new_salt(self) -> str:
        """Generate a per-user salt"""
        ...

    def hash_password(self, password: str, salt: str) -> str:
        """Deterministic salted hash of a password"""
        ...

    def verify_password(self, password: str, salt: str, password_hash: str) -> bool:
        """Constant-time comparison against a stored hash"""
        ...


__all__ = [
    "KeeperServiceError",
    "ArgumentError",
    "UserAlreadyExistsError",
    "UserNotExistsError",
    "InvalidCredentialsError",
    "IdentifierFormatError",
    "UserNotFoundError",
    "DuplicateEntryError",
    "StorageError",
    "KeeperRepositoryProtocol",
    "PasswordHasherProtocol",
]
