"""
Keeper Service

Business logic for user signup/login and vault item storage.
Calls are independent; no session state is kept between them.
"""

import asyncio
import logging
import uuid

from .models import User, VaultItem
from .protocols import (
    DuplicateEntryError,
    InvalidCredentialsError,
    KeeperRepositoryProtocol,
    PasswordHasherProtocol,
    UserAlreadyExistsError,
    UserNotExistsError,
    UserNotFoundError,
)

logger = logging.getLogger(__name__)


class KeeperService:
    """Credential and vault business logic"""

    def __init__(
        self,
        repository: KeeperRepositoryProtocol,
        password_hasher: PasswordHasherProtocol,
    ):
        """
        Initialize keeper service with injected dependencies

        Args:
            repository: Repository for user documents
            password_hasher: Salted password hashing
        """
        self.repository = repository
        self.password_hasher = password_hasher

        logger.info("KeeperService initialized with dependency injection")

    # ============ Authentication ============

    async def sign_up(self, login: str, password: str) -> str:
        """
        Register a new user.

        Returns:
            New user identifier

        Raises:
            UserAlreadyExistsError: Login is taken
            StorageError: Document store failure
        """
        logger.debug(f"Checking if user '{login}' already exists")
        try:
            await self.repository.get_user_by_login(login)
        except UserNotFoundError:
            pass
        else:
            logger.info(f"User with login '{login}' already exists")
            raise UserAlreadyExistsError("user already exists")

        # Hashing runs in a worker thread, off the event loop
        salt = self.password_hasher.new_salt()
        password_hash = await asyncio.to_thread(self.password_hasher.hash_password, password, salt)
        user = User(
            user_id=uuid.uuid4(),
            login=login,
            password_hash=password_hash,
            password_salt=salt,
        )

        try:
            await self.repository.create_user(user)
        except DuplicateEntryError:
            # Lost a concurrent signup race; the unique index rejected the write
            logger.info(f"User with login '{login}' was created concurrently")
            raise UserAlreadyExistsError("user already exists")

        logger.info(f"User '{login}' signed up with id {user.user_id}")
        return str(user.user_id)

    async def log_in(self, login: str, password: str) -> str:
        """
        Check credentials of an existing user.

        Returns:
            Stored user identifier

        Raises:
            UserNotExistsError: No user with this login
            InvalidCredentialsError: Credentials do not match
            StorageError: Document store failure
        """
        try:
            user = await self.repository.get_user_by_login(login)
        except UserNotFoundError:
            logger.info(f"User with login '{login}' doesn't exist in the system")
            raise UserNotExistsError("user doesn't exist")

        logger.debug(f"Checking credentials of user '{login}'")
        password_ok = await asyncio.to_thread(
            self.password_hasher.verify_password, password, user.password_salt, user.password_hash
        )
        if user.login != login or not password_ok:
            logger.info(f"Invalid credentials for user '{login}'")
            raise InvalidCredentialsError("login and/or password incorrect")

        logger.debug(f"Credentials of user '{login}' are correct")
        return str(user.user_id)

    # ============ Vault Items ============

    async def get_user(self, user_id: uuid.UUID) -> User:
        """Read the full user record including all items"""
        return await self.repository.get_user_by_id(user_id)

    async def add_item(self, user_id: uuid.UUID, item: VaultItem) -> None:
        """Append an item to the category it belongs to"""
        await self.repository.append_item(user_id, item.category, item)
        logger.debug(f"Added {item.category.value} item for user {user_id}")
