"""
Keeper Repository

Data access layer for user documents stored in MongoDB.
One document per user holds the credentials and all four item sequences.
"""

import logging
import uuid
from typing import Any, Dict, Optional

from pydantic import ValidationError
from pymongo import ASCENDING, AsyncMongoClient
from pymongo.errors import DuplicateKeyError, PyMongoError

from core.config import InfraConfig

from .models import (
    BankCardItem,
    BinaryItem,
    ItemCategory,
    LoginItem,
    TextItem,
    User,
    VaultItem,
)
from .protocols import DuplicateEntryError, StorageError, UserNotFoundError

logger = logging.getLogger(__name__)


# ============ Document Mapping ============

def item_to_document(item: VaultItem) -> Dict[str, Any]:
    """Convert an item model to its stored sub-document"""
    if isinstance(item, LoginItem):
        return {"login": item.login, "password": item.password, "meta": dict(item.meta)}
    if isinstance(item, BankCardItem):
        return {
            "number": item.number,
            "holder": item.holder,
            "expires": item.expires,
            "csc": item.security_code,
            "meta": dict(item.meta),
        }
    if isinstance(item, TextItem):
        return {"value": item.value, "meta": dict(item.meta)}
    if isinstance(item, BinaryItem):
        return {"value": item.value, "meta": dict(item.meta)}
    raise TypeError(f"Unsupported item type: {type(item).__name__}")


def document_to_item(category: ItemCategory, doc: Dict[str, Any]) -> VaultItem:
    """Convert a stored sub-document back to an item model"""
    meta = doc.get("meta") or {}
    if category is ItemCategory.LOGINS:
        return LoginItem(login=doc["login"], password=bytes(doc.get("password") or b""), meta=meta)
    if category is ItemCategory.CARDS:
        return BankCardItem(
            number=doc["number"],
            holder=doc.get("holder", ""),
            expires=doc.get("expires", ""),
            security_code=bytes(doc.get("csc") or b""),
            meta=meta,
        )
    if category is ItemCategory.TEXTS:
        return TextItem(value=doc["value"], meta=meta)
    return BinaryItem(value=bytes(doc["value"]), meta=meta)


def user_to_document(user: User) -> Dict[str, Any]:
    """Convert a user model to its stored document"""
    doc: Dict[str, Any] = {
        "id": str(user.user_id),
        "login": user.login,
        "password": user.password_hash,
        "salt": user.password_salt,
    }
    for category in ItemCategory:
        doc[category.value] = [item_to_document(item) for item in user.items(category)]
    return doc


def document_to_user(doc: Dict[str, Any]) -> User:
    """Convert a stored document to a user model"""
    items = {
        category.value: [document_to_item(category, d) for d in (doc.get(category.value) or [])]
        for category in ItemCategory
    }
    return User(
        user_id=uuid.UUID(str(doc["id"])),
        login=doc["login"],
        password_hash=doc["password"],
        password_salt=doc.get("salt", ""),
        **items,
    )


class KeeperRepository:
    """Repository for user documents using the asyncio MongoDB client"""

    def __init__(self, config: Optional[InfraConfig] = None, client: Optional[AsyncMongoClient] = None):
        if config is None:
            config = InfraConfig.from_env()

        if client is None:
            logger.info(f"Connecting to MongoDB at {config.mongo_uri}")
            client = AsyncMongoClient(
                config.mongo_uri,
                serverSelectionTimeoutMS=config.mongo_timeout_ms,
            )

        self.client = client
        self.db_name = config.mongo_db
        self.users = client[config.mongo_db][config.mongo_users_collection]

    async def initialize(self) -> None:
        """Create unique indexes on login and id"""
        try:
            await self.users.create_index([("login", ASCENDING)], unique=True, name="login_unique")
            await self.users.create_index([("id", ASCENDING)], unique=True, name="id_unique")
            logger.info(f"User indexes ensured in database '{self.db_name}'")
        except PyMongoError as e:
            logger.error(f"Error creating user indexes: {e}")
            raise StorageError(f"unable to create user indexes: {e}") from e

    async def close(self) -> None:
        """Close the MongoDB client"""
        await self.client.close()
        logger.info("MongoDB connection closed")

    # ============ User Operations ============

    async def create_user(self, user: User) -> None:
        """Insert a new user document"""
        doc = user_to_document(user)
        try:
            result = await self.users.insert_one(doc)
        except DuplicateKeyError as e:
            logger.info(f"User '{user.login}' already exists in the database")
            raise DuplicateEntryError(f"user with login '{user.login}' already exists") from e
        except PyMongoError as e:
            logger.error(f"Error inserting user '{user.login}': {e}")
            raise StorageError(f"unable to insert user: {e}") from e

        logger.debug(f"User '{user.login}' inserted with {result.inserted_id}")

    async def get_user_by_login(self, login: str) -> User:
        """Find a user by exact login"""
        return await self._find_one({"login": login}, login)

    async def get_user_by_id(self, user_id: uuid.UUID) -> User:
        """Find a user by identifier"""
        return await self._find_one({"id": str(user_id)}, str(user_id))

    async def _find_one(self, query: Dict[str, Any], key: str) -> User:
        try:
            doc = await self.users.find_one(query)
        except PyMongoError as e:
            logger.error(f"Error reading user '{key}': {e}")
            raise StorageError(f"unable to read user: {e}") from e

        if doc is None:
            logger.debug(f"No user '{key}' in the database")
            raise UserNotFoundError("there is no such user in the database")

        try:
            return document_to_user(doc)
        except (KeyError, ValueError, ValidationError) as e:
            logger.error(f"Error decoding user document '{key}': {e}")
            raise StorageError(f"unable to decode user document: {e}") from e

    # ============ Item Operations ============

    async def append_item(self, user_id: uuid.UUID, category: ItemCategory, item: VaultItem) -> None:
        """Push one item onto a category sequence of the user document"""
        key = str(user_id)
        update = {"$push": {category.value: item_to_document(item)}}
        try:
            result = await self.users.update_one({"id": key}, update)
        except PyMongoError as e:
            logger.error(f"Error appending {category.value} item for user {key}: {e}")
            raise StorageError(f"unable to append item: {e}") from e

        if result.matched_count == 0:
            logger.debug(f"No user {key} to append {category.value} item to")
            raise UserNotFoundError("there is no such user in the database")

        logger.debug(
            f"User {key}: matched {result.matched_count} docs, modified {result.modified_count} docs"
        )
