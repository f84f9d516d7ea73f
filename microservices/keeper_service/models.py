"""
Keeper Service Models

Data models for users and the four categories of vault items.
"""

import uuid
from enum import Enum
from typing import ClassVar, Dict, List, Union

from pydantic import BaseModel, Field


# ============ Enums ============

class ItemCategory(str, Enum):
    """Item categories; the value is the user document field holding the sequence"""
    LOGINS = "logins"
    CARDS = "cards"
    TEXTS = "texts"
    BINARIES = "binaries"


# ============ Vault Items ============

class LoginItem(BaseModel):
    """Login/password pair; password is ciphertext when sent by an encrypting client"""
    category: ClassVar[ItemCategory] = ItemCategory.LOGINS

    login: str
    password: bytes = b""
    meta: Dict[str, str] = Field(default_factory=dict)


class BankCardItem(BaseModel):
    """Bank card record; security_code is always opaque (encrypted) bytes"""
    category: ClassVar[ItemCategory] = ItemCategory.CARDS

    number: str
    holder: str = ""
    expires: str = ""
    security_code: bytes = b""
    meta: Dict[str, str] = Field(default_factory=dict)


class TextItem(BaseModel):
    """Arbitrary text"""
    category: ClassVar[ItemCategory] = ItemCategory.TEXTS

    value: str
    meta: Dict[str, str] = Field(default_factory=dict)


class BinaryItem(BaseModel):
    """Arbitrary binary data"""
    category: ClassVar[ItemCategory] = ItemCategory.BINARIES

    value: bytes
    meta: Dict[str, str] = Field(default_factory=dict)


VaultItem = Union[LoginItem, BankCardItem, TextItem, BinaryItem]


# ============ User ============

class User(BaseModel):
    """Vault owner with credentials and all stored items"""
    user_id: uuid.UUID
    login: str = Field(..., min_length=1)
    password_hash: str = Field(..., description="Salted password hash, never plaintext")
    password_salt: str = Field(..., description="Per-user salt stored alongside the hash")
    logins: List[LoginItem] = Field(default_factory=list)
    cards: List[BankCardItem] = Field(default_factory=list)
    texts: List[TextItem] = Field(default_factory=list)
    binaries: List[BinaryItem] = Field(default_factory=list)

    def items(self, category: ItemCategory) -> List[VaultItem]:
        """Return the item sequence stored for a category"""
        return getattr(self, category.value)


__all__ = [
    "ItemCategory",
    "LoginItem",
    "BankCardItem",
    "TextItem",
    "BinaryItem",
    "VaultItem",
    "User",
]
