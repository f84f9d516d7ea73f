"""
Encryption Utilities for Keeper Client

Field-level AES-GCM encryption applied on the client before items are sent
and after the snapshot is received. The server only ever sees ciphertext
for the protected fields.

Sealed field layout: nonce (12 bytes) || ciphertext || tag (16 bytes).
A fresh random nonce is generated for every encryption.
"""

import base64
import binascii
import logging
import os
from typing import Optional

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from .wire import BankCardItemMessage, LoginItemMessage, UserSnapshot

logger = logging.getLogger(__name__)

NONCE_SIZE = 12
TAG_SIZE = 16

# Associated data binding a ciphertext to the field it was produced for
LOGIN_PASSWORD_AD = b"logins.password"
CARD_SECURITY_CODE_AD = b"cards.security_code"


class EncryptionError(Exception):
    """Base exception for encryption errors"""
    pass


def generate_key(bit_length: int = 256) -> str:
    """Generate a new AES key, url-safe base64 encoded"""
    return base64.urlsafe_b64encode(AESGCM.generate_key(bit_length=bit_length)).decode()


def load_key(encoded: str) -> bytes:
    """Decode a url-safe base64 AES key"""
    try:
        key = base64.urlsafe_b64decode(encoded.encode())
    except (binascii.Error, ValueError) as e:
        raise EncryptionError(f"Invalid key encoding: {e}")
    if len(key) not in (16, 24, 32):
        raise EncryptionError(f"Invalid key length: {len(key)} bytes")
    return key


class FieldCipher:
    """Authenticated encryption of single field values"""

    def __init__(self, key: bytes):
        """
        Args:
            key: Raw AES key (16, 24 or 32 bytes)
        """
        try:
            self._aesgcm = AESGCM(key)
        except (TypeError, ValueError) as e:
            raise EncryptionError(f"Invalid encryption key: {e}")

    @classmethod
    def from_encoded_key(cls, encoded: str) -> 'FieldCipher':
        return cls(load_key(encoded))

    def encrypt(self, data: bytes, associated_data: Optional[bytes] = None) -> bytes:
        """
        Encrypt a value.

        Args:
            data: Plaintext bytes of any length
            associated_data: Authenticated but unencrypted context

        Returns:
            nonce || ciphertext || tag
        """
        nonce = os.urandom(NONCE_SIZE)
        return nonce + self._aesgcm.encrypt(nonce, data, associated_data)

    def decrypt(self, sealed: bytes, associated_data: Optional[bytes] = None) -> bytes:
        """
        Decrypt a value produced by encrypt().

        Raises:
            EncryptionError: Truncated input, wrong key, wrong associated
                data or tampered ciphertext
        """
        if len(sealed) < NONCE_SIZE + TAG_SIZE:
            raise EncryptionError("Ciphertext is too short")
        nonce, ciphertext = sealed[:NONCE_SIZE], sealed[NONCE_SIZE:]
        try:
            return self._aesgcm.decrypt(nonce, ciphertext, associated_data)
        except InvalidTag:
            raise EncryptionError("Ciphertext authentication failed")

    def encrypt_text(self, text: str, associated_data: Optional[bytes] = None) -> bytes:
        return self.encrypt(text.encode("utf-8"), associated_data)

    def decrypt_text(self, sealed: bytes, associated_data: Optional[bytes] = None) -> str:
        try:
            return self.decrypt(sealed, associated_data).decode("utf-8")
        except UnicodeDecodeError as e:
            raise EncryptionError(f"Decrypted value is not valid UTF-8: {e}")


# Helper functions for the protected item fields

def encrypt_login_item(item: LoginItemMessage, cipher: FieldCipher) -> LoginItemMessage:
    """Return a copy of the item with its password sealed"""
    return item.model_copy(update={"password": cipher.encrypt(item.password, LOGIN_PASSWORD_AD)})


def encrypt_card_item(item: BankCardItemMessage, cipher: FieldCipher) -> BankCardItemMessage:
    """Return a copy of the item with its security code sealed"""
    return item.model_copy(
        update={"security_code": cipher.encrypt(item.security_code, CARD_SECURITY_CODE_AD)}
    )


def decrypt_snapshot(snapshot: UserSnapshot, cipher: FieldCipher) -> UserSnapshot:
    """
    Return a copy of the snapshot with all protected fields opened.

    Raises EncryptionError if any field fails; no partially decrypted
    snapshot is ever returned.
    """
    logins = [
        item.model_copy(update={"password": cipher.decrypt(item.password, LOGIN_PASSWORD_AD)})
        for item in snapshot.logins
    ]
    cards = [
        item.model_copy(
            update={"security_code": cipher.decrypt(item.security_code, CARD_SECURITY_CODE_AD)}
        )
        for item in snapshot.cards
    ]
    logger.debug(f"Decrypted {len(logins)} login and {len(cards)} card items")
    return snapshot.model_copy(update={"logins": logins, "cards": cards})
