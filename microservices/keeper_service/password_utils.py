"""
Password Utilities for Keeper Service

Salted password hashing using bcrypt with a per-user salt and a
server-wide secret applied as an HMAC pepper.
"""

import base64
import hashlib
import hmac
import logging

import bcrypt

logger = logging.getLogger(__name__)

# Bcrypt work factor (12 is a good balance of security and performance)
BCRYPT_ROUNDS = 12


class PasswordHasher:
    """
    Salted password hashing.

    hash = bcrypt(base64(HMAC-SHA256(server_salt, password)), user_salt)

    The HMAC step mixes in the server-wide secret and keeps the bcrypt input
    under its 72 byte limit regardless of password length. The result is
    deterministic for a given (password, user_salt, server_salt).
    """

    def __init__(self, server_salt: str, rounds: int = BCRYPT_ROUNDS):
        if not server_salt:
            raise ValueError("server_salt must not be empty")
        self._server_salt = server_salt.encode("utf-8")
        self.rounds = rounds

    def new_salt(self) -> str:
        """Generate a new per-user bcrypt salt"""
        return bcrypt.gensalt(rounds=self.rounds).decode("ascii")

    def _pepper(self, password: str) -> bytes:
        digest = hmac.new(self._server_salt, password.encode("utf-8"), hashlib.sha256).digest()
        return base64.b64encode(digest)

    def hash_password(self, password: str, salt: str) -> str:
        """
        Hash a password with the given per-user salt.

        Args:
            password: Plain text password
            salt: Salt produced by new_salt()

        Returns:
            Bcrypt hash string
        """
        hashed = bcrypt.hashpw(self._pepper(password), salt.encode("ascii"))
        return hashed.decode("ascii")

    def verify_password(self, password: str, salt: str, password_hash: str) -> bool:
        """
        Verify a password against a stored hash.

        Args:
            password: Plain text password to verify
            salt: Per-user salt stored with the hash
            password_hash: Stored hash to compare against

        Returns:
            True if password matches, False otherwise
        """
        candidate = self.hash_password(password, salt)
        return hmac.compare_digest(candidate.encode("ascii"), password_hash.encode("ascii"))
