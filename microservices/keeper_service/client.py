"""
Keeper Service Client

gRPC client for the keeper service. Protected item fields are encrypted
here before they leave the process and decrypted after a snapshot is
received; the server never sees their plaintext.
"""

import logging
from typing import Any, Dict, Optional, Type

import grpc

from core.config import KeeperClientConfig

from .encryption import (
    EncryptionError,
    FieldCipher,
    decrypt_snapshot,
    encrypt_card_item,
    encrypt_login_item,
)
from .protocols import (
    ArgumentError,
    IdentifierFormatError,
    InvalidCredentialsError,
    KeeperServiceError,
    StorageError,
    UserAlreadyExistsError,
    UserNotExistsError,
    UserNotFoundError,
)
from .wire import (
    METHODS,
    AddBankCardItemRequest,
    AddBinaryItemRequest,
    AddLoginItemRequest,
    AddTextItemRequest,
    BankCardItemMessage,
    BinaryItemMessage,
    ErrorCode,
    ErrorEnvelope,
    LogInRequest,
    LoginItemMessage,
    SignUpRequest,
    TextItemMessage,
    UpdateItemsRequest,
    UserSnapshot,
    WireMessage,
    decoder,
    encode,
    method_path,
)

logger = logging.getLogger(__name__)

ERROR_TYPES: Dict[ErrorCode, Type[KeeperServiceError]] = {
    ErrorCode.ARGUMENT: ArgumentError,
    ErrorCode.ALREADY_EXISTS: UserAlreadyExistsError,
    ErrorCode.NOT_EXISTS: UserNotExistsError,
    ErrorCode.INVALID_CREDENTIALS: InvalidCredentialsError,
    ErrorCode.NOT_FOUND: UserNotFoundError,
    ErrorCode.STORAGE: StorageError,
    ErrorCode.INVALID_IDENTIFIER: IdentifierFormatError,
}

CHANNEL_OPTIONS = [
    ('grpc.max_receive_message_length', 100 * 1024 * 1024),  # 100MB
    ('grpc.max_send_message_length', 100 * 1024 * 1024),     # 100MB
    ('grpc.keepalive_time_ms', 30000),                        # 30s between pings
    ('grpc.keepalive_timeout_ms', 10000),                     # 10s timeout for ping response
    ('grpc.http2.max_pings_without_data', 0),                 # Allow pings without data
    ('grpc.keepalive_permit_without_calls', 1),               # Allow keepalive when no calls
]


def raise_for_error(response: ErrorEnvelope) -> None:
    """Raise the typed exception matching a non-ok envelope"""
    if response.ok:
        return
    error_type = ERROR_TYPES.get(response.error_code, KeeperServiceError)
    raise error_type(response.error or response.error_code.value)


class KeeperServiceClient:
    """Keeper service gRPC client"""

    def __init__(
        self,
        config: Optional[KeeperClientConfig] = None,
        cipher: Optional[FieldCipher] = None,
        channel: Optional[grpc.aio.Channel] = None,
    ):
        """
        Initialize Keeper Service client

        Args:
            config: Client configuration, defaults to environment values
            cipher: Field cipher, built from config.encryption_key if omitted
            channel: Existing channel (the client then does not own it)
        """
        if config is None:
            config = KeeperClientConfig.from_env()
        self.config = config

        if cipher is None and config.encryption_key:
            cipher = FieldCipher(config.key_bytes())
        self.cipher = cipher

        self._owns_channel = channel is None
        if channel is None:
            logger.debug(f"Creating channel to {config.server_address}")
            channel = grpc.aio.insecure_channel(config.server_address, options=CHANNEL_OPTIONS)
        self.channel = channel

        self._calls = {
            name: channel.unary_unary(
                method_path(name),
                request_serializer=encode,
                response_deserializer=decoder(response_cls),
            )
            for name, (_, response_cls) in METHODS.items()
        }

    async def close(self):
        """Close the channel if this client created it"""
        if self._owns_channel:
            await self.channel.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    def _require_cipher(self) -> FieldCipher:
        if self.cipher is None:
            raise EncryptionError("Client encryption key is not configured")
        return self.cipher

    async def _call(self, method: str, request: WireMessage) -> Any:
        try:
            response = await self._calls[method](request, timeout=self.config.rpc_timeout_s)
        except grpc.aio.AioRpcError as e:
            logger.error(f"{method} failed: {e.code()} - {e.details()}")
            raise
        raise_for_error(response)
        return response

    # =============================================================================
    # Authentication
    # =============================================================================

    async def sign_up(self, login: str, password: str) -> str:
        """Register a new user, returns the user id"""
        response = await self._call("SignUp", SignUpRequest(login=login, password=password))
        return response.user_id

    async def log_in(self, login: str, password: str) -> str:
        """Log in an existing user, returns the user id"""
        response = await self._call("LogIn", LogInRequest(login=login, password=password))
        return response.user_id

    # =============================================================================
    # Vault
    # =============================================================================

    async def update_items(self, user_id: str) -> UserSnapshot:
        """
        Fetch the full item snapshot and decrypt protected fields.

        Raises:
            EncryptionError: A protected field could not be decrypted; no
                partial snapshot is returned
        """
        response = await self._call("UpdateItems", UpdateItemsRequest(user_id=user_id))
        snapshot = response.user or UserSnapshot()
        return decrypt_snapshot(snapshot, self._require_cipher())

    async def add_login_item(
        self,
        user_id: str,
        login: str,
        password: str,
        meta: Optional[Dict[str, str]] = None,
    ) -> None:
        """Store a login/password pair; the password is encrypted first"""
        item = LoginItemMessage(login=login, password=password.encode("utf-8"), meta=meta or {})
        item = encrypt_login_item(item, self._require_cipher())
        await self._call("AddLoginItem", AddLoginItemRequest(user_id=user_id, item=item))

    async def add_card_item(
        self,
        user_id: str,
        number: str,
        holder: str,
        expires: str,
        security_code: str,
        meta: Optional[Dict[str, str]] = None,
    ) -> None:
        """Store a bank card; the security code is encrypted first"""
        item = BankCardItemMessage(
            number=number,
            holder=holder,
            expires=expires,
            security_code=security_code.encode("utf-8"),
            meta=meta or {},
        )
        item = encrypt_card_item(item, self._require_cipher())
        await self._call("AddBankCardItem", AddBankCardItemRequest(user_id=user_id, item=item))

    async def add_text_item(self, user_id: str, value: str, meta: Optional[Dict[str, str]] = None) -> None:
        """Store a text value"""
        item = TextItemMessage(value=value, meta=meta or {})
        await self._call("AddTextItem", AddTextItemRequest(user_id=user_id, item=item))

    async def add_binary_item(self, user_id: str, value: bytes, meta: Optional[Dict[str, str]] = None) -> None:
        """Store binary data"""
        item = BinaryItemMessage(value=value, meta=meta or {})
        await self._call("AddBinaryItem", AddBinaryItemRequest(user_id=user_id, item=item))
