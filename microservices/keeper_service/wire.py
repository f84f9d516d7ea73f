"""
Keeper Wire Messages

Request/response messages of the ``keeper.Keeper`` gRPC service and the
codec used on the channel. Messages are pydantic models carried as JSON;
bytes fields travel base64 encoded. Like protobuf messages every field has
an empty default, so presence checks belong to the gateway.
"""

from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field

SERVICE_NAME = "keeper.Keeper"


class ErrorCode(str, Enum):
    """Machine-readable error signal carried in every response"""
    OK = "ok"
    ARGUMENT = "argument_error"
    ALREADY_EXISTS = "already_exists"
    NOT_EXISTS = "not_exists"
    INVALID_CREDENTIALS = "invalid_credentials"
    NOT_FOUND = "not_found"
    STORAGE = "storage_error"
    INVALID_IDENTIFIER = "invalid_identifier"
    INTERNAL = "internal_error"


class WireMessage(BaseModel):
    """Base for all messages sent over the channel"""
    model_config = ConfigDict(ser_json_bytes="base64", val_json_bytes="base64")


# ============ Items ============

class LoginItemMessage(WireMessage):
    login: str = ""
    password: bytes = b""
    meta: Dict[str, str] = Field(default_factory=dict)


class BankCardItemMessage(WireMessage):
    number: str = ""
    holder: str = ""
    expires: str = ""
    security_code: bytes = b""
    meta: Dict[str, str] = Field(default_factory=dict)


class TextItemMessage(WireMessage):
    value: str = ""
    meta: Dict[str, str] = Field(default_factory=dict)


class BinaryItemMessage(WireMessage):
    value: bytes = b""
    meta: Dict[str, str] = Field(default_factory=dict)


class UserSnapshot(WireMessage):
    """Full set of a user's items returned by UpdateItems"""
    login: str = ""
    logins: List[LoginItemMessage] = Field(default_factory=list)
    cards: List[BankCardItemMessage] = Field(default_factory=list)
    texts: List[TextItemMessage] = Field(default_factory=list)
    binaries: List[BinaryItemMessage] = Field(default_factory=list)


# ============ Responses ============

class ErrorEnvelope(WireMessage):
    """Common error fields; error is empty and error_code is OK on success"""
    error: str = ""
    error_code: ErrorCode = ErrorCode.OK

    @property
    def ok(self) -> bool:
        return self.error_code is ErrorCode.OK


class SignUpResponse(ErrorEnvelope):
    user_id: str = ""


class LogInResponse(ErrorEnvelope):
    user_id: str = ""


class UpdateItemsResponse(ErrorEnvelope):
    user: Optional[UserSnapshot] = None


class AddItemResponse(ErrorEnvelope):
    pass


# ============ Requests ============

class SignUpRequest(WireMessage):
    login: str = ""
    password: str = ""


class LogInRequest(WireMessage):
    login: str = ""
    password: str = ""


class UpdateItemsRequest(WireMessage):
    user_id: str = ""


class AddLoginItemRequest(WireMessage):
    user_id: str = ""
    item: Optional[LoginItemMessage] = None


class AddBankCardItemRequest(WireMessage):
    user_id: str = ""
    item: Optional[BankCardItemMessage] = None


class AddTextItemRequest(WireMessage):
    user_id: str = ""
    item: Optional[TextItemMessage] = None


class AddBinaryItemRequest(WireMessage):
    user_id: str = ""
    item: Optional[BinaryItemMessage] = None


# ============ Codec ============

M = TypeVar("M", bound=WireMessage)


def encode(message: WireMessage) -> bytes:
    """Serialize a message for the channel"""
    return message.model_dump_json().encode("utf-8")


def decoder(message_cls: Type[M]) -> Callable[[bytes], M]:
    """Build a deserializer for one message type"""
    def decode(data: bytes) -> M:
        return message_cls.model_validate_json(data)
    return decode


# method name -> (request type, response type)
METHODS: Dict[str, Tuple[Type[WireMessage], Type[ErrorEnvelope]]] = {
    "SignUp": (SignUpRequest, SignUpResponse),
    "LogIn": (LogInRequest, LogInResponse),
    "UpdateItems": (UpdateItemsRequest, UpdateItemsResponse),
    "AddLoginItem": (AddLoginItemRequest, AddItemResponse),
    "AddBankCardItem": (AddBankCardItemRequest, AddItemResponse),
    "AddTextItem": (AddTextItemRequest, AddItemResponse),
    "AddBinaryItem": (AddBinaryItemRequest, AddItemResponse),
}


def method_path(name: str) -> str:
    """Full gRPC method path, e.g. /keeper.Keeper/SignUp"""
    return f"/{SERVICE_NAME}/{name}"
