"""
Keeper gRPC Gateway

Validates inbound requests, translates between wire messages and internal
models, calls the service and maps failures onto the response envelope.
Every handler returns its envelope, also on failure; the transport status
stays OK so that error and error_code always reach the caller.
"""

import asyncio
import logging
import uuid
from typing import Dict, List, Optional, Type, TypeVar

import grpc

from .keeper_service import KeeperService
from .models import BankCardItem, BinaryItem, LoginItem, TextItem, User
from .protocols import (
    ArgumentError,
    DuplicateEntryError,
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
    SERVICE_NAME,
    AddBankCardItemRequest,
    AddBinaryItemRequest,
    AddItemResponse,
    AddLoginItemRequest,
    AddTextItemRequest,
    BankCardItemMessage,
    BinaryItemMessage,
    ErrorCode,
    ErrorEnvelope,
    LogInRequest,
    LogInResponse,
    LoginItemMessage,
    SignUpRequest,
    SignUpResponse,
    TextItemMessage,
    UpdateItemsRequest,
    UpdateItemsResponse,
    UserSnapshot,
    decoder,
    encode,
)

logger = logging.getLogger(__name__)

R = TypeVar("R", bound=ErrorEnvelope)

# Most specific first
ERROR_CODES: Dict[Type[KeeperServiceError], ErrorCode] = {
    ArgumentError: ErrorCode.ARGUMENT,
    IdentifierFormatError: ErrorCode.INVALID_IDENTIFIER,
    UserAlreadyExistsError: ErrorCode.ALREADY_EXISTS,
    DuplicateEntryError: ErrorCode.ALREADY_EXISTS,
    UserNotExistsError: ErrorCode.NOT_EXISTS,
    InvalidCredentialsError: ErrorCode.INVALID_CREDENTIALS,
    UserNotFoundError: ErrorCode.NOT_FOUND,
    StorageError: ErrorCode.STORAGE,
}

# Raised by the gateway itself rather than a lower layer
GATEWAY_ERRORS = (ArgumentError, IdentifierFormatError)


def error_code_for(error: KeeperServiceError) -> ErrorCode:
    for error_type, code in ERROR_CODES.items():
        if isinstance(error, error_type):
            return code
    return ErrorCode.INTERNAL


def parse_user_id(raw: str) -> uuid.UUID:
    """Parse a user identifier string"""
    try:
        return uuid.UUID(raw)
    except (ValueError, TypeError, AttributeError):
        raise IdentifierFormatError(f'invalid identifier "{raw}"')


def require(**fields: str) -> None:
    """Raise ArgumentError for the first empty field"""
    for name, value in fields.items():
        if not value:
            raise ArgumentError(f"argument can't be empty: {name}")


# ============ Wire <-> Model Transforms ============

def login_items_to_wire(items: List[LoginItem]) -> List[LoginItemMessage]:
    return [LoginItemMessage(login=i.login, password=i.password, meta=i.meta) for i in items]


def card_items_to_wire(items: List[BankCardItem]) -> List[BankCardItemMessage]:
    return [
        BankCardItemMessage(
            number=i.number,
            holder=i.holder,
            expires=i.expires,
            security_code=i.security_code,
            meta=i.meta,
        )
        for i in items
    ]


def text_items_to_wire(items: List[TextItem]) -> List[TextItemMessage]:
    return [TextItemMessage(value=i.value, meta=i.meta) for i in items]


def binary_items_to_wire(items: List[BinaryItem]) -> List[BinaryItemMessage]:
    return [BinaryItemMessage(value=i.value, meta=i.meta) for i in items]


async def build_snapshot(user: User) -> UserSnapshot:
    """
    Convert all four item sequences to wire messages concurrently.

    The transforms share no state; the only synchronization is the join.
    Cancelling the caller cancels all four awaits.
    """
    logins, cards, texts, binaries = await asyncio.gather(
        asyncio.to_thread(login_items_to_wire, user.logins),
        asyncio.to_thread(card_items_to_wire, user.cards),
        asyncio.to_thread(text_items_to_wire, user.texts),
        asyncio.to_thread(binary_items_to_wire, user.binaries),
    )
    return UserSnapshot(login=user.login, logins=logins, cards=cards, texts=texts, binaries=binaries)


class KeeperGateway:
    """gRPC handlers of the keeper.Keeper service"""

    def __init__(self, service: KeeperService):
        self.service = service
        logger.info("gRPC gateway initialized")

    def generic_handler(self) -> grpc.GenericRpcHandler:
        """Bind every method in METHODS to its handler coroutine"""
        handlers = {
            "SignUp": self.sign_up,
            "LogIn": self.log_in,
            "UpdateItems": self.update_items,
            "AddLoginItem": self.add_login_item,
            "AddBankCardItem": self.add_bank_card_item,
            "AddTextItem": self.add_text_item,
            "AddBinaryItem": self.add_binary_item,
        }
        rpc_handlers = {
            name: grpc.unary_unary_rpc_method_handler(
                handlers[name],
                request_deserializer=decoder(request_cls),
                response_serializer=encode,
            )
            for name, (request_cls, _) in METHODS.items()
        }
        return grpc.method_handlers_generic_handler(SERVICE_NAME, rpc_handlers)

    def _fail(self, response: R, error: Exception, action: str) -> R:
        """Populate the error fields of an envelope"""
        if isinstance(error, KeeperServiceError):
            response.error_code = error_code_for(error)
            response.error = str(error)
            if isinstance(error, GATEWAY_ERRORS):
                logger.warning(f"{action}: {error}")
            else:
                logger.debug(f"{action}: {response.error_code.value}: {error}")
        else:
            logger.error(f"{action}: unexpected error: {error}", exc_info=True)
            response.error_code = ErrorCode.INTERNAL
            response.error = "internal server error"
        return response

    # ============ Authentication ============

    async def sign_up(self, request: SignUpRequest, context: Optional[grpc.aio.ServicerContext] = None) -> SignUpResponse:
        logger.info(f"Received sign up request for user '{request.login}'")
        response = SignUpResponse()
        try:
            require(login=request.login, password=request.password)
            response.user_id = await self.service.sign_up(request.login, request.password)
        except Exception as e:
            return self._fail(response, e, "unable to sign user up")

        logger.info(f"User '{request.login}' was successfully signed up")
        return response

    async def log_in(self, request: LogInRequest, context: Optional[grpc.aio.ServicerContext] = None) -> LogInResponse:
        logger.info(f"Received login request for user '{request.login}'")
        response = LogInResponse()
        try:
            require(login=request.login, password=request.password)
            response.user_id = await self.service.log_in(request.login, request.password)
        except Exception as e:
            return self._fail(response, e, "unable to log user in")

        logger.info(f"User '{request.login}' was successfully logged in")
        return response

    # ============ Snapshot ============

    async def update_items(self, request: UpdateItemsRequest, context: Optional[grpc.aio.ServicerContext] = None) -> UpdateItemsResponse:
        logger.info(f"Received update request for user {request.user_id}")
        response = UpdateItemsResponse()
        try:
            user_id = parse_user_id(request.user_id)
            user = await self.service.get_user(user_id)
            response.user = await build_snapshot(user)
        except Exception as e:
            return self._fail(response, e, "unable to update items")

        logger.info(f"Items of user {request.user_id} were sent")
        return response

    # ============ Item Appends ============

    async def add_login_item(self, request: AddLoginItemRequest, context: Optional[grpc.aio.ServicerContext] = None) -> AddItemResponse:
        logger.info(f"Received new login item for user {request.user_id}")
        response = AddItemResponse()
        try:
            user_id = parse_user_id(request.user_id)
            if request.item is None:
                raise ArgumentError("argument can't be empty: item")
            item = LoginItem(login=request.item.login, password=request.item.password, meta=request.item.meta)
            await self.service.add_item(user_id, item)
        except Exception as e:
            return self._fail(response, e, "unable to add login item")

        logger.info(f"Login item was successfully added for user {request.user_id}")
        return response

    async def add_bank_card_item(self, request: AddBankCardItemRequest, context: Optional[grpc.aio.ServicerContext] = None) -> AddItemResponse:
        logger.info(f"Received new bank card item for user {request.user_id}")
        response = AddItemResponse()
        try:
            user_id = parse_user_id(request.user_id)
            if request.item is None:
                raise ArgumentError("argument can't be empty: item")
            item = BankCardItem(
                number=request.item.number,
                holder=request.item.holder,
                expires=request.item.expires,
                security_code=request.item.security_code,
                meta=request.item.meta,
            )
            await self.service.add_item(user_id, item)
        except Exception as e:
            return self._fail(response, e, "unable to add bank card item")

        logger.info(f"Bank card item was successfully added for user {request.user_id}")
        return response

    async def add_text_item(self, request: AddTextItemRequest, context: Optional[grpc.aio.ServicerContext] = None) -> AddItemResponse:
        logger.info(f"Received new text item for user {request.user_id}")
        response = AddItemResponse()
        try:
            user_id = parse_user_id(request.user_id)
            if request.item is None:
                raise ArgumentError("argument can't be empty: item")
            item = TextItem(value=request.item.value, meta=request.item.meta)
            await self.service.add_item(user_id, item)
        except Exception as e:
            return self._fail(response, e, "unable to add text item")

        logger.info(f"Text item was successfully added for user {request.user_id}")
        return response

    async def add_binary_item(self, request: AddBinaryItemRequest, context: Optional[grpc.aio.ServicerContext] = None) -> AddItemResponse:
        logger.info(f"Received new binary item for user {request.user_id}")
        response = AddItemResponse()
        try:
            user_id = parse_user_id(request.user_id)
            if request.item is None:
                raise ArgumentError("argument can't be empty: item")
            item = BinaryItem(value=request.item.value, meta=request.item.meta)
            await self.service.add_item(user_id, item)
        except Exception as e:
            return self._fail(response, e, "unable to add binary item")

        logger.info(f"Binary item was successfully added for user {request.user_id}")
        return response
