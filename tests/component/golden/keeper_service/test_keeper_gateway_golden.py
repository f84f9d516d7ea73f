"""
Keeper gRPC Gateway Component Golden Tests

Handlers are called directly with wire messages; the service below them
runs against the in-memory repository.

Usage:
    pytest tests/component/golden -v
"""
import asyncio
import threading
import uuid

import pytest

from microservices.keeper_service import grpc_gateway
from microservices.keeper_service.grpc_gateway import (
    build_snapshot,
    error_code_for,
    parse_user_id,
)
from microservices.keeper_service.models import ItemCategory
from microservices.keeper_service.protocols import (
    DuplicateEntryError,
    IdentifierFormatError,
    KeeperServiceError,
    StorageError,
    UserNotFoundError,
)
from microservices.keeper_service.wire import (
    AddBankCardItemRequest,
    AddBinaryItemRequest,
    AddLoginItemRequest,
    AddTextItemRequest,
    BankCardItemMessage,
    BinaryItemMessage,
    ErrorCode,
    LogInRequest,
    LoginItemMessage,
    SignUpRequest,
    TextItemMessage,
    UpdateItemsRequest,
)
from tests.fixtures import (
    make_binary_item,
    make_card_item,
    make_login_item,
    make_text_item,
    make_user,
)

pytestmark = [pytest.mark.component, pytest.mark.golden]


async def signed_up(gateway, login: str = "alice", password: str = "pw1") -> str:
    response = await gateway.sign_up(SignUpRequest(login=login, password=password))
    assert response.ok, response.error
    return response.user_id


# =============================================================================
# SignUp / LogIn
# =============================================================================

@pytest.mark.asyncio
class TestGatewayAuthGolden:
    """Golden: SignUp and LogIn handlers"""

    async def test_sign_up_returns_user_id(self, gateway):
        """GOLDEN: successful signup carries a parseable id and empty error"""
        response = await gateway.sign_up(SignUpRequest(login="alice", password="pw1"))

        assert response.error_code is ErrorCode.OK
        assert response.error == ""
        uuid.UUID(response.user_id)

    @pytest.mark.parametrize("login,password,missing", [
        ("", "pw1", "login"),
        ("alice", "", "password"),
        ("", "", "login"),
    ])
    async def test_sign_up_empty_fields_rejected(self, gateway, mock_repo, login, password, missing):
        """GOLDEN: empty login/password is an argument error before any lookup"""
        response = await gateway.sign_up(SignUpRequest(login=login, password=password))

        assert response.error_code is ErrorCode.ARGUMENT
        assert response.error == f"argument can't be empty: {missing}"
        assert response.user_id == ""
        mock_repo.assert_not_called("get_user_by_login")

    async def test_sign_up_duplicate_login(self, gateway):
        """GOLDEN: duplicate signup maps to ALREADY_EXISTS"""
        await signed_up(gateway)

        response = await gateway.sign_up(SignUpRequest(login="alice", password="pw2"))

        assert response.error_code is ErrorCode.ALREADY_EXISTS
        assert response.error == "user already exists"
        assert response.user_id == ""

    async def test_log_in_returns_signup_id(self, gateway):
        user_id = await signed_up(gateway)

        response = await gateway.log_in(LogInRequest(login="alice", password="pw1"))

        assert response.ok
        assert response.user_id == user_id

    async def test_log_in_empty_password_rejected(self, gateway, mock_repo):
        response = await gateway.log_in(LogInRequest(login="alice"))

        assert response.error_code is ErrorCode.ARGUMENT
        assert response.error == "argument can't be empty: password"
        mock_repo.assert_not_called("get_user_by_login")

    async def test_log_in_unknown_user(self, gateway):
        """GOLDEN: unknown login maps to NOT_EXISTS"""
        response = await gateway.log_in(LogInRequest(login="nobody", password="pw"))

        assert response.error_code is ErrorCode.NOT_EXISTS
        assert response.error == "user doesn't exist"

    async def test_log_in_wrong_password(self, gateway):
        """GOLDEN: wrong password maps to INVALID_CREDENTIALS"""
        await signed_up(gateway)

        response = await gateway.log_in(LogInRequest(login="alice", password="wrong"))

        assert response.error_code is ErrorCode.INVALID_CREDENTIALS
        assert response.error == "login and/or password incorrect"
        assert response.user_id == ""

    async def test_storage_failure_maps_to_storage_code(self, gateway, mock_repo):
        mock_repo.set_error(StorageError("unable to read user: timed out"))

        response = await gateway.log_in(LogInRequest(login="alice", password="pw1"))

        assert response.error_code is ErrorCode.STORAGE
        assert "timed out" in response.error

    async def test_unexpected_failure_maps_to_internal(self, gateway, mock_repo):
        """GOLDEN: non-domain exceptions do not leak their message"""
        mock_repo.set_error(RuntimeError("secret detail"))

        response = await gateway.sign_up(SignUpRequest(login="alice", password="pw1"))

        assert response.error_code is ErrorCode.INTERNAL
        assert response.error == "internal server error"


# =============================================================================
# UpdateItems
# =============================================================================

@pytest.mark.asyncio
class TestGatewayUpdateItemsGolden:
    """Golden: UpdateItems handler"""

    async def test_invalid_identifier(self, gateway, mock_repo):
        """GOLDEN: malformed id is reported with the offending value"""
        response = await gateway.update_items(UpdateItemsRequest(user_id="not-a-uuid"))

        assert response.error_code is ErrorCode.INVALID_IDENTIFIER
        assert response.error == 'invalid identifier "not-a-uuid"'
        assert response.user is None
        mock_repo.assert_not_called("get_user_by_id")

    async def test_empty_identifier(self, gateway):
        response = await gateway.update_items(UpdateItemsRequest())

        assert response.error_code is ErrorCode.INVALID_IDENTIFIER
        assert response.error == 'invalid identifier ""'

    async def test_unknown_user(self, gateway):
        response = await gateway.update_items(UpdateItemsRequest(user_id=str(uuid.uuid4())))

        assert response.error_code is ErrorCode.NOT_FOUND
        assert response.user is None

    async def test_snapshot_of_new_user_is_empty(self, gateway):
        user_id = await signed_up(gateway)

        response = await gateway.update_items(UpdateItemsRequest(user_id=user_id))

        assert response.ok
        assert response.user.login == "alice"
        assert response.user.logins == []
        assert response.user.cards == []
        assert response.user.texts == []
        assert response.user.binaries == []

    async def test_snapshot_contains_all_stored_items_in_order(self, gateway, mock_repo):
        """GOLDEN: snapshot mirrors the stored record field by field"""
        user = make_user(
            login="bob",
            logins=[make_login_item(login="a.com", password=b"c1"), make_login_item(login="b.com", password=b"c2")],
            cards=[make_card_item(number="1111", security_code=b"c3", meta={"bank": "x"})],
            texts=[make_text_item(value="note")],
            binaries=[make_binary_item(value=b"\x00\xff")],
        )
        mock_repo.set_user(user)

        response = await gateway.update_items(UpdateItemsRequest(user_id=str(user.user_id)))

        snapshot = response.user
        assert snapshot.login == "bob"
        assert [(i.login, i.password) for i in snapshot.logins] == [("a.com", b"c1"), ("b.com", b"c2")]
        assert snapshot.cards[0].number == "1111"
        assert snapshot.cards[0].security_code == b"c3"
        assert snapshot.cards[0].meta == {"bank": "x"}
        assert snapshot.texts[0].value == "note"
        assert snapshot.binaries[0].value == b"\x00\xff"


# =============================================================================
# Add*Item
# =============================================================================

@pytest.mark.asyncio
class TestGatewayAddItemsGolden:
    """Golden: AddLoginItem / AddBankCardItem / AddTextItem / AddBinaryItem"""

    async def test_add_login_item_appends_once(self, gateway, mock_repo):
        """GOLDEN: a successful add appends exactly one item"""
        user_id = await signed_up(gateway)
        item = LoginItemMessage(login="example.com", password=b"sealed", meta={"url": "https://example.com"})

        response = await gateway.add_login_item(AddLoginItemRequest(user_id=user_id, item=item))

        assert response.ok
        calls = mock_repo.calls("append_item")
        assert len(calls) == 1
        assert calls[0]["kwargs"]["category"] is ItemCategory.LOGINS
        stored = mock_repo.stored_user(uuid.UUID(user_id))
        assert stored.logins[0].login == "example.com"
        assert stored.logins[0].password == b"sealed"
        assert stored.logins[0].meta == {"url": "https://example.com"}

    async def test_add_bank_card_item(self, gateway, mock_repo):
        user_id = await signed_up(gateway)
        item = BankCardItemMessage(number="4111", holder="ALICE", expires="12/30", security_code=b"sealed")

        response = await gateway.add_bank_card_item(AddBankCardItemRequest(user_id=user_id, item=item))

        assert response.ok
        card = mock_repo.stored_user(uuid.UUID(user_id)).cards[0]
        assert (card.number, card.holder, card.expires, card.security_code) == ("4111", "ALICE", "12/30", b"sealed")

    async def test_add_text_item(self, gateway, mock_repo):
        user_id = await signed_up(gateway)

        response = await gateway.add_text_item(
            AddTextItemRequest(user_id=user_id, item=TextItemMessage(value="hello"))
        )

        assert response.ok
        assert mock_repo.stored_user(uuid.UUID(user_id)).texts[0].value == "hello"

    async def test_add_binary_item(self, gateway, mock_repo):
        user_id = await signed_up(gateway)

        response = await gateway.add_binary_item(
            AddBinaryItemRequest(user_id=user_id, item=BinaryItemMessage(value=b"\x01\x02"))
        )

        assert response.ok
        assert mock_repo.stored_user(uuid.UUID(user_id)).binaries[0].value == b"\x01\x02"

    async def test_missing_item_rejected(self, gateway, mock_repo):
        """GOLDEN: an absent item payload is an argument error, nothing appended"""
        user_id = await signed_up(gateway)

        response = await gateway.add_text_item(AddTextItemRequest(user_id=user_id))

        assert response.error_code is ErrorCode.ARGUMENT
        assert response.error == "argument can't be empty: item"
        mock_repo.assert_not_called("append_item")

    async def test_invalid_identifier_rejected(self, gateway, mock_repo):
        response = await gateway.add_binary_item(
            AddBinaryItemRequest(user_id="xyz", item=BinaryItemMessage(value=b"x"))
        )

        assert response.error_code is ErrorCode.INVALID_IDENTIFIER
        assert response.error == 'invalid identifier "xyz"'
        mock_repo.assert_not_called("append_item")

    async def test_unknown_user_reports_not_found(self, gateway):
        response = await gateway.add_login_item(
            AddLoginItemRequest(user_id=str(uuid.uuid4()), item=LoginItemMessage(login="x"))
        )

        assert response.error_code is ErrorCode.NOT_FOUND


# =============================================================================
# Cancellation
# =============================================================================

@pytest.mark.asyncio
class TestGatewayCancellationGolden:
    """Golden: a cancelled call propagates CancelledError instead of an envelope"""

    async def test_cancel_before_handler_runs(self, gateway):
        user_id = await signed_up(gateway)
        task = asyncio.create_task(gateway.update_items(UpdateItemsRequest(user_id=user_id)))

        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task

    async def test_cancel_while_store_read_pending(self, gateway, mock_repo):
        """GOLDEN: the pending repository await is abandoned"""
        user_id = await signed_up(gateway)
        task = asyncio.create_task(gateway.update_items(UpdateItemsRequest(user_id=user_id)))
        while not mock_repo.calls("get_user_by_id"):
            await asyncio.sleep(0)

        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task

    async def test_cancel_during_snapshot_fan_out(self, gateway, monkeypatch):
        """GOLDEN: the joined transforms observe the cancellation"""
        started = threading.Event()
        release = threading.Event()

        def blocking_transform(items):
            started.set()
            release.wait(5)
            return []

        monkeypatch.setattr(grpc_gateway, "login_items_to_wire", blocking_transform)
        user_id = await signed_up(gateway)
        task = asyncio.create_task(gateway.update_items(UpdateItemsRequest(user_id=user_id)))
        try:
            while not started.is_set():
                await asyncio.sleep(0.001)

            task.cancel()

            with pytest.raises(asyncio.CancelledError):
                await task
        finally:
            release.set()


# =============================================================================
# Helpers
# =============================================================================

class TestGatewayHelpers:
    """Identifier parsing, error mapping and snapshot assembly"""

    def test_parse_user_id_accepts_canonical_form(self):
        user_id = uuid.uuid4()
        assert parse_user_id(str(user_id)) == user_id

    def test_parse_user_id_rejects_garbage(self):
        with pytest.raises(IdentifierFormatError, match='invalid identifier "12-34"'):
            parse_user_id("12-34")

    def test_error_code_for_duplicate_entry(self):
        assert error_code_for(DuplicateEntryError("dup")) is ErrorCode.ALREADY_EXISTS

    def test_error_code_for_not_found(self):
        assert error_code_for(UserNotFoundError("missing")) is ErrorCode.NOT_FOUND

    def test_error_code_for_base_error_is_internal(self):
        assert error_code_for(KeeperServiceError("?")) is ErrorCode.INTERNAL

    @pytest.mark.asyncio
    async def test_build_snapshot_converts_every_category(self):
        user = make_user(
            login="dave",
            logins=[make_login_item()],
            cards=[make_card_item()],
            texts=[make_text_item()],
            binaries=[make_binary_item()],
        )

        snapshot = await build_snapshot(user)

        assert snapshot.login == "dave"
        assert isinstance(snapshot.logins[0], LoginItemMessage)
        assert isinstance(snapshot.cards[0], BankCardItemMessage)
        assert isinstance(snapshot.texts[0], TextItemMessage)
        assert isinstance(snapshot.binaries[0], BinaryItemMessage)
