"""
Keeper Command Line Client

Non-interactive client: sign up or log in, add items from flag values and
print the decrypted snapshot.

Usage:
    keeper-client --generate-key
    keeper-client --login alice --password pw --signup
    keeper-client --login alice --password pw --add-login example.com s3cret --meta url=https://example.com
    keeper-client --login alice --password pw --lp --bc --text --bins
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional

import grpc

from core.config import ConfigurationError, KeeperClientConfig, load_client_config
from core.logger import setup_service_logger

from . import __version__
from .client import KeeperServiceClient
from .encryption import EncryptionError, generate_key
from .protocols import KeeperServiceError
from .wire import UserSnapshot

logger = logging.getLogger("keeper_client")

BUILD_DATE = "N/A"


def parse_meta(pairs: Optional[List[str]]) -> Dict[str, str]:
    """Parse repeated KEY=VALUE arguments"""
    meta: Dict[str, str] = {}
    for pair in pairs or []:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise argparse.ArgumentTypeError(f"metadata must be KEY=VALUE, got '{pair}'")
        meta[key] = value
    return meta


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Keeper credential vault client")
    parser.add_argument("--login", help="user login")
    parser.add_argument("--password", help="user password")
    parser.add_argument("--signup", action="store_true", help="sign up as new user")
    parser.add_argument("--env-file", help="environment file with client settings")

    parser.add_argument("--lp", action="store_true", help="show login-password items")
    parser.add_argument("--bc", action="store_true", help="show bank card items")
    parser.add_argument("--text", action="store_true", help="show text items")
    parser.add_argument("--bins", action="store_true", help="show binary items")

    parser.add_argument("--add-login", nargs=2, metavar=("LOGIN", "PASSWORD"), help="add login-password item")
    parser.add_argument("--add-card", nargs=4, metavar=("NUMBER", "HOLDER", "EXPIRES", "CSC"), help="add bank card item")
    parser.add_argument("--add-text", metavar="VALUE", help="add text item")
    parser.add_argument("--add-binary", metavar="PATH", type=Path, help="add file contents as binary item")
    parser.add_argument("--meta", action="append", metavar="KEY=VALUE", help="metadata for the added item (repeatable)")

    parser.add_argument("--build", action="store_true", help="display build information")
    parser.add_argument("--generate-key", action="store_true", help="print a new encryption key and exit")
    return parser


def print_snapshot(snapshot: UserSnapshot, args: argparse.Namespace) -> None:
    if args.lp:
        print(f"Login items ({len(snapshot.logins)}):")
        for i, item in enumerate(snapshot.logins):
            print(f"  {i}: {item.login} / {item.password.decode('utf-8', 'replace')} {item.meta}")
    if args.bc:
        print(f"Bank card items ({len(snapshot.cards)}):")
        for i, item in enumerate(snapshot.cards):
            csc = item.security_code.decode("utf-8", "replace")
            print(f"  {i}: {item.number} {item.holder} {item.expires} CSC {csc} {item.meta}")
    if args.text:
        print(f"Text items ({len(snapshot.texts)}):")
        for i, item in enumerate(snapshot.texts):
            print(f"  {i}: {item.value} {item.meta}")
    if args.bins:
        print(f"Binary items ({len(snapshot.binaries)}):")
        for i, item in enumerate(snapshot.binaries):
            print(f"  {i}: {len(item.value)} bytes {item.meta}")


async def run(args: argparse.Namespace, config: KeeperClientConfig, meta: Dict[str, str]) -> None:
    async with KeeperServiceClient(config) as client:
        if args.signup:
            user_id = await client.sign_up(args.login, args.password)
            print(f"successfully signed up, your user id is {user_id}")
            return

        user_id = await client.log_in(args.login, args.password)
        print(f"successfully logged in, your user id is {user_id}")

        if args.add_login:
            await client.add_login_item(user_id, args.add_login[0], args.add_login[1], meta)
            print("login item added")
        if args.add_card:
            number, holder, expires, csc = args.add_card
            await client.add_card_item(user_id, number, holder, expires, csc, meta)
            print("bank card item added")
        if args.add_text is not None:
            await client.add_text_item(user_id, args.add_text, meta)
            print("text item added")
        if args.add_binary is not None:
            await client.add_binary_item(user_id, args.add_binary.read_bytes(), meta)
            print("binary item added")

        if args.lp or args.bc or args.text or args.bins:
            snapshot = await client.update_items(user_id)
            print("updated your items")
            print_snapshot(snapshot, args)


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.build:
        print(f"Build version: {__version__}")
        print(f"Build date: {BUILD_DATE}")
    if args.generate_key:
        print(generate_key())
        return 0
    if not args.login or not args.password:
        if args.build:
            return 0
        parser.error("login and/or password cannot be empty")

    try:
        meta = parse_meta(args.meta)
    except argparse.ArgumentTypeError as e:
        parser.error(str(e))

    config = load_client_config(args.env_file)
    setup_service_logger("keeper_client", config.logging)

    try:
        asyncio.run(run(args, config, meta))
    except (KeeperServiceError, EncryptionError, ConfigurationError) as e:
        logger.debug(f"Client operation failed: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except grpc.aio.AioRpcError as e:
        print(f"Error: server call failed: {e.code().name} {e.details()}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
