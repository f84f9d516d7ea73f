"""
Keeper Microservice

gRPC server for user signup/login and vault item storage.
"""

import asyncio
import logging
import signal
import sys
from typing import Optional, Tuple

import grpc

from core.config import ConfigurationError, KeeperServerConfig, load_server_config
from core.logger import setup_service_logger

from .factory import create_keeper_gateway, create_keeper_repository
from .grpc_gateway import KeeperGateway
from .protocols import StorageError

logger = logging.getLogger("keeper_service")


def server_options(config: KeeperServerConfig) -> list:
    """Channel arguments of the server"""
    return [
        ('grpc.max_receive_message_length', 100 * 1024 * 1024),        # 100MB
        ('grpc.max_send_message_length', 100 * 1024 * 1024),           # 100MB
        ('grpc.max_connection_idle_ms', config.max_connection_idle_s * 1000),
        ('grpc.keepalive_time_ms', 30000),                              # 30s between pings
        ('grpc.keepalive_timeout_ms', 10000),                           # 10s timeout for ping response
        ('grpc.http2.min_ping_interval_without_data_ms', 10000),        # Accept client pings every 10s+
        ('grpc.keepalive_permit_without_calls', 1),
    ]


async def create_server(
    gateway: KeeperGateway,
    config: KeeperServerConfig,
) -> Tuple[grpc.aio.Server, int]:
    """
    Build a server with the gateway registered and bind it.

    Returns:
        Tuple of (server, bound port); port 0 in config picks a free port
    """
    server = grpc.aio.server(options=server_options(config))
    server.add_generic_rpc_handlers((gateway.generic_handler(),))
    port = server.add_insecure_port(config.listen_address)
    if port == 0:
        raise RuntimeError(f"unable to listen on {config.listen_address}")
    return server, port


async def serve(config: KeeperServerConfig, stop_event: Optional[asyncio.Event] = None) -> None:
    """Run the server until stop_event is set or SIGINT/SIGTERM arrives"""
    if stop_event is None:
        stop_event = asyncio.Event()
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, stop_event.set)
            except NotImplementedError:
                # Windows event loops; Ctrl+C still interrupts asyncio.run
                logger.debug(f"Signal handler for {sig.name} not supported")

    repository = create_keeper_repository(config)
    try:
        await repository.initialize()
        gateway = create_keeper_gateway(config, repository)
        server, port = await create_server(gateway, config)

        await server.start()
        logger.info(f"Keeper server listening on tcp {config.listen_host}:{port}")

        await stop_event.wait()

        logger.info("Shutting down keeper server")
        await server.stop(config.shutdown_grace_s)
    finally:
        await repository.close()
    logger.info("Keeper server stopped")


def main() -> int:
    try:
        config = load_server_config()
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    setup_service_logger("keeper_service", config.logging)
    logger.info(f"Starting keeper server (env={config.environment})")

    try:
        asyncio.run(serve(config))
    except StorageError as e:
        logger.error(f"Unable to initialize data layer: {e}")
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted")
    return 0


if __name__ == "__main__":
    sys.exit(main())
