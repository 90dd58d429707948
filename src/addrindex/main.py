"""
Main entry point for the address index service.
"""

import asyncio
import signal
import sys

from loguru import logger

from addrindex.api import ElectrumAddressApi
from addrindex.bitcoind import BitcoindClient
from addrindex.cache import MemoryCache
from addrindex.config import get_settings
from addrindex.electrum.channel import ElectrumChannel
from addrindex.electrum.queries import ScriptHashQueries
from addrindex.progress import LoadingIndicators
from addrindex.server import AddressIndexServer


def setup_logging(level: str) -> None:
    logger.remove()

    logger.add(
        sys.stderr,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
        level=level,
        colorize=True,
    )


async def run_service() -> None:
    settings = get_settings()
    setup_logging(settings.log_level)

    logger.info("Starting Electrum address index")
    logger.info(f"Network: {settings.network}")
    logger.info(
        f"Electrum server: {settings.electrum_host}:{settings.electrum_port} "
        f"({'tls' if settings.electrum_tls_enabled else 'tcp'})"
    )
    logger.info(f"Bitcoin Core RPC: {settings.core_rpc_url}")
    logger.info(f"Cache TTL: {settings.cache_ttl}s, page size: {settings.page_size}")

    cache = MemoryCache()
    loading_indicators = LoadingIndicators()

    channel = ElectrumChannel(
        host=settings.electrum_host,
        port=settings.electrum_port,
        tls_enabled=settings.electrum_tls_enabled,
        retry_period=settings.electrum_retry_period,
        request_timeout=settings.electrum_request_timeout,
    )
    node = BitcoindClient(
        rpc_url=settings.core_rpc_url,
        rpc_user=settings.core_rpc_user,
        rpc_password=settings.core_rpc_password,
        timeout=settings.core_rpc_timeout,
    )
    api = ElectrumAddressApi(
        node=node,
        queries=ScriptHashQueries(channel, cache, cache_ttl=settings.cache_ttl),
        progress=loading_indicators,
        page_size=settings.page_size,
    )
    server = AddressIndexServer(settings, api, loading_indicators, channel=channel)

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()

    def shutdown_handler() -> None:
        logger.info("Received shutdown signal")
        stop_event.set()

    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, shutdown_handler)

    try:
        channel.start()
        await server.start()
        await stop_event.wait()
    except asyncio.CancelledError:
        logger.info("Service cancelled")
    except Exception as e:
        logger.error(f"Service error: {e}")
        raise
    finally:
        await server.stop()
        await channel.stop()
        await node.close()


def main() -> None:
    try:
        asyncio.run(run_service())
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
    except Exception as e:
        logger.exception(f"Fatal error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
