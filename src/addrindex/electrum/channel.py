"""
Persistent Electrum JSON-RPC channel.

A background task owns the socket: it connects, performs the server.version
handshake, routes responses to waiting requests by id and reconnects after
every disconnect. Callers only see request/response coroutines plus an
optional stream of lifecycle events.
"""

from __future__ import annotations

import asyncio
import contextlib
import json
import ssl
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from loguru import logger

CLIENT_NAME = "addrindex"
PROTOCOL_VERSION = "1.4"

DEFAULT_RETRY_PERIOD = 1.0  # seconds between reconnect attempts
DEFAULT_REQUEST_TIMEOUT = 30.0

# History replies for busy addresses run to several megabytes
DEFAULT_MAX_MESSAGE_SIZE = 64 * 1024 * 1024

EVENT_QUEUE_SIZE = 100

# Upper bound on waiting for a closed transport (TLS shutdown included)
CLOSE_TIMEOUT = 5.0

# Reserved for the handshake, regular requests start at 1
HANDSHAKE_ID = 0


class ElectrumChannelError(Exception):
    """Error raised when an Electrum request cannot be completed."""


class ChannelEventType(str, Enum):
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    ERROR = "error"


@dataclass
class ChannelEvent:
    type: ChannelEventType
    detail: Any = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))


def format_rpc_error(error: Any) -> str:
    if isinstance(error, dict):
        code = error.get("code", "unknown")
        message = error.get("message", str(error))
        return f"Electrum error {code}: {message}"
    return f"Electrum error: {error}"


class ElectrumChannel:
    """
    Reconnecting Electrum client connection.

    Requests are multiplexed over one connection by JSON-RPC id. While the
    server is unreachable, requests wait up to request_timeout for the
    connection to come back before failing.
    """

    def __init__(
        self,
        host: str = "127.0.0.1",
        port: int = 50001,
        tls_enabled: bool = False,
        retry_period: float = DEFAULT_RETRY_PERIOD,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
        client_name: str = CLIENT_NAME,
        protocol_version: str = PROTOCOL_VERSION,
        max_message_size: int = DEFAULT_MAX_MESSAGE_SIZE,
    ) -> None:
        self.host = host
        self.port = port
        self.tls_enabled = tls_enabled
        self.retry_period = retry_period
        self.request_timeout = request_timeout
        self.client_name = client_name
        self.protocol_version = protocol_version
        self.max_message_size = max_message_size
        self.server_version: Any = None

        self._reader: asyncio.StreamReader | None = None
        self._writer: asyncio.StreamWriter | None = None
        self._pending: dict[int, asyncio.Future[Any]] = {}
        self._request_id = 0
        self._connected = asyncio.Event()
        self._write_lock = asyncio.Lock()
        self._task: asyncio.Task[None] | None = None
        self._subscribers: list[asyncio.Queue[ChannelEvent]] = []

    @property
    def endpoint(self) -> str:
        return f"{self.host}:{self.port}"

    @property
    def connected(self) -> bool:
        return self._connected.is_set()

    # -------------------------
    # Lifecycle
    # -------------------------
    def start(self) -> None:
        if self._task is not None:
            return
        self._task = asyncio.create_task(self._run())
        self._task.set_name(f"electrum:{self.endpoint}")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        await self._teardown()

    async def _run(self) -> None:
        while True:
            try:
                await self._connect()
                await self._read_loop()
            except asyncio.CancelledError:
                raise
            except (OSError, TimeoutError) as e:
                logger.warning(f"Error connecting to Electrum Server at {self.endpoint}: {e}")
                self._emit(ChannelEvent(ChannelEventType.ERROR, str(e)))
            except Exception as e:
                logger.error(f"Electrum error: {e}")
                self._emit(ChannelEvent(ChannelEventType.ERROR, str(e)))
            finally:
                await self._teardown()

            await asyncio.sleep(self.retry_period)

    async def _connect(self) -> None:
        ssl_context: ssl.SSLContext | None = None
        if self.tls_enabled:
            # Electrum servers commonly present self-signed certificates
            ssl_context = ssl.create_default_context()
            ssl_context.check_hostname = False
            ssl_context.verify_mode = ssl.CERT_NONE

        logger.debug(f"Connecting to Electrum Server at {self.endpoint}")
        self._reader, self._writer = await asyncio.wait_for(
            asyncio.open_connection(
                self.host, self.port, ssl=ssl_context, limit=self.max_message_size
            ),
            timeout=self.request_timeout,
        )

        self.server_version = await asyncio.wait_for(
            self._handshake(), timeout=self.request_timeout
        )
        self._connected.set()
        logger.info(
            f"Connected to Electrum Server at {self.endpoint} "
            f"({json.dumps(self.server_version)})"
        )
        self._emit(ChannelEvent(ChannelEventType.CONNECTED, self.server_version))

    async def _handshake(self) -> Any:
        assert self._reader is not None and self._writer is not None
        request = {
            "jsonrpc": "2.0",
            "id": HANDSHAKE_ID,
            "method": "server.version",
            "params": [self.client_name, self.protocol_version],
        }
        self._writer.write(json.dumps(request).encode() + b"\n")
        await self._writer.drain()

        line = await self._reader.readuntil(b"\n")
        response = json.loads(line)
        if response.get("error"):
            raise ElectrumChannelError(format_rpc_error(response["error"]))
        return response.get("result")

    async def _read_loop(self) -> None:
        assert self._reader is not None
        while True:
            try:
                line = await self._reader.readuntil(b"\n")
            except asyncio.IncompleteReadError as e:
                raise ElectrumChannelError("Connection closed by server") from e
            except asyncio.LimitOverrunError as e:
                raise ElectrumChannelError(
                    f"Message too large (>{self.max_message_size} bytes)"
                ) from e

            line = line.strip()
            if not line:
                continue
            self._dispatch(json.loads(line))

    def _dispatch(self, message: Any) -> None:
        if isinstance(message, list):
            for item in message:
                self._dispatch(item)
            return

        if not isinstance(message, dict):
            logger.warning(f"Ignoring malformed Electrum message: {message!r}")
            return

        request_id = message.get("id")
        if request_id is None:
            logger.debug(f"Ignoring Electrum notification: {message.get('method')}")
            return

        future = self._pending.pop(request_id, None)
        if future is None or future.done():
            logger.debug(f"No pending request for Electrum response id {request_id}")
            return

        if message.get("error"):
            future.set_exception(ElectrumChannelError(format_rpc_error(message["error"])))
        else:
            future.set_result(message.get("result"))

    async def _teardown(self) -> None:
        was_connected = self._connected.is_set()
        self._connected.clear()

        writer = self._writer
        self._reader = None
        self._writer = None

        for future in self._pending.values():
            if not future.done():
                future.set_exception(ElectrumChannelError("Electrum connection closed"))
        self._pending.clear()

        if was_connected:
            logger.info(f"Disconnected from Electrum Server at {self.endpoint}")
            self._emit(ChannelEvent(ChannelEventType.DISCONNECTED))

        if writer is not None:
            writer.close()
            with contextlib.suppress(OSError, TimeoutError):
                await asyncio.wait_for(writer.wait_closed(), timeout=CLOSE_TIMEOUT)

    # -------------------------
    # Events
    # -------------------------
    def subscribe(self) -> asyncio.Queue[ChannelEvent]:
        queue: asyncio.Queue[ChannelEvent] = asyncio.Queue(maxsize=EVENT_QUEUE_SIZE)
        self._subscribers.append(queue)
        return queue

    def unsubscribe(self, queue: asyncio.Queue[ChannelEvent]) -> None:
        if queue in self._subscribers:
            self._subscribers.remove(queue)

    def _emit(self, event: ChannelEvent) -> None:
        for queue in self._subscribers:
            if queue.full():
                logger.debug(f"Event queue full, dropping {event.type.value} event")
                continue
            queue.put_nowait(event)

    # -------------------------
    # Requests
    # -------------------------
    async def request(self, method: str, params: list[Any] | None = None) -> Any:
        """
        Send one request and wait for its result.

        Raises:
            ElectrumChannelError: If the channel is down, the request times out
                or the server answers with an error
        """
        if self._task is None:
            raise ElectrumChannelError("Electrum channel not started")

        try:
            await asyncio.wait_for(self._connected.wait(), timeout=self.request_timeout)
        except TimeoutError as e:
            raise ElectrumChannelError(f"Electrum Server at {self.endpoint} unavailable") from e

        self._request_id += 1
        request_id = self._request_id
        future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
        self._pending[request_id] = future
        payload = {"jsonrpc": "2.0", "id": request_id, "method": method, "params": params or []}

        try:
            async with self._write_lock:
                if self._writer is None:
                    raise ElectrumChannelError("Electrum connection closed")
                self._writer.write(json.dumps(payload).encode() + b"\n")
                await self._writer.drain()
            return await asyncio.wait_for(future, timeout=self.request_timeout)
        except TimeoutError as e:
            raise ElectrumChannelError(f"Electrum request timed out: {method}") from e
        except OSError as e:
            raise ElectrumChannelError(f"Electrum request failed: {method} - {e}") from e
        finally:
            self._pending.pop(request_id, None)

    async def balance(self, scripthash: str) -> Any:
        return await self.request("blockchain.scripthash.get_balance", [scripthash])

    async def history(self, scripthash: str) -> Any:
        return await self.request("blockchain.scripthash.get_history", [scripthash])

    async def list_unspent(self, scripthash: str) -> Any:
        return await self.request("blockchain.scripthash.listunspent", [scripthash])
